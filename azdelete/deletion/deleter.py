"""Per-resource deletion state machine.

Drives one identifier through lookup, confirmation, delete and verification,
retrying failed attempts with exponential backoff.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from azdelete.arm.store import DeleteFailed, Found, LookupFailed, NotFound, ResourceStore
from azdelete.deletion.audit import AuditLog
from azdelete.deletion.confirmation import ConfirmationGate
from azdelete.models.deletion_record import DeletionRecord, DeletionStatus
from azdelete.models.resource_id import ResourceIdentifier

logger = logging.getLogger(__name__)

MIN_RETRIES = 1
MAX_RETRIES = 10


class DeletionInterrupted(Exception):
    """Raised at a checkpoint once cancellation has been requested."""


@dataclass(frozen=True)
class DeletionSettings:
    """Settings for a deletion run.

    Attributes:
        max_retries: Maximum delete attempts per resource (1-10)
        settle_seconds: Wait between a delete call and its verification lookup
        backoff_unit_seconds: Seconds per backoff time unit
        force: Suppress all confirmation prompts
        preview: Report intended deletions without performing them
    """

    max_retries: int = 3
    settle_seconds: float = 5.0
    backoff_unit_seconds: float = 1.0
    force: bool = False
    preview: bool = False

    def __post_init__(self) -> None:
        if not MIN_RETRIES <= self.max_retries <= MAX_RETRIES:
            raise ValueError(f"max_retries must be between {MIN_RETRIES} and {MAX_RETRIES}, got {self.max_retries}")
        if self.settle_seconds < 0 or self.backoff_unit_seconds < 0:
            raise ValueError("Wait durations cannot be negative")

    @property
    def requires_confirmation(self) -> bool:
        return not (self.force or self.preview)

    def backoff_seconds(self, attempt: int) -> float:
        """Backoff before retrying after the given 1-based attempt: 2^attempt * 5 units."""
        return (2**attempt) * 5 * self.backoff_unit_seconds


class RetryingDeleter:
    """Deletes one resource at a time with verification and retry.

    Every attempt restarts from lookup, so a resource removed by someone else
    between attempts ends as a success instead of consuming more retries.
    Lookup failures, delete errors and resources still present after the
    settle delay all count as failed attempts.

    Attributes:
        store: Resource store used for lookup and delete
        gate: Per-item confirmation gate
        audit: Audit event sink
        settings: Deletion settings
        cancel_event: Set to request the run stop at the next checkpoint
    """

    def __init__(
        self,
        store: ResourceStore,
        gate: ConfirmationGate,
        audit: AuditLog,
        settings: DeletionSettings,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.store = store
        self.gate = gate
        self.audit = audit
        self.settings = settings
        self.cancel_event = cancel_event or threading.Event()

    def delete(self, resource_id: ResourceIdentifier) -> DeletionRecord:
        """Run the state machine for one identifier.

        Args:
            resource_id: Validated identifier

        Returns:
            Terminal DeletionRecord (Success, Failed or Skipped)

        Raises:
            DeletionInterrupted: If cancellation was requested at a checkpoint
        """
        max_retries = self.settings.max_retries
        attempt = 1

        while True:
            self._checkpoint()
            self.audit.info(f"Attempt {attempt}/{max_retries}: looking up {resource_id}")
            lookup = self.store.lookup(resource_id)

            if isinstance(lookup, NotFound):
                note = "Resource not found (already deleted)" if attempt == 1 else "Resource no longer exists"
                self.audit.success(f"{note}: {resource_id}")
                return self._record(resource_id, DeletionStatus.SUCCESS, attempts=attempt - 1, note=note)

            if self.settings.preview:
                return self._preview(resource_id, lookup)

            if isinstance(lookup, LookupFailed):
                failure = f"Lookup failed: {lookup.message}"
            else:
                resource = lookup.resource
                if self.settings.requires_confirmation and not self.gate.confirm_item(resource):
                    self.audit.warn(f"Skipped by operator: {resource.name} ({resource_id})")
                    return self._record(
                        resource_id,
                        DeletionStatus.SKIPPED,
                        attempts=attempt - 1,
                        note="Declined by operator",
                        resource=resource,
                    )

                failure = self._attempt_delete(resource_id, attempt)
                if failure is None:
                    self.audit.success(f"Deleted {resource.name} ({resource_id})")
                    return self._record(resource_id, DeletionStatus.SUCCESS, attempts=attempt, resource=resource)

            self.audit.warn(f"Attempt {attempt}/{max_retries} failed for {resource_id}: {failure}")

            if attempt >= max_retries:
                self.audit.error(f"Failed to delete {resource_id} after {max_retries} attempt(s): {failure}")
                return self._record(resource_id, DeletionStatus.FAILED, attempts=attempt, error_message=failure)

            wait_time = self.settings.backoff_seconds(attempt)
            self.audit.info(f"Waiting {wait_time:g}s before retrying {resource_id}")
            self._wait(wait_time)
            attempt += 1

    def _attempt_delete(self, resource_id: ResourceIdentifier, attempt: int) -> Optional[str]:
        """Delete and verify once.

        Returns:
            None if the resource is confirmed absent, otherwise the failure reason
        """
        self._checkpoint()
        self.audit.info(f"Deleting {resource_id} (attempt {attempt}/{self.settings.max_retries})")

        try:
            result = self.store.delete(resource_id)
        except Exception as e:
            logger.debug(f"Unclassified delete error for {resource_id}", exc_info=True)
            return f"Delete failed: {e}"

        if isinstance(result, DeleteFailed):
            kind = "transient" if result.transient else "permanent"
            return f"Delete failed ({kind}): {result.message}"

        self._wait(self.settings.settle_seconds)

        verify = self.store.lookup(resource_id)
        if isinstance(verify, Found):
            return "Resource still exists after deletion"
        if isinstance(verify, LookupFailed):
            return f"Verification lookup failed: {verify.message}"

        return None

    def _preview(self, resource_id: ResourceIdentifier, lookup) -> DeletionRecord:
        if isinstance(lookup, Found):
            resource = lookup.resource
            self.audit.info(f"What-if: would delete {resource.name} ({resource.resource_type})")
            return self._record(resource_id, DeletionStatus.SUCCESS, note="Would be deleted", resource=resource)

        self.audit.warn(f"What-if: would delete {resource_id} (lookup failed: {lookup.message})")
        return self._record(resource_id, DeletionStatus.SUCCESS, note="Would be deleted")

    def _checkpoint(self) -> None:
        if self.cancel_event.is_set():
            raise DeletionInterrupted("Deletion interrupted by operator")

    def _wait(self, seconds: float) -> None:
        # Wakes as soon as cancellation is requested
        self.cancel_event.wait(seconds)
        self._checkpoint()

    def _record(
        self,
        resource_id: ResourceIdentifier,
        status: DeletionStatus,
        attempts: int = 0,
        error_message: Optional[str] = None,
        note: Optional[str] = None,
        resource=None,
    ) -> DeletionRecord:
        return DeletionRecord(
            resource_id=resource_id.raw,
            status=status,
            timestamp=datetime.utcnow(),
            attempts=attempts,
            error_message=error_message,
            note=note,
            resource_name=resource.name if resource else None,
            resource_type=resource.resource_type if resource else None,
        )
