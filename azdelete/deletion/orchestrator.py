"""Batch orchestrator for bulk deletion runs.

Runs the per-resource deletion state machine over an ordered batch of
identifiers and produces the result ledger and terminal status.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from azdelete.arm.credentials import SubscriptionContext
from azdelete.deletion.audit import AuditLog
from azdelete.deletion.confirmation import ConfirmationGate
from azdelete.deletion.deleter import DeletionInterrupted, DeletionSettings, RetryingDeleter
from azdelete.deletion.ledger import ResultLedger
from azdelete.models.deletion_operation import BatchSummary, DeletionOperation, OperationMode, OperationStatus
from azdelete.models.resource_id import ResourceIdentifier

logger = logging.getLogger(__name__)


class BatchAborted(Exception):
    """Raised when an unexpected error stops a run part-way.

    The original error is chained as ``__cause__``.

    Attributes:
        operation: The run as far as it got, with status aborted and the
            records of every item finished before the error
    """

    def __init__(self, operation: DeletionOperation) -> None:
        super().__init__(f"Run {operation.operation_id} aborted by an unexpected error")
        self.operation = operation


class BatchOrchestrator:
    """Bulk deletion orchestrator.

    Processes identifiers strictly in input order, one at a time. A failing
    item never stops the batch; each processed identifier yields exactly one
    ledger record.

    Attributes:
        deleter: Per-resource state machine
        gate: Batch-wide confirmation gate
        audit: Audit event sink
        settings: Deletion settings
    """

    def __init__(
        self,
        deleter: RetryingDeleter,
        gate: ConfirmationGate,
        audit: AuditLog,
        settings: DeletionSettings,
    ) -> None:
        self.deleter = deleter
        self.gate = gate
        self.audit = audit
        self.settings = settings

    def run(
        self,
        identifiers: list[ResourceIdentifier],
        invalid_count: int = 0,
        subscription: Optional[SubscriptionContext] = None,
        input_file: Optional[str] = None,
    ) -> DeletionOperation:
        """Process a batch of validated identifiers.

        Args:
            identifiers: Valid identifiers in input order
            invalid_count: Identifiers rejected before the run, for the summary
            subscription: Active subscription context (optional)
            input_file: Source file path, for the audit record (optional)

        Returns:
            DeletionOperation with terminal status, summary and ledger records

        Raises:
            BatchAborted: If an unexpected error stopped the run; carries the
                partial operation
        """
        mode = OperationMode.PREVIEW if self.settings.preview else OperationMode.EXECUTE
        operation = DeletionOperation(
            operation_id=f"op_{uuid.uuid4()}",
            timestamp=datetime.utcnow(),
            mode=mode,
            status=OperationStatus.COMPLETED,
            summary=BatchSummary(valid_count=len(identifiers), invalid_count=invalid_count),
            forced=self.settings.force,
            input_file=input_file,
            subscription_id=subscription.subscription_id if subscription else None,
            subscription_name=subscription.subscription_name if subscription else None,
        )
        total = len(identifiers)

        self.audit.info(
            f"Starting {mode.value} run {operation.operation_id}: {total} resource(s), "
            f"max retries {self.settings.max_retries}"
        )

        if self.settings.requires_confirmation and not self.gate.confirm_batch(total):
            self.audit.warn("Operation cancelled by operator; no resources were processed")
            operation.status = OperationStatus.CANCELLED
            return operation

        ledger = ResultLedger()
        interrupted = False
        error: Optional[Exception] = None
        operation.started_at = datetime.utcnow()

        for index, resource_id in enumerate(identifiers, start=1):
            self.audit.info(f"[{index}/{total}] Processing {resource_id}")
            try:
                record = self.deleter.delete(resource_id)
            except DeletionInterrupted:
                self.audit.warn(f"Run interrupted by operator; {total - index + 1} resource(s) not processed")
                interrupted = True
                break
            except Exception as e:
                self.audit.error(f"Unexpected error processing {resource_id}: {e}")
                error = e
                break
            ledger.append(record)

        operation.completed_at = datetime.utcnow()
        operation.records = ledger.records
        operation.summary = BatchSummary.from_records(ledger.records, valid_count=total, invalid_count=invalid_count)

        if error is not None:
            operation.status = OperationStatus.ABORTED
        elif interrupted:
            operation.status = OperationStatus.INTERRUPTED
        elif operation.summary.failed_count > 0:
            operation.status = OperationStatus.FAILED
        else:
            operation.status = OperationStatus.COMPLETED
        logger.debug(f"Operation {operation.operation_id} took {operation.duration_seconds}s")

        summary = operation.summary
        message = (
            f"Run {operation.operation_id} {operation.status.value}: "
            f"{summary.succeeded_count} succeeded, {summary.failed_count} failed, "
            f"{summary.skipped_count} skipped, {summary.invalid_count} invalid"
        )
        if operation.exit_code:
            self.audit.error(message)
        else:
            self.audit.success(message)

        if error is not None:
            raise BatchAborted(operation) from error

        return operation
