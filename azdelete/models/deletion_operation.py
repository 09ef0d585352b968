"""Deletion operation model.

Represents one bulk deletion run with its mode, terminal status and summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from azdelete.models.deletion_record import DeletionRecord, DeletionStatus


class OperationMode(Enum):
    """Operation execution mode."""

    PREVIEW = "what-if"
    EXECUTE = "execute"


class OperationStatus(Enum):
    """Terminal status of a run."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"
    ABORTED = "aborted"


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate counts for a run, derived from the ledger once at the end.

    Attributes:
        valid_count: Syntactically valid identifiers fed to the orchestrator
        invalid_count: Identifiers rejected by validation
        succeeded_count: Records with Success status
        failed_count: Records with Failed status
        skipped_count: Records with Skipped status
    """

    valid_count: int
    invalid_count: int
    succeeded_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    @classmethod
    def from_records(cls, records: list[DeletionRecord], valid_count: int, invalid_count: int = 0) -> BatchSummary:
        """Compute summary counts from ledger records."""
        return cls(
            valid_count=valid_count,
            invalid_count=invalid_count,
            succeeded_count=sum(1 for r in records if r.status == DeletionStatus.SUCCESS),
            failed_count=sum(1 for r in records if r.status == DeletionStatus.FAILED),
            skipped_count=sum(1 for r in records if r.status == DeletionStatus.SKIPPED),
        )

    @property
    def processed_count(self) -> int:
        return self.succeeded_count + self.failed_count + self.skipped_count


@dataclass
class DeletionOperation:
    """Deletion operation entity.

    State transitions:
        executing → completed (no item failed)
        executing → failed (at least one item failed)
        executing → cancelled (batch confirmation declined, nothing attempted)
        executing → interrupted (operator interrupt stopped the run)
        executing → aborted (unexpected error stopped the run)

    Attributes:
        operation_id: Unique identifier for the run
        timestamp: When the run was initiated (UTC)
        mode: what-if or execute
        status: Terminal status
        summary: Aggregate counts
        records: Ordered ledger of per-item outcomes
        forced: Whether confirmation prompts were suppressed
        input_file: Path of the input file (optional)
        subscription_id: Active subscription (optional)
        subscription_name: Active subscription display name (optional)
        started_at: When processing started (optional)
        completed_at: When processing completed (optional)
    """

    operation_id: str
    timestamp: datetime
    mode: OperationMode
    status: OperationStatus
    summary: BatchSummary
    records: list[DeletionRecord] = field(default_factory=list)
    forced: bool = False
    input_file: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription_name: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def exit_code(self) -> int:
        """Process exit status for this run.

        Cancelled runs exit 0 since nothing was attempted. Otherwise the run
        fails when an item failed or the run was interrupted or aborted.
        Skipped and invalid identifiers do not affect the exit status.
        """
        if self.status in (OperationStatus.FAILED, OperationStatus.INTERRUPTED, OperationStatus.ABORTED):
            return 1
        return 0

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - completed runs have exactly one record per valid identifier
            - status=failed iff failed_count > 0 (completed runs only)
            - cancelled runs have no records
            - completed_at must be after started_at

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.summary.processed_count != len(self.records):
            raise ValueError("Summary counts don't match ledger")

        if self.status in (OperationStatus.COMPLETED, OperationStatus.FAILED):
            if len(self.records) != self.summary.valid_count:
                raise ValueError("Ledger must hold one record per valid identifier")
            if (self.summary.failed_count > 0) != (self.status == OperationStatus.FAILED):
                raise ValueError("Failed status must match failed count")

        if self.status == OperationStatus.CANCELLED and self.records:
            raise ValueError("Cancelled run cannot have records")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        return True
