"""Deletion record model.

Outcome of processing a single resource identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DeletionStatus(Enum):
    """Terminal outcome for one resource."""

    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class DeletionRecord:
    """Deletion record entity.

    One record is created per processed identifier and appended to the result
    ledger. Records are never mutated after creation.

    Validation rules:
        - status=Failed: requires error_message
        - status=Success: no error_message
        - attempts must be >= 0

    Attributes:
        resource_id: Resource identifier as supplied in the input file
        status: Terminal outcome (Success, Failed, Skipped)
        timestamp: When the outcome was reached (UTC)
        attempts: Delete attempts performed (0 when nothing was deleted)
        error_message: Last failure reason if failed (optional)
        note: Explanation for success/skip, e.g. "already absent" (optional)
        resource_name: Display name from lookup (optional)
        resource_type: Resource type from lookup (optional)
    """

    resource_id: str
    status: DeletionStatus
    timestamp: datetime
    attempts: int = 0
    error_message: Optional[str] = None
    note: Optional[str] = None
    resource_name: Optional[str] = None
    resource_type: Optional[str] = None

    def validate(self) -> bool:
        """Validate record invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == DeletionStatus.FAILED:
            if not self.error_message:
                raise ValueError("Failed status requires error_message")
        elif self.status == DeletionStatus.SUCCESS:
            if self.error_message:
                raise ValueError("Success status cannot have an error message")

        if self.attempts < 0:
            raise ValueError("Attempts cannot be negative")

        return True

    def to_ledger_row(self) -> dict[str, str]:
        """Row for the result ledger CSV."""
        return {
            "ResourceId": self.resource_id,
            "Status": self.status.value,
            "Timestamp": self.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        }
