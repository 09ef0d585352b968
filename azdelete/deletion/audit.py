"""Audit logging for deletion runs.

AuditLog is the append-only, line-oriented event sink written while a run is in
progress. AuditStorage keeps a YAML record of each completed run for compliance
and troubleshooting.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from rich.console import Console
from rich.markup import escape

from azdelete.models.deletion_operation import DeletionOperation

logger = logging.getLogger(__name__)


class AuditSeverity(Enum):
    """Audit line severity."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


_LOG_LEVELS = {
    AuditSeverity.INFO: logging.INFO,
    AuditSeverity.WARN: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
    AuditSeverity.SUCCESS: logging.INFO,
}

_CONSOLE_STYLES = {
    AuditSeverity.INFO: "white",
    AuditSeverity.WARN: "yellow",
    AuditSeverity.ERROR: "bold red",
    AuditSeverity.SUCCESS: "green",
}


class AuditLog:
    """Append-only audit event sink.

    Each event becomes one line ``<timestamp> [<SEVERITY>] <message>`` in the
    log file and is echoed to the console when one is attached, otherwise
    mirrored to the Python logger.

    Attributes:
        log_path: Audit log file (None to keep events in memory only)
        console: Rich console for real-time echo (optional)
        entries: Lines written during this session
    """

    def __init__(self, log_path: Optional[Union[str, Path]] = None, console: Optional[Console] = None) -> None:
        self.log_path = Path(log_path) if log_path else None
        self.console = console
        self.entries: list[str] = []

        if self.log_path:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, severity: AuditSeverity, message: str) -> None:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} [{severity.value}] {message}"
        self.entries.append(line)

        if self.log_path:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

        if self.console:
            self.console.print(f"[{_CONSOLE_STYLES[severity]}]{escape(line)}[/]")
        else:
            logger.log(_LOG_LEVELS[severity], message)

    def info(self, message: str) -> None:
        self.write(AuditSeverity.INFO, message)

    def warn(self, message: str) -> None:
        self.write(AuditSeverity.WARN, message)

    def error(self, message: str) -> None:
        self.write(AuditSeverity.ERROR, message)

    def success(self, message: str) -> None:
        self.write(AuditSeverity.SUCCESS, message)


class AuditStorage:
    """Audit record storage and retrieval.

    Stores one YAML file per run, organized by year/month.

    Storage structure:
        ~/.azdelete/audit-logs/
            2026/
                10/
                    operation-op_123.yaml
                    operation-op_456.yaml

    Attributes:
        storage_dir: Base directory for audit records
    """

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit records (default: ~/.azdelete/audit-logs)
        """
        if storage_dir is None:
            storage_dir = str(Path.home() / ".azdelete" / "audit-logs")

        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_operation(self, operation: DeletionOperation) -> Path:
        """Write the audit record for a run.

        Overwrites an existing record with the same operation ID.

        Args:
            operation: Completed deletion operation

        Returns:
            Path of the written YAML file
        """
        year_month_dir = self.storage_dir / str(operation.timestamp.year) / f"{operation.timestamp.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        summary = operation.summary
        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "bulk_resource_deletion",
                "created_at": datetime.utcnow().isoformat() + "Z",
            },
            "operation": {
                "operation_id": operation.operation_id,
                "timestamp": operation.timestamp.isoformat() + "Z",
                "input_file": operation.input_file,
                "subscription_id": operation.subscription_id,
                "subscription_name": operation.subscription_name,
                "mode": operation.mode.value,
                "forced": operation.forced,
                "status": operation.status.value,
                "valid_count": summary.valid_count,
                "invalid_count": summary.invalid_count,
                "succeeded_count": summary.succeeded_count,
                "failed_count": summary.failed_count,
                "skipped_count": summary.skipped_count,
                "started_at": operation.started_at.isoformat() + "Z" if operation.started_at else None,
                "completed_at": operation.completed_at.isoformat() + "Z" if operation.completed_at else None,
                "duration_seconds": operation.duration_seconds,
            },
            "records": [
                {
                    "resource_id": record.resource_id,
                    "status": record.status.value,
                    "timestamp": record.timestamp.isoformat() + "Z",
                    "attempts": record.attempts,
                    "error_message": record.error_message,
                    "note": record.note,
                    "resource_name": record.resource_name,
                    "resource_type": record.resource_type,
                }
                for record in operation.records
            ],
        }

        audit_file = year_month_dir / f"operation-{operation.operation_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)

        return audit_file

    def get_operation(self, operation_id: str) -> Optional[dict]:
        """Retrieve a run's audit record by ID.

        Args:
            operation_id: Operation ID to retrieve

        Returns:
            Audit record dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/operation-{operation_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)

        return None

    def query_operations(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> list[dict]:
        """Query runs within a date range.

        Args:
            since: Start date (inclusive), None for all
            until: End date (inclusive), None for all

        Returns:
            Audit records matching criteria, oldest first
        """
        results = []

        for audit_file in sorted(self.storage_dir.glob("*/*/operation-*.yaml")):
            with open(audit_file, "r") as f:
                audit_data = yaml.safe_load(f)

            timestamp = datetime.fromisoformat(audit_data["operation"]["timestamp"].rstrip("Z"))

            if since and timestamp < since:
                continue
            if until and timestamp > until:
                continue

            results.append(audit_data)

        results.sort(key=lambda d: d["operation"]["timestamp"])
        return results
