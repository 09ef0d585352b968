"""Tests for AuditLog and AuditStorage classes.

Test coverage for line-oriented audit events and YAML run record storage.
"""

from __future__ import annotations

import re
from datetime import datetime
from io import StringIO
from pathlib import Path

import pytest
import yaml
from rich.console import Console

from azdelete.deletion.audit import AuditLog, AuditSeverity, AuditStorage
from azdelete.models.deletion_operation import BatchSummary, DeletionOperation, OperationMode, OperationStatus
from azdelete.models.deletion_record import DeletionRecord, DeletionStatus
from tests.fixtures.resources import make_resource_id

LINE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[(INFO|WARN|ERROR|SUCCESS)\] .+$")


def _operation(operation_id: str, timestamp: datetime, status: OperationStatus = OperationStatus.COMPLETED):
    records = [
        DeletionRecord(
            resource_id=make_resource_id("acct1"),
            timestamp=timestamp,
            status=DeletionStatus.SUCCESS,
            attempts=1,
        ),
        DeletionRecord(
            resource_id=make_resource_id("acct2"),
            timestamp=timestamp,
            status=DeletionStatus.FAILED,
            attempts=3,
            error_message="Delete failed (permanent): AuthorizationFailed",
        ),
    ]
    return DeletionOperation(
        operation_id=operation_id,
        timestamp=timestamp,
        mode=OperationMode.EXECUTE,
        status=status,
        summary=BatchSummary.from_records(records, valid_count=2, invalid_count=1),
        records=records,
        input_file="ids.csv",
        subscription_id="11111111-1111-1111-1111-111111111111",
        subscription_name="Dev",
        started_at=timestamp,
        completed_at=timestamp,
    )


class TestAuditLog:
    """Test suite for AuditLog."""

    def test_lines_are_appended_with_severity(self, tmp_path: Path) -> None:
        """Test each event is one timestamped, severity-tagged line."""
        log_path = tmp_path / "logs" / "run.log"
        audit = AuditLog(log_path)

        audit.info("Starting")
        audit.warn("Invalid resource ID skipped")
        audit.error("Failed to delete")
        audit.success("Deleted")

        lines = log_path.read_text().splitlines()
        assert len(lines) == 4
        assert all(LINE_PATTERN.match(line) for line in lines)
        assert [line.split("[")[1].split("]")[0] for line in lines] == ["INFO", "WARN", "ERROR", "SUCCESS"]

    def test_existing_log_is_appended(self, tmp_path: Path) -> None:
        """Test the log file is never truncated."""
        log_path = tmp_path / "run.log"
        log_path.write_text("previous line\n")

        AuditLog(log_path).info("next")

        lines = log_path.read_text().splitlines()
        assert lines[0] == "previous line"
        assert lines[1].endswith("[INFO] next")

    def test_in_memory_when_no_path(self) -> None:
        """Test events are kept in memory without a file."""
        audit = AuditLog()

        audit.write(AuditSeverity.WARN, "hello")

        assert audit.log_path is None
        assert audit.entries[0].endswith("[WARN] hello")

    def test_echoes_to_console(self) -> None:
        """Test events are echoed to an attached console."""
        output = StringIO()
        audit = AuditLog(console=Console(file=output, no_color=True, width=200))

        audit.error("Something [bad] happened")

        assert "[ERROR] Something [bad] happened" in output.getvalue()


class TestAuditStorage:
    """Test suite for AuditStorage."""

    @pytest.fixture
    def audit_storage(self, tmp_path: Path) -> AuditStorage:
        return AuditStorage(storage_dir=str(tmp_path / "audit-logs"))

    def test_init_creates_storage_directory(self, tmp_path: Path) -> None:
        """Test initialization creates the storage directory."""
        storage_dir = tmp_path / "nested" / "audit-logs"

        AuditStorage(storage_dir=str(storage_dir))

        assert storage_dir.is_dir()

    def test_log_operation_creates_yaml_file(self, audit_storage: AuditStorage) -> None:
        """Test logging a run writes a YAML record under year/month."""
        operation = _operation("op_123", datetime(2026, 10, 19, 15, 30, 0))

        audit_file = audit_storage.log_operation(operation)

        assert audit_file == audit_storage.storage_dir / "2026" / "10" / "operation-op_123.yaml"
        with open(audit_file) as f:
            data = yaml.safe_load(f)

        assert data["metadata"]["log_type"] == "bulk_resource_deletion"
        assert data["operation"]["operation_id"] == "op_123"
        assert data["operation"]["status"] == "completed"
        assert data["operation"]["mode"] == "execute"
        assert data["operation"]["failed_count"] == 1
        assert data["operation"]["invalid_count"] == 1
        assert data["operation"]["duration_seconds"] == 0.0
        assert [r["status"] for r in data["records"]] == ["Success", "Failed"]
        assert data["records"][1]["attempts"] == 3

    def test_get_operation(self, audit_storage: AuditStorage) -> None:
        """Test retrieving a stored run by ID."""
        audit_storage.log_operation(_operation("op_abc", datetime(2026, 9, 1)))

        data = audit_storage.get_operation("op_abc")

        assert data is not None
        assert data["operation"]["subscription_name"] == "Dev"
        assert audit_storage.get_operation("op_missing") is None

    def test_query_operations_by_date(self, audit_storage: AuditStorage) -> None:
        """Test querying runs within a date range."""
        audit_storage.log_operation(_operation("op_1", datetime(2026, 8, 15)))
        audit_storage.log_operation(_operation("op_2", datetime(2026, 9, 15)))
        audit_storage.log_operation(_operation("op_3", datetime(2026, 10, 15)))

        all_ops = audit_storage.query_operations()
        ranged = audit_storage.query_operations(since=datetime(2026, 9, 1), until=datetime(2026, 9, 30))

        assert [d["operation"]["operation_id"] for d in all_ops] == ["op_1", "op_2", "op_3"]
        assert [d["operation"]["operation_id"] for d in ranged] == ["op_2"]

    def test_cancelled_run_stored(self, audit_storage: AuditStorage) -> None:
        """Test cancelled runs are recorded with no records."""
        operation = DeletionOperation(
            operation_id="op_cancel",
            timestamp=datetime(2026, 10, 19),
            mode=OperationMode.EXECUTE,
            status=OperationStatus.CANCELLED,
            summary=BatchSummary(valid_count=4, invalid_count=0),
        )

        audit_storage.log_operation(operation)
        data = audit_storage.get_operation("op_cancel")

        assert data["operation"]["status"] == "cancelled"
        assert data["operation"]["started_at"] is None
        assert data["records"] == []
