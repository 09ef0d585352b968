"""Input identifier loading and result ledger output.

Reads candidate identifiers from a CSV file, splits them into valid and invalid
sets, and writes the per-item outcome ledger at the end of a run.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from azdelete.models.deletion_record import DeletionRecord
from azdelete.models.resource_id import ResourceIdentifier, is_valid_resource_id

IDENTIFIER_COLUMN = "ResourceId"
LEDGER_COLUMNS = ["ResourceId", "Status", "Timestamp"]


class InputFileError(Exception):
    """Raised when the input file cannot supply any identifiers."""


@dataclass
class IdentifierBatch:
    """Identifiers read from an input file.

    Attributes:
        column: Header of the column the identifiers came from
        valid: Parsed identifiers, in input order
        invalid: Raw values that failed validation, in input order
    """

    column: str
    valid: list[ResourceIdentifier] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)


def find_identifier_column(headers: list[str]) -> Optional[str]:
    """Pick the identifier column from a header row.

    An exact "ResourceId" header wins; otherwise the first header ending in
    "Id" or "id" is used.
    """
    if IDENTIFIER_COLUMN in headers:
        return IDENTIFIER_COLUMN

    for header in headers:
        if header.endswith(("Id", "id")):
            return header

    return None


def load_identifiers(filepath: Union[str, Path]) -> IdentifierBatch:
    """Read and validate identifiers from a CSV file.

    Surrounding whitespace is stripped before validation; blank cells are
    counted as invalid.

    Args:
        filepath: Input CSV path

    Returns:
        IdentifierBatch with valid and invalid identifiers

    Raises:
        InputFileError: If the file is unreadable, empty, or has no identifier column
    """
    path = Path(filepath)

    try:
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            headers = [h.strip() for h in (reader.fieldnames or [])]
            rows = list(reader)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputFileError(f"Cannot read input file {path}: {e}") from e

    if not headers:
        raise InputFileError(f"Input file {path} is empty")

    column = find_identifier_column(headers)
    if column is None:
        raise InputFileError(f"No resource identifier column found in {path} (columns: {', '.join(headers)})")

    if not rows:
        raise InputFileError(f"Input file {path} has no data rows")

    # DictReader keys keep the original (unstripped) header text
    raw_column = (reader.fieldnames or [])[headers.index(column)]

    batch = IdentifierBatch(column=column)
    for row in rows:
        value = (row.get(raw_column) or "").strip()
        if is_valid_resource_id(value):
            batch.valid.append(ResourceIdentifier.parse(value))
        else:
            batch.invalid.append(value)

    return batch


class ResultLedger:
    """Ordered, append-only sequence of per-item outcomes.

    Insertion order is processing order.
    """

    def __init__(self, records: Optional[Iterable[DeletionRecord]] = None) -> None:
        self._records: list[DeletionRecord] = list(records or [])

    def append(self, record: DeletionRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[DeletionRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def write_csv(self, filepath: Union[str, Path]) -> Path:
        """Write the ledger as CSV with ResourceId, Status and Timestamp columns.

        Args:
            filepath: Output file path

        Returns:
            Path of the written file
        """
        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=LEDGER_COLUMNS)
            writer.writeheader()

            for record in self._records:
                writer.writerow(record.to_ledger_row())

        return output_path
