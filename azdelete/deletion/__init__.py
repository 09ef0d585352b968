"""Bulk deletion engine.

This module drives deletion of Azure resources listed in an input file, with
confirmation gating, retry with exponential backoff, and audit logging.

Classes:
    BatchOrchestrator: Runs the deletion state machine over a batch
    RetryingDeleter: Per-resource lookup/confirm/delete/verify state machine
    ConfirmationGate: Per-item and batch-wide operator confirmation
    AuditLog: Line-oriented audit event sink
    AuditStorage: YAML run record storage and retrieval
    ResultLedger: Ordered per-item outcomes
"""

from __future__ import annotations

from azdelete.deletion.audit import AuditLog, AuditStorage
from azdelete.deletion.confirmation import ConfirmationGate
from azdelete.deletion.deleter import RetryingDeleter
from azdelete.deletion.ledger import ResultLedger
from azdelete.deletion.orchestrator import BatchOrchestrator

__all__ = [
    "BatchOrchestrator",
    "RetryingDeleter",
    "ConfirmationGate",
    "AuditLog",
    "AuditStorage",
    "ResultLedger",
]
