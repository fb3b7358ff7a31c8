"""Approval workflow module.

Implements the sequential multi-step approval state machine, the approval
line ledger and the document store.
"""

from .states import (
    DocumentState,
    DocumentTransition,
    LineStatus,
    Decision,
    DocumentType,
    Priority,
)
from .errors import (
    ApprovalError,
    ValidationError,
    NotFoundError,
    PermissionDeniedError,
    OutOfOrderError,
    ConflictError,
    InvalidTransitionError,
)
from .machine import DocumentStateMachine
from .ledger import ApprovalLedger, ApproverSpec
from .store import ApprovalDocumentStore
from .engine import ApprovalEngine, DocumentWithLines, DocumentLocks

__all__ = [
    "DocumentState",
    "DocumentTransition",
    "LineStatus",
    "Decision",
    "DocumentType",
    "Priority",
    "ApprovalError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "OutOfOrderError",
    "ConflictError",
    "InvalidTransitionError",
    "DocumentStateMachine",
    "ApprovalLedger",
    "ApproverSpec",
    "ApprovalDocumentStore",
    "ApprovalEngine",
    "DocumentWithLines",
    "DocumentLocks",
]
