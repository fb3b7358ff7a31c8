"""Errors raised by the approval workflow.

Every error carries a stable ``code`` so callers can render a specific
explanation ("not your turn" vs. "not found").
"""


class ApprovalError(Exception):
    """Base class for approval workflow errors."""

    code = "approval_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApprovalError):
    """Malformed input: no approvers, duplicate orders, missing fields."""

    code = "validation_error"


class NotFoundError(ApprovalError):
    """Referenced document or line does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(ApprovalError):
    """Actor is not an approver on the document, or not its author."""

    code = "permission_denied"


class OutOfOrderError(ApprovalError):
    """Actor holds a pending line but an earlier line is undecided."""

    code = "out_of_order"


class ConflictError(ApprovalError):
    """Line already decided, or document already terminal."""

    code = "conflict"


class InvalidTransitionError(ConflictError):
    """The transition table does not allow this move."""

    def __init__(self, message: str, from_state, transition):
        super().__init__(message)
        self.from_state = from_state
        self.transition = transition
