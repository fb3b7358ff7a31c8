"""Tests for the approval document state machine."""

import pytest

from groupware.core.approval import (
    ConflictError,
    DocumentState,
    DocumentStateMachine,
    DocumentTransition,
    InvalidTransitionError,
    PermissionDeniedError,
)


class TestDocumentStateMachine:
    """Test state machine transitions."""

    def test_initial_state(self):
        machine = DocumentStateMachine(1, DocumentState.DRAFTED, author_id=10)
        assert machine.state == DocumentState.DRAFTED
        assert not machine.is_terminal

    def test_step_then_final_approval(self):
        machine = DocumentStateMachine(1, DocumentState.DRAFTED, author_id=10)

        assert machine.transition(DocumentTransition.APPROVE_STEP, user_id=20) == DocumentState.ROUTING
        assert machine.transition(DocumentTransition.APPROVE_FINAL, user_id=21) == DocumentState.APPROVED
        assert machine.is_terminal

    def test_reject_from_routing(self):
        machine = DocumentStateMachine(1, DocumentState.ROUTING, author_id=10)
        assert machine.transition(DocumentTransition.REJECT, user_id=20) == DocumentState.REJECTED

    def test_terminal_state_refuses_transitions(self):
        machine = DocumentStateMachine(1, DocumentState.APPROVED, author_id=10)

        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.transition(DocumentTransition.WITHDRAW, user_id=10)

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.from_state == DocumentState.APPROVED
        assert exc_info.value.transition == DocumentTransition.WITHDRAW
        assert machine.state == DocumentState.APPROVED

    def test_withdraw_is_author_only(self):
        machine = DocumentStateMachine(1, DocumentState.ROUTING, author_id=10)

        with pytest.raises(PermissionDeniedError):
            machine.transition(DocumentTransition.WITHDRAW, user_id=99)
        assert machine.state == DocumentState.ROUTING

        machine.transition(DocumentTransition.WITHDRAW, user_id=10)
        assert machine.state == DocumentState.WITHDRAWN
