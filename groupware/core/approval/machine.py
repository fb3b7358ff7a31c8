"""Approval document state machine.

Validates document-level transitions against the transition table.
"""

from typing import Optional

from .errors import InvalidTransitionError, PermissionDeniedError
from .states import (
    DocumentState,
    DocumentTransition,
    get_transition_rule,
    TERMINAL_STATES,
)


class DocumentStateMachine:
    """
    State machine for one approval document.

    The machine only knows document states; line bookkeeping and the
    choice between approve_step and approve_final belong to the engine.
    """

    def __init__(
        self,
        document_id: int,
        current_state: DocumentState,
        *,
        author_id: Optional[int] = None,
    ):
        """
        Args:
            document_id: ID of the approval document
            current_state: Current document state
            author_id: Author of the document, checked for author-only transitions
        """
        self.document_id = document_id
        self._state = current_state
        self.author_id = author_id

    @property
    def state(self) -> DocumentState:
        """Current state of the document."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal (no further transitions)."""
        return self._state in TERMINAL_STATES

    def transition(self, transition: DocumentTransition, *, user_id: Optional[int] = None) -> DocumentState:
        """
        Perform a state transition.

        Args:
            transition: The transition to perform
            user_id: ID of user performing the transition

        Returns:
            The new state after transition

        Raises:
            InvalidTransitionError: If the transition is invalid from the current state
            PermissionDeniedError: If an author-only transition is attempted by someone else
        """
        rule = get_transition_rule(self._state, transition)
        if rule is None:
            raise InvalidTransitionError(
                f"Cannot perform {transition.value} on a {self._state.value} document",
                self._state,
                transition,
            )

        if rule.author_only and user_id != self.author_id:
            raise PermissionDeniedError(
                f"Only the author of document {self.document_id} may {transition.value} it"
            )

        self._state = rule.to_state
        return self._state
