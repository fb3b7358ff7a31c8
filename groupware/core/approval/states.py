"""Approval document states and transitions.

State Machine Diagram:

    ┌──────────┐
    │ DRAFTED  │ ← Initial state (document submitted with its approval lines)
    └────┬─────┘
         │ approve_step
    ┌────▼─────┐
    │ ROUTING  │ ← at least one line approved, more to go
    └────┬─────┘
         │
         ├──────────────────┐
         │ approve_final    │ reject
    ┌────▼─────┐      ┌─────▼────┐
    │ APPROVED │      │ REJECTED │
    └──────────┘      └──────────┘

DRAFTED and ROUTING are both "in flight": approve_final, reject and
withdraw are valid from either.
WITHDRAWN: the author pulled the document back before a final decision.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class DocumentState(str, Enum):
    """Aggregate status of an approval document."""

    DRAFTED = "drafted"
    ROUTING = "routing"

    # Terminal states
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class LineStatus(str, Enum):
    """Status of a single approval line."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentTransition(str, Enum):
    """Actions that move a document between states."""

    APPROVE_STEP = "approve_step"    # a line approved, others still pending
    APPROVE_FINAL = "approve_final"  # the last line approved
    REJECT = "reject"
    WITHDRAW = "withdraw"


class Decision(str, Enum):
    """What an approver does with their line."""

    APPROVE = "approve"
    REJECT = "reject"


class DocumentType(str, Enum):
    GENERAL = "general"
    EXPENSE = "expense"
    LEAVE = "leave"
    BUSINESS_TRIP = "business_trip"
    PURCHASE = "purchase"


class Priority(str, Enum):
    NORMAL = "normal"
    IMPORTANT = "important"
    URGENT = "urgent"


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: DocumentState
    to_state: DocumentState
    transition: DocumentTransition
    author_only: bool = False


TRANSITION_RULES: list[TransitionRule] = []

for _state in (DocumentState.DRAFTED, DocumentState.ROUTING):
    TRANSITION_RULES.extend([
        TransitionRule(_state, DocumentState.ROUTING, DocumentTransition.APPROVE_STEP),
        TransitionRule(_state, DocumentState.APPROVED, DocumentTransition.APPROVE_FINAL),
        TransitionRule(_state, DocumentState.REJECTED, DocumentTransition.REJECT),
        TransitionRule(_state, DocumentState.WITHDRAWN, DocumentTransition.WITHDRAW, author_only=True),
    ])

# Lookup table
TRANSITION_TARGETS: Dict[tuple[DocumentState, DocumentTransition], TransitionRule] = {}

for rule in TRANSITION_RULES:
    TRANSITION_TARGETS[(rule.from_state, rule.transition)] = rule


# No outgoing transitions
TERMINAL_STATES: Set[DocumentState] = {
    DocumentState.APPROVED,
    DocumentState.REJECTED,
    DocumentState.WITHDRAWN,
}


def get_transition_rule(from_state: DocumentState, transition: DocumentTransition) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, transition))
