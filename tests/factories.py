"""Factory functions for creating test database records.

Each factory adds its records to the session and flushes so that generated
fields (id, created_at) are populated. Fields have sensible defaults and can
be overridden via keyword arguments.

Usage::

    from tests.factories import create_user, submit_document

    def test_something(db_session):
        author = create_user(db_session)
        approver = create_user(db_session)
        document = submit_document(db_session, author, [approver])
        assert document.status == "drafted"
"""

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from groupware.core.approval import ApprovalEngine, ApproverSpec
from groupware.db.models import ApprovalDocument, User


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def create_user(
    session: Session,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    department: Optional[str] = None,
    position: Optional[str] = None,
    is_active: bool = True,
) -> User:
    n = _next_id()
    user = User(
        name=name or f"Test User {n}",
        email=email or f"user{n}@example.com",
        department=department,
        position=position,
        is_active=is_active,
    )
    session.add(user)
    session.flush()
    return user


# ---------------------------------------------------------------------------
# Approval documents
# ---------------------------------------------------------------------------


def submit_document(
    session: Session,
    author: User,
    approvers: Sequence[User],
    *,
    title: Optional[str] = None,
    content: str = "Please review.",
    engine: Optional[ApprovalEngine] = None,
    **kwargs,
) -> ApprovalDocument:
    """Submit a document routed through ``approvers`` in list order."""
    n = _next_id()
    engine = engine or ApprovalEngine(session)
    return engine.submit_approval(
        author.id,
        title or f"Expense report {n}",
        content,
        approvers=[ApproverSpec(user_id=u.id, order=i) for i, u in enumerate(approvers, start=1)],
        **kwargs,
    )
