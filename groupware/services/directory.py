"""User directory lookups used for display purposes."""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from groupware.db.models import User


@dataclass(frozen=True)
class UserIdentity:
    id: int
    name: str
    department: Optional[str] = None
    position: Optional[str] = None


class UserDirectory:
    """Read-only view over the users table."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_user(self, user_id: int) -> Optional[UserIdentity]:
        user = self.db.query(User).filter(User.id == user_id).first()
        return _to_identity(user) if user else None

    def resolve_many(self, user_ids: Iterable[int]) -> Dict[int, UserIdentity]:
        ids = set(user_ids)
        if not ids:
            return {}
        users = self.db.query(User).filter(User.id.in_(ids)).all()
        return {user.id: _to_identity(user) for user in users}


def _to_identity(user: User) -> UserIdentity:
    return UserIdentity(
        id=user.id,
        name=user.name,
        department=user.department,
        position=user.position,
    )
