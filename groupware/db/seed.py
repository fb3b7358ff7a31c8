"""Database seeding for local development.

Creates the tables and a small user directory to route documents through.
"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from groupware.db.base import Base
from groupware.db.models import User


DEFAULT_USERS = [
    {"name": "Admin", "email": "admin@example.com", "department": "Management", "position": "CEO"},
    {"name": "Kim Minsu", "email": "minsu.kim@example.com", "department": "Sales", "position": "Manager"},
    {"name": "Lee Jiwon", "email": "jiwon.lee@example.com", "department": "Finance", "position": "Director"},
    {"name": "Park Seoyeon", "email": "seoyeon.park@example.com", "department": "Sales", "position": "Associate"},
]


def seed_users(db: Session, users: Optional[Iterable[dict]] = None) -> dict[str, User]:
    """
    Create directory users, keyed by email.

    Idempotent - users that already exist are returned unchanged.

    Args:
        db: Database session
        users: User attribute dicts; DEFAULT_USERS when omitted

    Returns:
        Dict mapping email to User object
    """
    seeded = {}

    for attrs in users if users is not None else DEFAULT_USERS:
        existing = db.query(User).filter(User.email == attrs["email"]).first()
        if existing:
            seeded[attrs["email"]] = existing
            continue

        user = User(**attrs)
        db.add(user)
        seeded[attrs["email"]] = user

    db.flush()
    return seeded


# CLI script for seeding
if __name__ == "__main__":
    from groupware.db.session import SessionLocal, engine

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        users = seed_users(db)
        db.commit()
        print(f"Seeded {len(users)} users:")
        for user in users.values():
            print(f"  - {user.id}: {user.name} ({user.department}, {user.position})")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
