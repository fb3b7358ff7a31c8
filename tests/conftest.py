"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from groupware.api.deps import get_db
from groupware.api.main import app
from groupware.db.base import Base
import groupware.db.models  # noqa: F401

from tests.factories import create_user


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh in-memory schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """API client bound to the test session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def author(db_session):
    user = create_user(db_session, name="Park Seoyeon", department="Sales", position="Associate")
    db_session.commit()
    return user


@pytest.fixture
def approvers(db_session):
    """Three approvers in sign-off order."""
    users = [
        create_user(db_session, name="Kim Minsu", department="Sales", position="Manager"),
        create_user(db_session, name="Lee Jiwon", department="Finance", position="Director"),
        create_user(db_session, name="Choi Hana", department="Management", position="CEO"),
    ]
    db_session.commit()
    return users


@pytest.fixture
def outsider(db_session):
    user = create_user(db_session, name="Jung Wooseok")
    db_session.commit()
    return user
