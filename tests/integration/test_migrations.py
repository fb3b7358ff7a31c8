"""Test Alembic migrations against a throwaway SQLite database."""

import os

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect


ALEMBIC_INI = os.path.join(os.path.dirname(__file__), "..", "..", "alembic.ini")

EXPECTED_TABLES = {
    "users",
    "approval_documents",
    "approval_lines",
    "approval_history",
    "notifications",
}


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


def _alembic_cfg(database_url: str) -> Config:
    cfg = Config(ALEMBIC_INI)
    cfg.set_main_option("script_location", os.path.join(os.path.dirname(ALEMBIC_INI), "groupware", "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


@pytest.mark.integration
class TestMigrations:
    """Run upgrade, verify, downgrade."""

    def test_upgrade_creates_tables(self, database_url):
        command.upgrade(_alembic_cfg(database_url), "head")

        engine = create_engine(database_url)
        inspector = inspect(engine)
        assert EXPECTED_TABLES <= set(inspector.get_table_names())

        constraints = inspector.get_unique_constraints("approval_lines")
        assert any(set(c["column_names"]) == {"document_id", "order"} for c in constraints)
        engine.dispose()

    def test_downgrade_drops_tables(self, database_url):
        cfg = _alembic_cfg(database_url)
        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine = create_engine(database_url)
        assert not EXPECTED_TABLES & set(inspect(engine).get_table_names())
        engine.dispose()
