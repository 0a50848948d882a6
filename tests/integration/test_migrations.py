from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

pytestmark = pytest.mark.integration

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _make_alembic_config() -> Config:
    """Return an Alembic config pointing at the project migrations."""
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return cfg


def test_alembic_upgrade_and_downgrade_cycle(tmp_path, monkeypatch):
    """Migrations upgrade base->head and cleanly downgrade back on SQLite."""
    url = f"sqlite:///{tmp_path / 'migrations.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = _make_alembic_config()

    command.upgrade(cfg, "head")
    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"users", "organizations", "organization_memberships", "topics", "events", "audit_logs"} <= tables
        uniques = inspect(engine).get_unique_constraints("organization_memberships")
        assert any(set(u["column_names"]) == {"user_id", "organization_id"} for u in uniques)

        command.downgrade(cfg, "base")
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}

        command.upgrade(cfg, "head")
        assert "topics" in set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
