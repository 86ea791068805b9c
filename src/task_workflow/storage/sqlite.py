"""SQLite connection policy and schema migration for the workflow store."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import create_engine

PROJECT_ROOT = Path(__file__).resolve().parents[3]

# foreign_keys is per-connection in SQLite, so every new connection needs it.
_CONNECTION_PRAGMAS = ("journal_mode = WAL", "foreign_keys = ON")


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; everything stored is UTC."""

    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def workflow_engine(db_path: Path, *, busy_timeout_ms: int) -> Engine:
    """Engine for the workflow DB: no pooling, WAL journal, enforced foreign keys."""

    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False, "timeout": busy_timeout_ms / 1000.0},
        poolclass=NullPool,
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        for pragma in (*_CONNECTION_PRAGMAS, f"busy_timeout = {busy_timeout_ms}"):
            cursor.execute(f"PRAGMA {pragma}")
        cursor.close()

    return engine


def migrate_to_head(db_path: Path) -> None:
    """Bring the workflow schema at ``db_path`` to the latest Alembic revision."""

    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    command.upgrade(config, "head")
