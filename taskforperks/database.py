"""Async SQLModel database setup."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

import sqlalchemy
from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from taskforperks.db_models import Claim, Task  # noqa: F401

logger = logging.getLogger("taskforperks.database")

_engine: AsyncEngine | None = None
_session_factory = None

# Absolute path to the migrations directory (sibling of taskforperks/ package)
_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"
# Revision an untracked create_all schema corresponds to
_BASELINE_REVISION = "001"


def _is_memory_url(url: str) -> bool:
    return ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:")


# Connection execution option carrying the SQLite BEGIN mode
_BEGIN_MODE = "taskforperks_begin_mode"
_WRITE_OPTIONS = {_BEGIN_MODE: "IMMEDIATE"}


def _configure_sqlite(engine: AsyncEngine, *, wal: bool) -> None:
    """Let write sessions take the write lock at BEGIN; reads begin deferred."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(_BEGIN_MODE, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


def resolve_db_url(db_url: str) -> str:
    """Bare paths are SQLite files; anything with a scheme is used as-is."""
    if "://" in db_url:
        return db_url
    Path(db_url).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{db_url}"


def make_engine(url: str) -> AsyncEngine:
    connect_args = {}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = 30
    engine = create_async_engine(url, echo=False, connect_args=connect_args, pool_pre_ping=True)
    if is_sqlite:
        _configure_sqlite(engine, wal=not _is_memory_url(url))
    return engine


def make_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)  # type: ignore[call-overload]


async def begin_write(session: AsyncSession) -> None:
    """Open the session's transaction as a writer.

    On SQLite this is `BEGIN IMMEDIATE`: concurrent writers queue on the
    database lock instead of failing with SQLITE_BUSY part-way through, and
    the rows they read cannot change before they write. Must be the first
    thing done with a fresh session; other backends ignore the option.
    """
    if session.in_transaction():
        raise RuntimeError("begin_write() must run before the session is used")
    await session.connection(execution_options=_WRITE_OPTIONS)


async def init_db(url: str = "sqlite+aiosqlite:///taskforperks.db") -> None:
    global _engine, _session_factory
    _engine = make_engine(url)
    _session_factory = make_session_factory(_engine)

    async with _engine.begin() as conn:
        # Alembic's command API is synchronous
        await conn.run_sync(_upgrade_schema)


def _alembic_config(sync_conn) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
    # env.py picks this up instead of opening its own engine
    cfg.attributes["connection"] = sync_conn
    return cfg


def _upgrade_schema(sync_conn) -> None:
    """Bring the schema to head on a synchronous connection.

    A database built by create_all (tables but no alembic_version) is stamped
    at the baseline first, so its tables are not created twice.
    """
    cfg = _alembic_config(sync_conn)
    tables = set(sqlalchemy.inspect(sync_conn).get_table_names())

    if "alembic_version" not in tables:
        if "tasks" in tables:
            logger.info("Untracked schema found, stamping at %s", _BASELINE_REVISION)
            command.stamp(cfg, _BASELINE_REVISION)
        else:
            logger.info("Fresh database, running all migrations")
        command.upgrade(cfg, "head")
        return

    current = MigrationContext.configure(sync_conn).get_current_revision()
    head = ScriptDirectory.from_config(cfg).get_current_head()
    if current == head:
        logger.debug("Schema is up to date at revision %s", current)
        return
    logger.info("Upgrading schema from %s to %s", current or "(empty)", head)
    command.upgrade(cfg, "head")


async def close_db() -> None:
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    assert _session_factory is not None, "Database not initialised, call init_db() first"
    async with _session_factory() as session:
        yield session


def get_session_factory() -> sessionmaker:
    assert _session_factory is not None
    return _session_factory
