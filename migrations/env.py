"""Alembic environment for TaskForPerks.

Migrations run in-process: `taskforperks.database.init_db` hands over its
open connection through `config.attributes["connection"]`. Offline mode
renders the DDL for the dialect named by `sqlalchemy.url`, e.g. to review
the PostgreSQL schema without a server.
"""

from __future__ import annotations

from alembic import context
from sqlmodel import SQLModel

from taskforperks.db_models import *  # noqa: F401, F403

config = context.config
target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is None:
        raise RuntimeError(
            "Run migrations through taskforperks.database.init_db(), "
            "or offline with a sqlalchemy.url"
        )
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # SQLite cannot ALTER most column properties in place
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
