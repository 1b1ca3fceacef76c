"""Alembic environment for the hotelops schema.

Revisions are plain SQL files executed through the connection, so there is
no SQLAlchemy metadata and autogenerate is not used. The target database
comes from DATABASE_URL (see env_helpers).
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from migrations.env_helpers import get_database_url

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def run_offline(url: str) -> None:
    """Emit the migration SQL instead of executing it (alembic upgrade --sql)."""
    context.configure(
        url=url,
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, target_metadata=None)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline(get_database_url())
else:
    run_online(get_database_url())
