"""Alembic environment for the CRM database.

Migrations run synchronously against DATABASE_URL with the async driver
stripped (postgresql+asyncpg -> postgresql).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import src.crm.meetings.models  # noqa: F401
import src.crm.models.people  # noqa: F401
from src.crm.config import get_settings
from src.crm.core.database import Base

# Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = get_settings().get_sync_database_url()

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = get_settings().get_sync_database_url()

    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
