"""Alembic environment for the directory store and the audit tables.

The store URL comes from data_audit.config.load_settings(), the same source
the CLI and API read. `alembic -x database_url=...` overrides it for one run,
the way `data-audit --database-url` does.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlmodel import SQLModel, create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Table classes must be imported for autogenerate to see them
from data_audit.models.directory import Case, Court, CourtAssignment, Judge  # noqa: F401, E402
from data_audit.models.remediation import RemediationRun  # noqa: F401, E402
from data_audit.models.snapshot import DataSnapshotRecord  # noqa: F401, E402

target_metadata = SQLModel.metadata

from data_audit.config import load_settings  # noqa: E402
from data_audit.db.database import get_database_url  # noqa: E402


def _store_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("database_url")
    return get_database_url(load_settings(database_url=override))


def run_migrations_offline() -> None:
    """Emit the migration SQL for the store without connecting."""
    context.configure(
        url=_store_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # SQLite ALTER TABLE
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations to the store."""
    connectable = create_engine(_store_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
