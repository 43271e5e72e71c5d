"""
Alembic Environment

Migrations for the book reviewer schema. The database URL always comes from
the application settings (DATABASE_URL), never from alembic.ini.

Workflow:
=========
1. Change the models in bookreviewer/models/
2. alembic revision --autogenerate -m "what changed"
3. Review the file in alembic/versions/
4. alembic upgrade head
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from bookreviewer.config import get_settings
from bookreviewer.database import Base
import bookreviewer.models  # noqa: F401 - registers every table on Base.metadata

settings = get_settings()

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Emit SQL instead of executing it:

        alembic upgrade head --sql > migration.sql
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
