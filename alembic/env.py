"""
Alembic environment for the HomeBase schema.

The database URL comes from the same config class the app uses (FLASK_ENV
selects it), so `alembic upgrade head` targets whatever DATABASE_URL the
service would open.
"""

import os
import sys
from logging.config import fileConfig

from sqlalchemy import pool, create_engine
from alembic import context

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_config
from database.connection import Base
from database import models  # noqa: F401 - registers the tables on Base.metadata

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

target_metadata = Base.metadata


def database_url():
    """DATABASE_URL as the app would resolve it (postgres:// already normalized)."""
    url = get_config().DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is not configured; nothing to migrate")
    return url


def _configure(**kwargs):
    url = kwargs.get('url')
    connection = kwargs.get('connection')
    dialect = connection.dialect.name if connection is not None else url.split(':', 1)[0]
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite can't ALTER most constraints in place
        render_as_batch=dialect.startswith('sqlite'),
        **kwargs
    )


def run_migrations_offline():
    """Emit the migration SQL without connecting."""
    _configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Connect and migrate in one transaction."""
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
