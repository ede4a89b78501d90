"""Alembic environment for the Campus Crew schema.

``alembic.ini`` puts ``src/`` on the path. The database URL comes from
``ALEMBIC_URL`` when set, then from the ini file, then from the
application settings, so migrations and the API agree on one database.
"""
from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from campus_crew.core.settings import settings
from campus_crew.db.session import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def _database_url() -> str:
    override = os.getenv("ALEMBIC_URL")
    if override:
        return override
    return config.get_main_option("sqlalchemy.url") or settings.database_url_sync


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def include_object(obj, name, type_, reflected, compare_to):  # type: ignore[no-untyped-def]
    """Skip Alembic bookkeeping and tables the models no longer declare."""
    if type_ == "table":
        if name == "alembic_version":
            return False
        if reflected and compare_to is None:
            logger.info("Ignoring unmanaged table %s", name)
            return False
    return True


def _configure_options(url: str) -> dict[str, object]:
    # SQLite cannot ALTER most columns in place; batch mode rebuilds the table.
    return {
        "target_metadata": target_metadata,
        "include_object": include_object,
        "compare_type": True,
        "render_as_batch": _is_sqlite(url),
    }


def run_migrations_offline(url: str) -> None:
    """Emit the migration SQL for ``url`` without connecting."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    """Apply migrations over a fresh, unpooled connection."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = url
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))

        with context.begin_transaction():
            context.run_migrations()


database_url = _database_url()
logger.info("Migrating %s", make_url(database_url).render_as_string(hide_password=True))

if context.is_offline_mode():
    run_migrations_offline(database_url)
else:
    run_migrations_online(database_url)
