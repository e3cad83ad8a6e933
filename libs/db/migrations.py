"""Shared Alembic runner for the per-service migration environments.

Both services share one Postgres database, so each service keeps its own
version table and only autogenerates against the tables its models define.
"""

import asyncio
from types import ModuleType
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from libs.common.config import get_settings
from libs.db.base import Base


def owned_tables(models: ModuleType) -> set[str]:
    """Table names of the ORM classes exported by a service's models package."""
    tables = set()
    for name in getattr(models, "__all__", []):
        obj = getattr(models, name)
        if isinstance(obj, type) and issubclass(obj, Base) and hasattr(obj, "__table__"):
            tables.add(obj.__table__.name)
    return tables


def run_service_migrations(service: str, models: ModuleType) -> None:
    config = context.config
    tables = owned_tables(models)
    version_table = f"alembic_version_{service}"

    config.set_main_option(
        "sqlalchemy.url", get_settings().DATABASE_URL.replace("%", "%%")
    )

    def include_object(obj: Any, name: str, type_: str, reflected, compare_to) -> bool:
        if type_ == "table":
            return name in tables
        if type_ in ("index", "column", "foreign_key_constraint"):
            return obj.table.name in tables
        return True

    options = dict(
        target_metadata=Base.metadata,
        version_table=version_table,
        include_object=include_object,
    )

    if context.is_offline_mode():
        context.configure(
            url=config.get_main_option("sqlalchemy.url"),
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
            **options,
        )
        with context.begin_transaction():
            context.run_migrations()
        return

    def do_run_migrations(connection) -> None:
        context.configure(connection=connection, **options)
        with context.begin_transaction():
            context.run_migrations()

    async def run_online() -> None:
        connectable = async_engine_from_config(
            config.get_section(config.config_ini_section, {}),
            prefix="sqlalchemy.",
            poolclass=pool.NullPool,
            # psycopg auto-prepared statements clash across pooled migrations
            connect_args={"prepare_threshold": 0},
        )
        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)
        await connectable.dispose()

    asyncio.run(run_online())
