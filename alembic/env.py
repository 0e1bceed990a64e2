"""
Alembic migration environment.

Runs migrations through the application's async engine settings. Every model
module is imported so autogenerate sees the full metadata.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from sasm_ims.core.config import settings
from sasm_ims.core.database import Base
from sasm_ims.modules.applications import models as application_models  # noqa: F401
from sasm_ims.modules.archival import models as archival_models  # noqa: F401
from sasm_ims.modules.audit_logs import models as audit_log_models  # noqa: F401
from sasm_ims.modules.auth import models as auth_models  # noqa: F401
from sasm_ims.modules.leaves import models as leave_models  # noqa: F401
from sasm_ims.modules.notifications import models as notification_models  # noqa: F401
from sasm_ims.modules.office_profiles import models as office_profile_models  # noqa: F401
from sasm_ims.modules.users import models as user_models  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
