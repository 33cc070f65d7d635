import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from guestlist.config.database import create_engine
from guestlist.config.settings import settings
from guestlist.models.base import BaseModel

# Every ORM module must be imported so its tables are on the metadata.
from guestlist.guests.repository import orm_models as guest_models  # noqa: F401
from guestlist.seating.repository import orm_models as seating_models  # noqa: F401
from guestlist.weddings.repository import orm_models as wedding_models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = BaseModel.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = create_engine(settings.database_url)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
