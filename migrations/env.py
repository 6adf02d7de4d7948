import asyncio
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core.utils.config import construct_prod_settings
from app.types.sqlalchemy import Base
from app.utils.state import get_database_url, init_engine

config = context.config

if config.config_file_name is not None:
    # Existing loggers, including the application ones, are kept
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

# Every models_*.py file is imported so that autogenerate sees all the tables (do not remove)
for models_file in Path().glob("app/**/models_*.py"):
    __import__(".".join(models_file.with_suffix("").parts))


def run_migrations_offline() -> None:
    """
    Emit the migrations as SQL without connecting to the database: `alembic upgrade head --sql`
    """
    context.configure(
        url=get_database_url(construct_prod_settings()),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # `TZDateTime` is written without the `app.types.sqlalchemy.` prefix in generated revisions
        # See https://alembic.sqlalchemy.org/en/latest/autogenerate.html#controlling-the-module-prefix
        user_module_prefix="",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations(connection: AsyncConnection) -> None:
    # SQLAlchemy does not support inspection on an AsyncConnection, Alembic must run inside `run_sync`
    # See https://alembic.sqlalchemy.org/en/latest/cookbook.html#programmatic-api-use-connection-sharing-with-asyncio
    await connection.run_sync(do_run_migrations)


async def run_migrations_from_cli() -> None:
    """
    Alembic was invoked from the command line: migrate the production database
    """
    connectable = init_engine(construct_prod_settings())

    async with connectable.connect() as connection:
        await run_async_migrations(connection)
    await connectable.dispose()


def run_migrations_online() -> None:
    """
    Run migrations on a live connection.

    At startup, `app.app.update_db_tables` passes a synchronous `Connection` in the `connection` attribute
    (see https://alembic.sqlalchemy.org/en/latest/cookbook.html#connection-sharing).
    Without any connection, alembic was called from the command line and an engine is created from the production settings.
    """
    connection: None | Connection | AsyncConnection = config.attributes.get(
        "connection",
        None,
    )

    if connection is None:
        asyncio.run(run_migrations_from_cli())
    elif isinstance(connection, AsyncConnection):
        asyncio.run(run_async_migrations(connection))
    elif isinstance(connection, Connection):
        do_run_migrations(connection)
    else:
        raise TypeError(  # noqa: TRY003
            f"Unsupported connection object {connection}. A Connection or and AsyncConnection is required, got a {type(connection)}",
        )


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
