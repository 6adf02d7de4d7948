import logging
from typing import TypedDict

import redis
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.utils.config import Settings
from app.types.sqlalchemy import SessionLocalType


class LifespanState(TypedDict):
    """
    The LifespanState is yielded by the application lifespan. Use dependencies to access it.
    """

    # Database engine
    engine: AsyncEngine
    # Database session creator
    SessionLocal: SessionLocalType
    # We may not have a Redis Client if it was not configured
    redis_client: redis.Redis | None


class RuntimeLifespanState(LifespanState):
    """
    Requests contains an extended version of the LifespanState for each request.
    """

    request_id: str


def get_database_url(settings: Settings) -> str:
    if settings.SQLITE_DB:
        return f"sqlite+aiosqlite:///./{settings.SQLITE_DB}"
    return f"postgresql+asyncpg://{settings.POSTGRES_USER}:{settings.POSTGRES_PASSWORD}@{settings.POSTGRES_HOST}/{settings.POSTGRES_DB}"


def init_engine(settings: Settings) -> AsyncEngine:
    """
    Return the (asynchronous) database engine, based on the settings
    """

    return create_async_engine(
        get_database_url(settings),
        echo=settings.DATABASE_DEBUG,
    )


def init_SessionLocal(engine: AsyncEngine) -> SessionLocalType:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def init_redis_client(
    settings: Settings,
    hemis_error_logger: logging.Logger,
) -> redis.Redis | None:
    """
    Initialize the Redis client if the settings specify a Redis connection.
    Returns None if Redis is not configured or can not be reached.
    """
    if not settings.REDIS_HOST:
        return None
    try:
        redis_client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD,
            socket_keepalive=True,
        )
        redis_client.ping()  # Test the connection
    except redis.exceptions.ConnectionError:
        hemis_error_logger.exception(
            "Redis connection error: Check the Redis configuration or the Redis server. Menus won't be cached",
        )
        return None
    return redis_client


def disconnect_redis_client(redis_client: redis.Redis | None) -> None:
    if redis_client is not None:
        redis_client.close()
