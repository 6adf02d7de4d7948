import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from fastapi import FastAPI
from sqlalchemy import NullPool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.admins import cruds_admins, models_admins, schemas_admins
from app.core.oauth import models_oauth
from app.core.utils import security
from app.core.utils.config import Settings
from app.types.sqlalchemy import Base
from app.utils.state import (
    LifespanState,
    get_database_url,
    init_redis_client,
)


class FailedToAddObjectToDB(Exception):
    """Exception raised when an object cannot be added to the database."""


async def override_init_app_state(
    app: FastAPI,
    settings: Settings,
    hemis_error_logger: logging.Logger,
) -> LifespanState:
    """
    Initialize the state of the application. This dependency should be used at the start of the application lifespan.
    """
    engine = init_test_engine()

    SessionLocal = init_test_SessionLocal()

    redis_client = init_redis_client(
        settings=settings,
        hemis_error_logger=hemis_error_logger,
    )

    return LifespanState(
        engine=engine,
        SessionLocal=SessionLocal,
        redis_client=redis_client,
    )


@lru_cache
def override_get_settings() -> Settings:
    """Override the get_settings function to use the testing session"""

    return Settings(
        _env_file="./tests/.env.test",
        _yaml_file="./tests/config.test.yaml",
    )


settings = override_get_settings()


engine = create_async_engine(
    get_database_url(settings),
    echo=settings.DATABASE_DEBUG,
    # We need to use NullPool to run tests with Postgresql
    # See https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html#using-multiple-asyncio-event-loops
    poolclass=NullPool,
)

# Create a session for testing purposes
TestingSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def init_test_engine() -> AsyncEngine:
    """
    Return the (asynchronous) database engine used by the tests
    """

    return engine


def init_test_SessionLocal() -> Callable[[], AsyncSession]:
    return TestingSessionLocal


hemis_error_logger = logging.getLogger("hemis.error")

# Hashing with 13 rounds is slow, every test admin shares the same password
TEST_PASSWORD = "test-password"
TEST_PASSWORD_HASH = security.get_password_hash(TEST_PASSWORD)


async def create_role_with_permissions(
    permissions: list[str],
    role_code: str | None = None,
) -> models_admins.AdminRole:
    """
    Add a role granting `permissions` to the database
    """
    role_code = role_code or f"role_{uuid.uuid4().hex[:8]}"

    async with TestingSessionLocal() as db:
        try:
            await cruds_admins.create_role(
                role=models_admins.AdminRole(code=role_code, name=role_code),
                db=db,
            )
            for permission in permissions:
                await cruds_admins.create_role_permission(
                    role_permission=models_admins.AdminRolePermission(
                        role_code=role_code,
                        permission=permission,
                    ),
                    db=db,
                )
            await db.commit()
        except Exception as error:
            await db.rollback()
            raise FailedToAddObjectToDB from error
        finally:
            await db.close()

    async with TestingSessionLocal() as db:
        role_db = await cruds_admins.get_role_by_code(db=db, role_code=role_code)
        assert role_db is not None
        return role_db


async def create_admin_with_roles(
    role_codes: list[str],
    active_role_code: str | None = None,
    admin_id: str | None = None,
    login: str | None = None,
    active: bool = True,
) -> models_admins.Admin:
    """
    Add a dummy admin to the database

    The admin is a member of `role_codes`. Its active role is `active_role_code`, or the first role by default.
    """
    admin_id = admin_id or str(uuid.uuid4())

    admin = models_admins.Admin(
        id=admin_id,
        login=login or f"admin_{uuid.uuid4().hex[:12]}",
        email=None,
        full_name="Test admin",
        password_hash=TEST_PASSWORD_HASH,
        role_code=active_role_code or (role_codes[0] if role_codes else None),
        created_on=datetime.now(UTC),
        active=active,
    )

    async with TestingSessionLocal() as db:
        try:
            await cruds_admins.create_admin(admin=admin, db=db)
            for role_code in role_codes:
                await cruds_admins.create_role_membership(
                    membership=models_admins.AdminRoleMembership(
                        admin_id=admin_id,
                        role_code=role_code,
                    ),
                    db=db,
                )
            await db.commit()
        except Exception as error:
            await db.rollback()
            raise FailedToAddObjectToDB from error
        finally:
            await db.close()

    async with TestingSessionLocal() as db:
        admin_db = await cruds_admins.get_admin_by_id(db=db, admin_id=admin_id)
        assert admin_db is not None
        return admin_db


def create_api_access_token(
    admin: models_admins.Admin,
    expires_delta: timedelta | None = None,
):
    """
    Create a JWT access token for the `admin` with the scope `API`
    """

    access_token_data = schemas_admins.TokenData(sub=admin.id, scopes="API")
    return security.create_access_token(
        data=access_token_data,
        settings=settings,
        expires_delta=expires_delta,
    )


async def create_oauth_client(
    redirect_uri: str = "https://client.example.com/callback",
    secret: str | None = None,
    revoked: bool = False,
) -> models_oauth.OAuthClient:
    """
    Add an OAuth client to the database. Without `secret`, the client is a public client.
    """
    client = models_oauth.OAuthClient(
        id=str(uuid.uuid4()),
        name="Test client",
        redirect_uri=redirect_uri,
        secret_hash=security.hash_client_secret(secret) if secret else None,
        user_id=None,
        created_at=datetime.now(UTC),
        revoked=revoked,
    )
    await add_object_to_db(client)
    return client


async def add_object_to_db(db_object: Base) -> None:
    """
    Add an object to the database
    """
    async with TestingSessionLocal() as db:
        try:
            db.add(db_object)
            await db.commit()
        except Exception as error:
            await db.rollback()
            raise FailedToAddObjectToDB from error
        finally:
            await db.close()
