"""
Various FastAPI [dependencies](https://fastapi.tiangolo.com/tutorial/dependencies/)

They are used in endpoints function signatures. For example:
```python
async def get_roles(db: AsyncSession = Depends(get_db)):
```
"""

import logging
from collections.abc import AsyncGenerator, Callable, Coroutine
from functools import lru_cache
from typing import Annotated, Any, cast

import jwt
import redis
import starlette
import starlette.datastructures
from fastapi import Depends, FastAPI, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admins import cruds_admins, models_admins, schemas_admins, utils_admins
from app.core.menu import schemas_menu
from app.core.menu.cache_menu import MenuCache
from app.core.menu.utils_menu import load_menu_config
from app.core.utils import security
from app.core.utils.config import Settings, construct_prod_settings
from app.types.exceptions import InvalidAppStateTypeError
from app.types.scopes_type import ScopeType
from app.utils.state import (
    LifespanState,
    RuntimeLifespanState,
    disconnect_redis_client,
    init_engine,
    init_redis_client,
    init_SessionLocal,
)
from app.utils.translations import MenuTranslator

hemis_access_logger = logging.getLogger("hemis.access")
hemis_error_logger = logging.getLogger("hemis.error")


async def init_app_state(
    app: FastAPI,
    settings: Settings,
    hemis_error_logger: logging.Logger,
) -> LifespanState:
    """
    Initialize the state of the application. This dependency should be used at the start of the application lifespan.

    This method should be called as a dependency, and tests may override it to provide their own state.
    ```python
    state = await app.dependency_overrides.get(
        init_app_state,
        init_app_state,
    )(
        app=app,
        settings=settings,
        hemis_error_logger=hemis_error_logger,
    )
    ```
    """
    engine = init_engine(settings=settings)

    SessionLocal = init_SessionLocal(engine)

    redis_client = init_redis_client(
        settings=settings,
        hemis_error_logger=hemis_error_logger,
    )

    return LifespanState(
        engine=engine,
        SessionLocal=SessionLocal,
        redis_client=redis_client,
    )


async def disconnect_state(
    state: LifespanState,
    hemis_error_logger: logging.Logger,
) -> None:
    """
    Disconnect items requiring it. This dependency should be used at the end of the application lifespan.
    """
    disconnect_redis_client(state["redis_client"])
    await state["engine"].dispose()

    hemis_error_logger.info("Application state disconnected successfully.")


def get_app_state(request: Request) -> RuntimeLifespanState:
    """
    Get the application state from the request. The state is injected by our middleware.
    """
    # `request.state` may be a TypedDict or a starlette State object
    # depending if it is accessed in an endpoint or the lifespan
    if isinstance(request.state, dict):
        return cast("RuntimeLifespanState", request.state)
    if isinstance(request.state, starlette.datastructures.State):
        return cast("RuntimeLifespanState", request.state.__dict__["_state"])
    raise InvalidAppStateTypeError


AppState = Annotated[RuntimeLifespanState, Depends(get_app_state)]


async def get_request_id(state: AppState) -> str:
    """
    The request identifier is a unique UUID which is used to associate logs saved during the same request
    """

    return state["request_id"]


@lru_cache
def get_settings() -> Settings:
    """
    Return a settings object, based on `config.yaml` and `.env` dotenv
    """
    # `lru_cache()` decorator is here to prevent the class to be instantiated multiple times.
    # See https://fastapi.tiangolo.com/advanced/settings/#lru_cache-technical-details
    return construct_prod_settings()


async def get_db(state: AppState) -> AsyncGenerator[AsyncSession, None]:
    """
    Return a database session that will be automatically committed and closed after usage.

    If an HTTPException is raised during the request, we consider that the error was expected and managed by the endpoint. We commit the session.
    If an other exception is raised, we rollback the session.

    Cruds should never call `db.commit()` or `db.rollback()` directly. Endpoints only commit when a side effect,
    like a menu cache invalidation, must happen after the changes are visible to other requests.
    After adding an object to the session, calling `await db.flush()` will integrate the changes in the transaction without committing them.

    Operations that must be applied entirely or not at all, like a refresh token rotation,
    run inside a SAVEPOINT:
    ```python
    async with db.begin_nested():
        # If the code in the context manager raises an exception, the changes are rolled back to this point
    ```
    """
    async with state["SessionLocal"]() as db:
        try:
            yield db
        except HTTPException:
            await db.commit()
            raise
        except Exception:
            await db.rollback()
            raise
        else:
            await db.commit()
        finally:
            await db.close()


def get_redis_client(state: AppState) -> redis.Redis | None:
    """
    Dependency that returns the redis client

    If the redis client is not available, it will return None.
    """
    return state["redis_client"]


def get_menu_cache(
    redis_client: redis.Redis | None = Depends(get_redis_client),
    settings: Settings = Depends(get_settings),
) -> MenuCache:
    """
    Dependency that returns the menu cache. Without Redis, the cache is disabled and menus are always computed.
    """
    return MenuCache(redis_client=redis_client, ttl=settings.MENU_CACHE_TTL)


def get_menu_config(
    settings: Settings = Depends(get_settings),
) -> schemas_menu.MenuConfig:
    return load_menu_config(settings.MENU_CONFIG_FILE)


@lru_cache
def get_menu_translator(translations_dir: str) -> MenuTranslator:
    return MenuTranslator(translations_dir=translations_dir)


def get_translator(
    settings: Settings = Depends(get_settings),
) -> MenuTranslator:
    """
    Dependency that returns the label translator. One translator is kept per translations directory.
    """
    return get_menu_translator(settings.MENU_TRANSLATIONS_DIR)


def get_token_data(
    settings: Settings = Depends(get_settings),
    token: str = Depends(security.oauth2_scheme),
    request_id: str = Depends(get_request_id),
) -> schemas_admins.TokenData:
    """
    Dependency that returns the admin session token payload data
    """
    try:
        payload = jwt.decode(
            token,
            settings.ACCESS_TOKEN_SECRET_KEY,
            algorithms=[security.jwt_algorithm],
        )
        token_data = schemas_admins.TokenData(**payload)
        hemis_access_logger.info(
            f"Get_token_data: Decoded a token for admin {token_data.sub} ({request_id})",
        )
    except jwt.ExpiredSignatureError:
        hemis_access_logger.info(
            f"Get_token_data: Token has expired ({request_id})",
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token has expired",
        ) from None
    except (jwt.InvalidTokenError, ValidationError):
        hemis_access_logger.info(
            f"Get_token_data: Failed to decode a token ({request_id})",
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        ) from None

    return token_data


def get_admin_from_token_with_scopes(
    scopes: list[list[ScopeType]],
) -> Callable[
    [AsyncSession, schemas_admins.TokenData],
    Coroutine[Any, Any, models_admins.Admin],
]:
    """
    Generate a dependency which will:
     * check the request header contain a valid JWT token
     * make sure the token contain the given scopes
     * return the corresponding active admin `models_admins.Admin` object

    The expected scopes are passed as list of list of scopes, each list of scopes is an "AND" condition, and the list of list of scopes is an "OR" condition.
    """

    async def get_current_admin(
        db: AsyncSession = Depends(get_db),
        token_data: schemas_admins.TokenData = Depends(get_token_data),
    ) -> models_admins.Admin:
        token_scopes = token_data.scopes.split(" ")
        access_granted = scopes == [] or any(
            all(scope in token_scopes for scope in scope_set) for scope_set in scopes
        )
        if not access_granted:
            raise HTTPException(
                status_code=403,
                detail=f"Unauthorized, token does not contain at least one of the following scope_set {[[scope.value for scope in scope_set] for scope_set in scopes]}",
            )

        admin = await cruds_admins.get_admin_by_id(db=db, admin_id=token_data.sub)
        if admin is None:
            raise HTTPException(status_code=404, detail="Admin not found")
        if not admin.active:
            raise HTTPException(status_code=403, detail="Admin account is disabled")
        return admin

    return get_current_admin


def is_admin(
    admin: models_admins.Admin = Depends(
        get_admin_from_token_with_scopes([[ScopeType.API]]),
    ),
) -> models_admins.Admin:
    """
    A dependency that will:
        * check if the request header contains a valid API JWT token
        * make sure the admin making the request exists and is active
    """
    return admin


def is_super_admin(
    admin: models_admins.Admin = Depends(is_admin),
    settings: Settings = Depends(get_settings),
) -> models_admins.Admin:
    """
    A dependency that checks the active role of the admin is a super admin role
    """
    if not utils_admins.is_super_admin_role(admin.role_code, settings):
        raise HTTPException(
            status_code=403,
            detail="Unauthorized, a super admin role is required",
        )
    return admin
