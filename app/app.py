"""File defining the Metadata. And the basic functions creating the database tables and calling the router"""

import logging
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import alembic.command as alembic_command
import alembic.config as alembic_config
import alembic.migration as alembic_migration
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import api
from app.core.admins import models_admins
from app.core.menu.utils_menu import load_menu_config
from app.core.utils.config import Settings
from app.core.utils.log import LogConfig
from app.dependencies import disconnect_state, get_app_state, init_app_state
from app.types.exceptions import ContentHTTPException
from app.types.sqlalchemy import Base
from app.utils import initialization
from app.utils.redis import limiter
from app.utils.state import LifespanState

# NOTE: We can not get loggers at the top of this file like we do in other files
# as the loggers are not yet initialized


def get_alembic_config(connection: Connection) -> alembic_config.Config:
    """
    Return the alembic configuration object in a synchronous way
    """
    alembic_cfg = alembic_config.Config("alembic.ini")
    alembic_cfg.attributes["connection"] = connection

    return alembic_cfg


def get_alembic_current_revision(connection: Connection) -> str | None:
    """
    Return the current revision of the database in a synchronous way

    NOTE: SQLAlchemy does not support `Inspection on an AsyncConnection`. If you have an AsyncConnection, the call to this method must be wrapped in a `run_sync` call to obtain a Connection.
    See https://alembic.sqlalchemy.org/en/latest/cookbook.html#programmatic-api-use-connection-sharing-with-asyncio for more information.
    """

    context = alembic_migration.MigrationContext.configure(connection)
    return context.get_current_revision()


def stamp_alembic_head(connection: Connection) -> None:
    """
    Stamp the database with the latest revision in a synchronous way
    """
    alembic_cfg = get_alembic_config(connection)
    alembic_command.stamp(alembic_cfg, "head")


def run_alembic_upgrade(connection: Connection) -> None:
    """
    Run the alembic upgrade command to upgrade the database to the latest version (`head`) in a synchronous way
    """

    alembic_cfg = get_alembic_config(connection)

    alembic_command.upgrade(alembic_cfg, "head")


def update_db_tables(
    sync_engine: Engine,
    hemis_error_logger: logging.Logger,
    drop_db: bool = False,
) -> None:
    """
    If the database is not initialized, create the tables and stamp the database with the latest revision.
    Otherwise, run the alembic upgrade command to upgrade the database to the latest version (`head`).

    if drop_db is True, we will drop all tables before creating them again

    This method requires a synchronous engine
    """

    try:
        # We have an Engine, we want to acquire a Connection
        with sync_engine.begin() as conn:
            if drop_db:
                initialization.drop_db_sync(conn)

            alembic_current_revision = get_alembic_current_revision(conn)

            if alembic_current_revision is None:
                # We generate the database using SQLAlchemy
                # in order not to have to run all migrations one by one
                # See https://alembic.sqlalchemy.org/en/latest/cookbook.html#building-an-up-to-date-database-from-scratch
                hemis_error_logger.info(
                    "Startup: Database tables not created yet, creating them",
                )

                Base.metadata.create_all(conn)
                # We stamp the database with the latest revision so that
                # alembic knows that the database is up to date
                stamp_alembic_head(conn)
            else:
                hemis_error_logger.info(
                    f"Startup: Database tables already created (current revision: {alembic_current_revision}), running migrations",
                )
                run_alembic_upgrade(conn)

            hemis_error_logger.info("Startup: Database tables updated")
    except Exception as error:
        hemis_error_logger.fatal(
            f"Startup: Could not create tables in the database: {error}",
        )
        raise


def initialize_roles(
    sync_engine: Engine,
    settings: Settings,
    hemis_error_logger: logging.Logger,
) -> None:
    """Add the super admin roles"""

    hemis_error_logger.info("Startup: Adding super admin roles to the database")
    with Session(sync_engine) as db:
        for role_code in settings.SUPER_ADMIN_ROLES:
            exists = initialization.get_role_by_code_sync(role_code=role_code, db=db)
            # We don't want to recreate the roles if they already exist
            if not exists:
                role = models_admins.AdminRole(
                    code=role_code,
                    name=role_code.replace("_", " ").capitalize(),
                )

                try:
                    initialization.create_role_sync(role=role, db=db)
                except IntegrityError as error:
                    hemis_error_logger.fatal(
                        f"Startup: Could not add role {role.code} in the database: {error}",
                    )


def use_route_path_as_operation_ids(app: FastAPI) -> None:
    """
    Simplify operation IDs so that generated API clients have simpler function names.

    The operation_id will have the format "method_path", like "get_admins_me".

    See https://fastapi.tiangolo.com/advanced/path-operation-advanced-configuration/
    """
    for route in app.routes:
        if isinstance(route, APIRoute):
            # The operation_id should be unique.
            method = "_".join(route.methods)
            route.operation_id = method.lower() + route.path.replace("/", "_")


def init_db(
    settings: Settings,
    hemis_error_logger: logging.Logger,
    drop_db: bool = False,
) -> None:
    """
    Init the database by creating the tables and adding the super admin roles

    The method will use a synchronous engine
    """
    sync_engine = initialization.get_sync_db_engine(settings=settings)

    update_db_tables(
        sync_engine=sync_engine,
        hemis_error_logger=hemis_error_logger,
        drop_db=drop_db,
    )

    initialize_roles(
        sync_engine=sync_engine,
        settings=settings,
        hemis_error_logger=hemis_error_logger,
    )

    sync_engine.dispose()


# We wrap the application in a function to be able to pass the settings and drop_db parameters
# The drop_db parameter is used to drop the database tables before creating them again
def get_application(settings: Settings, drop_db: bool = False) -> FastAPI:
    # Initialize loggers
    LogConfig().initialize_loggers(settings=settings)

    hemis_access_logger = logging.getLogger("hemis.access")
    hemis_security_logger = logging.getLogger("hemis.security")
    hemis_error_logger = logging.getLogger("hemis.error")

    # An invalid menu configuration should prevent the application from starting
    load_menu_config(settings.MENU_CONFIG_FILE)

    # Creating a lifespan which will be called when the application starts then shuts down
    # https://fastapi.tiangolo.com/advanced/events/
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[LifespanState, None]:
        hemis_error_logger.info("Startup: Initializing application")

        init_db(
            settings=settings,
            hemis_error_logger=hemis_error_logger,
            drop_db=drop_db,
        )

        # Tests may override the state initialization
        state: LifespanState = await app.dependency_overrides.get(
            init_app_state,
            init_app_state,
        )(
            app=app,
            settings=settings,
            hemis_error_logger=hemis_error_logger,
        )

        yield state

        hemis_error_logger.info("Shutting down")
        await app.dependency_overrides.get(
            disconnect_state,
            disconnect_state,
        )(
            state=state,
            hemis_error_logger=hemis_error_logger,
        )

    # Initialize app
    app = FastAPI(
        title="HEMIS panel",
        version=settings.HEMIS_VERSION,
        lifespan=lifespan,
    )
    app.include_router(api.api_router)
    use_route_path_as_operation_ids(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """
        This middleware is called around each request.
        It logs the request and inject a unique identifier in the request that should be used to associate logs saved during the request.
        """
        # We generate a unique identifier for the request and save it in the state.
        # This identifier will allow combining logs associated with the same request
        # https://www.starlette.io/requests/#other-state
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        # This should never happen, but we log it just in case
        if request.client is None:
            hemis_security_logger.warning(
                f"Client information not available for {request.url.path}",
            )
            raise HTTPException(status_code=400, detail="No client information")

        ip_address = request.client.host
        port = request.client.port
        client_address = f"{ip_address}:{port}"

        redis_client = get_app_state(request)["redis_client"]

        # We test the ip address with the redis limiter
        process = True
        if redis_client is not None and settings.ENABLE_RATE_LIMITER:
            process, log = limiter(
                redis_client,
                ip_address,
                settings.REDIS_LIMIT,
                settings.REDIS_WINDOW,
            )
            if log:
                hemis_security_logger.warning(
                    f"Rate limit reached for {ip_address} (limit: {settings.REDIS_LIMIT}, window: {settings.REDIS_WINDOW}) ({request_id})",
                )
        if process:
            response = await call_next(request)

            hemis_access_logger.info(
                f'{client_address} - "{request.method} {request.url.path}" {response.status_code} ({request_id})',
            )
        else:
            response = Response(status_code=429, content="Too Many Requests")
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ):
        # We use a Debug logger to log the error as personal data may be present in the request
        hemis_error_logger.debug(
            f"Validation error: {exc.errors()} ({request.state.request_id})",
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=jsonable_encoder({"detail": exc.errors(), "body": exc.body}),
        )

    @app.exception_handler(ContentHTTPException)
    async def auth_exception_handler(
        request: Request,
        exc: ContentHTTPException,
    ):
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.content),
            headers=exc.headers,
        )

    return app
