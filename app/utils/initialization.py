from sqlalchemy import Connection, MetaData, select
from sqlalchemy.engine import Engine, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.admins import models_admins
from app.core.utils.config import Settings
from app.types.sqlalchemy import Base

# These utils are used at startup to run database initializations & migrations


def get_sync_db_engine(settings: Settings) -> Engine:
    """
    Create a synchronous database engine
    """
    if settings.SQLITE_DB:
        SQLALCHEMY_DATABASE_URL = f"sqlite:///./{settings.SQLITE_DB}"
    else:
        SQLALCHEMY_DATABASE_URL = f"postgresql+psycopg://{settings.POSTGRES_USER}:{settings.POSTGRES_PASSWORD}@{settings.POSTGRES_HOST}/{settings.POSTGRES_DB}"

    return create_engine(SQLALCHEMY_DATABASE_URL, echo=settings.DATABASE_DEBUG)


def get_role_by_code_sync(
    role_code: str,
    db: Session,
) -> models_admins.AdminRole | None:
    result = db.execute(
        select(models_admins.AdminRole).where(
            models_admins.AdminRole.code == role_code,
        ),
    )
    return result.scalars().first()


def create_role_sync(
    role: models_admins.AdminRole,
    db: Session,
) -> models_admins.AdminRole:
    """
    Create a new role in database and return it
    """
    db.add(role)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    else:
        return role


def drop_db_sync(conn: Connection):
    """
    Drop all tables in the database
    """
    # All tables should be dropped, including the alembic_version table
    # or the application will think that the database is up to date and will not initialize it
    # when running tests a second time.

    # `Base.metadata.drop_all(conn)` is only able to drop tables that are defined in models
    # Thus we construct a metadata object that reflects the database instead of only using models
    my_metadata: MetaData = MetaData(schema=Base.metadata.schema)
    my_metadata.reflect(bind=conn, resolve_fks=False)
    my_metadata.drop_all(bind=conn)
