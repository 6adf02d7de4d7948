import datetime
from collections.abc import Callable

from sqlalchemy import DateTime, types
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass
from sqlalchemy.types import TypeDecorator

from app.types.exceptions import MissingTZInfoInDatetimeError

SessionLocalType = Callable[[], AsyncSession]


class TZDateTime(TypeDecorator):
    """
    Store timezone-aware datetimes as naive UTC timestamps.

    SQLite does not keep timezone information, the value is converted to UTC before being written
    and the UTC timezone is attached again when it is read.
    See https://docs.sqlalchemy.org/en/20/core/custom_types.html#store-timezone-aware-timestamps-as-timezone-naive-utc
    """

    # Changing this type would break existing migrations, create a new type instead.

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            if not value.tzinfo or value.tzinfo.utcoffset(value) is None:
                raise MissingTZInfoInDatetimeError()
            value = value.astimezone(datetime.UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            value = value.replace(tzinfo=datetime.UTC)
        return value


class Base(MappedAsDataclass, DeclarativeBase):
    """Base class for all models.

    Python datetimes are mapped to `TZDateTime` (see https://docs.sqlalchemy.org/en/20/orm/declarative_tables.html#customizing-the-type-map)"""

    type_annotation_map = {
        bool: types.Boolean(),
        datetime.datetime: TZDateTime(),
        str: types.String(),
    }
