from fastapi import Depends, Header, Query

from app.core.utils.config import Settings
from app.dependencies import get_settings


def resolve_locale(
    settings: Settings,
    locale: str | None = None,
    x_locale: str | None = None,
    accept_language: str | None = None,
) -> str:
    """
    Return the first locale found in: the `locale` query parameter, the `X-Locale` header,
    the first tag of the `Accept-Language` header. A missing or unsupported locale falls back to `DEFAULT_LOCALE`.
    """
    requested = locale or x_locale
    if not requested and accept_language:
        # `uz-UZ,uz;q=0.9,ru;q=0.8` -> `uz`
        requested = accept_language.split(",")[0].split(";")[0].strip()[:2]

    if requested:
        requested = requested.lower()
        if requested in settings.MENU_LOCALES:
            return requested
    return settings.DEFAULT_LOCALE


def get_locale(
    locale: str | None = Query(default=None),
    x_locale: str | None = Header(default=None),
    accept_language: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    return resolve_locale(
        settings=settings,
        locale=locale,
        x_locale=x_locale,
        accept_language=accept_language,
    )
