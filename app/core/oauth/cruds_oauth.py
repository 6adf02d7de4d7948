"""File defining the functions called by the endpoints, making queries to the table using the models"""

from datetime import datetime
from typing import cast

from sqlalchemy import CursorResult, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.oauth import models_oauth


async def get_client_by_id(
    db: AsyncSession,
    client_id: str,
) -> models_oauth.OAuthClient | None:
    result = await db.execute(
        select(models_oauth.OAuthClient).where(
            models_oauth.OAuthClient.id == client_id,
        ),
    )
    return result.scalars().first()


async def create_client(
    client: models_oauth.OAuthClient,
    db: AsyncSession,
) -> None:
    db.add(client)
    await db.flush()


async def revoke_client(
    db: AsyncSession,
    client_id: str,
) -> None:
    await db.execute(
        update(models_oauth.OAuthClient)
        .where(models_oauth.OAuthClient.id == client_id)
        .values(revoked=True),
    )
    await db.flush()


async def get_authorization_code_by_id(
    db: AsyncSession,
    code: str,
) -> models_oauth.AuthorizationCode | None:
    result = await db.execute(
        select(models_oauth.AuthorizationCode).where(
            models_oauth.AuthorizationCode.id == code,
        ),
    )
    return result.scalars().first()


async def create_authorization_code(
    authorization_code: models_oauth.AuthorizationCode,
    db: AsyncSession,
) -> None:
    db.add(authorization_code)
    await db.flush()


async def revoke_authorization_code(
    db: AsyncSession,
    code: str,
) -> bool:
    """
    Mark the code as used. Return False if it was already used,
    only one of two concurrent exchanges of the same code can succeed.
    """
    result = await db.execute(
        update(models_oauth.AuthorizationCode)
        .where(
            models_oauth.AuthorizationCode.id == code,
            models_oauth.AuthorizationCode.revoked.is_(False),
        )
        .values(revoked=True),
    )
    await db.flush()
    return cast("CursorResult", result).rowcount == 1


async def get_access_token_by_id(
    db: AsyncSession,
    token: str,
) -> models_oauth.AccessToken | None:
    result = await db.execute(
        select(models_oauth.AccessToken).where(
            models_oauth.AccessToken.id == token,
        ),
    )
    return result.scalars().first()


async def create_access_token(
    access_token: models_oauth.AccessToken,
    db: AsyncSession,
) -> None:
    db.add(access_token)
    await db.flush()


async def revoke_access_token_by_id(
    db: AsyncSession,
    token: str,
) -> None:
    await db.execute(
        update(models_oauth.AccessToken)
        .where(models_oauth.AccessToken.id == token)
        .values(revoked=True),
    )
    await db.flush()


async def get_refresh_token_by_id(
    db: AsyncSession,
    token: str,
    for_update: bool = False,
) -> models_oauth.RefreshToken | None:
    """
    With `for_update`, the row is locked until the end of the transaction (`SELECT ... FOR UPDATE`).
    SQLite ignores the lock.
    """
    query = select(models_oauth.RefreshToken).where(
        models_oauth.RefreshToken.id == token,
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalars().first()


async def create_refresh_token(
    refresh_token: models_oauth.RefreshToken,
    db: AsyncSession,
) -> None:
    db.add(refresh_token)
    await db.flush()


async def revoke_refresh_token_by_id(
    db: AsyncSession,
    token: str,
) -> bool:
    """
    Revoke a refresh token. Return False if it was already revoked.
    """
    result = await db.execute(
        update(models_oauth.RefreshToken)
        .where(
            models_oauth.RefreshToken.id == token,
            models_oauth.RefreshToken.revoked.is_(False),
        )
        .values(revoked=True),
    )
    await db.flush()
    return cast("CursorResult", result).rowcount == 1


async def delete_expired_refresh_tokens(
    db: AsyncSession,
    now: datetime,
) -> int:
    result = await db.execute(
        delete(models_oauth.RefreshToken).where(
            models_oauth.RefreshToken.expires_at <= now,
        ),
    )
    await db.flush()
    return cast("CursorResult", result).rowcount


async def delete_expired_access_tokens(
    db: AsyncSession,
    now: datetime,
) -> int:
    """
    Delete expired access tokens. Tokens still referenced by a refresh token are kept,
    the refresh token needs them to be rotated.
    """
    result = await db.execute(
        delete(models_oauth.AccessToken)
        .where(
            models_oauth.AccessToken.expires_at <= now,
            models_oauth.AccessToken.id.not_in(
                select(models_oauth.RefreshToken.access_token_id),
            ),
        )
        .execution_options(synchronize_session=False),
    )
    await db.flush()
    return cast("CursorResult", result).rowcount


async def delete_expired_authorization_codes(
    db: AsyncSession,
    now: datetime,
) -> int:
    result = await db.execute(
        delete(models_oauth.AuthorizationCode).where(
            models_oauth.AuthorizationCode.expires_at <= now,
        ),
    )
    await db.flush()
    return cast("CursorResult", result).rowcount
