"""
Token lifecycle of the OAuth2 authorization code flow.

Terminology:
* Authorization code: single use code given to the client once the admin granted the access. It is exchanged for a token pair.
* Access token: opaque token used by the client to call the resource server.
* Refresh token: opaque token used to get a new token pair. Refresh tokens are rotated:
  using one revokes it with its access token and issues a new pair.

https://www.oauth.com/oauth2-servers/server-side-apps/authorization-code/
https://auth0.com/docs/secure/tokens/refresh-tokens/refresh-token-rotation
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.oauth import cruds_oauth, exceptions_oauth, models_oauth, schemas_oauth
from app.core.utils.config import Settings
from app.core.utils.security import (
    generate_token,
    hash_client_secret,
    verify_client_secret,
)

hemis_access_logger = logging.getLogger("hemis.access")
hemis_security_logger = logging.getLogger("hemis.security")


def is_expired(expires_at: datetime) -> bool:
    return expires_at <= datetime.now(UTC)


def get_expires_in(expires_at: datetime) -> int:
    """Number of seconds before `expires_at`, 0 if it is already past"""
    return max(int((expires_at - datetime.now(UTC)).total_seconds()), 0)


###########################
# Clients                 #
###########################


async def create_client(
    db: AsyncSession,
    name: str,
    redirect_uri: str,
    confidential: bool = True,
    user_id: str | None = None,
) -> tuple[models_oauth.OAuthClient, str | None]:
    """
    Register a new client. Return the client and its secret.

    The secret is only stored hashed, it can not be displayed again. Public clients have no secret.
    """
    secret = generate_token() if confidential else None
    client = models_oauth.OAuthClient(
        id=str(uuid.uuid4()),
        name=name,
        redirect_uri=redirect_uri,
        secret_hash=hash_client_secret(secret) if secret is not None else None,
        user_id=user_id,
        created_at=datetime.now(UTC),
    )
    await cruds_oauth.create_client(client=client, db=db)
    return client, secret


async def get_client(
    db: AsyncSession,
    client_id: str,
) -> models_oauth.OAuthClient | None:
    return await cruds_oauth.get_client_by_id(db=db, client_id=client_id)


async def validate_client(
    db: AsyncSession,
    client_id: str,
    client_secret: str | None = None,
) -> bool:
    """
    Check the client exists and is not revoked.
    The secret is only checked when the client has one and a secret was provided.
    """
    client = await cruds_oauth.get_client_by_id(db=db, client_id=client_id)
    if client is None or client.revoked:
        return False
    if client.secret_hash is not None and client_secret is not None:
        return verify_client_secret(client_secret, client.secret_hash)
    return True


async def revoke_client(
    db: AsyncSession,
    client_id: str,
) -> bool:
    client = await cruds_oauth.get_client_by_id(db=db, client_id=client_id)
    if client is None:
        return False
    await cruds_oauth.revoke_client(db=db, client_id=client_id)
    return True


###########################
# Token issuance          #
###########################


async def issue_authorization_code(
    db: AsyncSession,
    settings: Settings,
    client_id: str,
    user_id: str,
    scope: str | None = None,
) -> models_oauth.AuthorizationCode:
    authorization_code = models_oauth.AuthorizationCode(
        id=generate_token(),
        client_id=client_id,
        user_id=user_id,
        scope=scope,
        expires_at=datetime.now(UTC)
        + timedelta(minutes=settings.AUTHORIZATION_CODE_EXPIRE_MINUTES),
    )
    await cruds_oauth.create_authorization_code(
        authorization_code=authorization_code,
        db=db,
    )
    return authorization_code


async def create_token_pair(
    db: AsyncSession,
    settings: Settings,
    client_id: str,
    user_id: str | None,
    scope: str | None,
) -> schemas_oauth.TokenPair:
    now = datetime.now(UTC)
    access_token = models_oauth.AccessToken(
        id=generate_token(),
        client_id=client_id,
        user_id=user_id,
        scope=scope,
        created_at=now,
        expires_at=now + timedelta(minutes=settings.OAUTH_ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    await cruds_oauth.create_access_token(access_token=access_token, db=db)

    refresh_token = models_oauth.RefreshToken(
        id=generate_token(),
        access_token_id=access_token.id,
        expires_at=now
        + timedelta(minutes=settings.OAUTH_REFRESH_TOKEN_EXPIRE_MINUTES),
    )
    await cruds_oauth.create_refresh_token(refresh_token=refresh_token, db=db)

    return schemas_oauth.TokenPair(
        access_token=access_token.id,
        expires_in=settings.OAUTH_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        refresh_token=refresh_token.id,
    )


async def exchange_authorization_code(
    db: AsyncSession,
    settings: Settings,
    code: str,
    client_id: str,
    client_secret: str | None = None,
    redirect_uri: str | None = None,
) -> schemas_oauth.TokenPair:
    """
    Exchange an authorization code for a token pair. A code can only be exchanged once.

    Raise a subclass of `OAuthError` if the code can not be exchanged.
    """
    authorization_code = await cruds_oauth.get_authorization_code_by_id(
        db=db,
        code=code,
    )
    if authorization_code is None:
        raise exceptions_oauth.InvalidAuthorizationCodeError

    if authorization_code.client_id != client_id:
        raise exceptions_oauth.ClientMismatchError

    client = await cruds_oauth.get_client_by_id(db=db, client_id=client_id)
    if client is None or client.revoked:
        raise exceptions_oauth.ClientMismatchError
    if client.secret_hash is not None and not verify_client_secret(
        client_secret,
        client.secret_hash,
    ):
        raise exceptions_oauth.InvalidClientSecretError

    if redirect_uri is not None and redirect_uri != client.redirect_uri:
        raise exceptions_oauth.RedirectUriMismatchError

    if is_expired(authorization_code.expires_at):
        raise exceptions_oauth.AuthorizationCodeExpiredError

    if authorization_code.revoked:
        hemis_security_logger.warning(
            f"Exchange_authorization_code: Tentative to reuse the authorization code of client {client_id} for user {authorization_code.user_id}",
        )
        raise exceptions_oauth.AuthorizationCodeAlreadyUsedError

    async with db.begin_nested():
        if not await cruds_oauth.revoke_authorization_code(db=db, code=code):
            # An other request exchanged the code since we read it
            raise exceptions_oauth.AuthorizationCodeAlreadyUsedError

        token_pair = await create_token_pair(
            db=db,
            settings=settings,
            client_id=client_id,
            user_id=authorization_code.user_id,
            scope=authorization_code.scope,
        )

    hemis_access_logger.info(
        f"Exchange_authorization_code: Issued a token pair to client {client_id} for user {authorization_code.user_id}",
    )
    return token_pair


async def refresh_access_token(
    db: AsyncSession,
    settings: Settings,
    refresh_token: str,
    client_id: str,
) -> schemas_oauth.TokenPair:
    """
    Rotate a refresh token: the refresh token and its access token are revoked and a new pair is issued.

    Using a revoked refresh token only raises a security alert, other token pairs of the user stay valid.

    Raise a subclass of `OAuthError` if the refresh token can not be used.
    """
    db_refresh_token = await cruds_oauth.get_refresh_token_by_id(
        db=db,
        token=refresh_token,
        for_update=True,
    )
    if db_refresh_token is None:
        raise exceptions_oauth.InvalidTokenError

    if is_expired(db_refresh_token.expires_at):
        raise exceptions_oauth.TokenExpiredError

    old_access_token = await cruds_oauth.get_access_token_by_id(
        db=db,
        token=db_refresh_token.access_token_id,
    )

    if db_refresh_token.revoked:
        hemis_security_logger.warning(
            f"Refresh_access_token: Tentative to use a revoked refresh token for client {client_id}",
        )
        raise exceptions_oauth.TokenRevokedError

    if old_access_token is None:
        raise exceptions_oauth.InvalidTokenError("Original access token not found")

    if old_access_token.client_id != client_id:
        raise exceptions_oauth.ClientMismatchError

    async with db.begin_nested():
        if not await cruds_oauth.revoke_refresh_token_by_id(db=db, token=refresh_token):
            # An other request rotated the token since we read it
            raise exceptions_oauth.TokenRevokedError

        await cruds_oauth.revoke_access_token_by_id(db=db, token=old_access_token.id)

        token_pair = await create_token_pair(
            db=db,
            settings=settings,
            client_id=client_id,
            user_id=old_access_token.user_id,
            scope=old_access_token.scope,
        )

    hemis_access_logger.info(
        f"Refresh_access_token: Rotated a token pair of client {client_id} for user {old_access_token.user_id}",
    )
    return token_pair


###########################
# Validation & revocation #
###########################


async def validate_access_token(
    db: AsyncSession,
    token: str,
) -> models_oauth.AccessToken | None:
    """
    Return the access token if it exists, is not revoked and is not expired
    """
    access_token = await cruds_oauth.get_access_token_by_id(db=db, token=token)
    if access_token is None:
        return None
    if access_token.revoked or is_expired(access_token.expires_at):
        return None
    return access_token


async def revoke_access_token(
    db: AsyncSession,
    token: str,
) -> bool:
    """
    Revoke an access token. Revoking an already revoked token succeeds, an unknown token returns False.
    """
    access_token = await cruds_oauth.get_access_token_by_id(db=db, token=token)
    if access_token is None:
        return False
    await cruds_oauth.revoke_access_token_by_id(db=db, token=token)
    return True


async def revoke_refresh_token(
    db: AsyncSession,
    token: str,
) -> bool:
    db_refresh_token = await cruds_oauth.get_refresh_token_by_id(db=db, token=token)
    if db_refresh_token is None:
        return False
    await cruds_oauth.revoke_refresh_token_by_id(db=db, token=token)
    return True


async def cleanup_expired_tokens(db: AsyncSession) -> int:
    """
    Delete expired refresh tokens, access tokens and authorization codes. Return the number of deleted rows.
    """
    now = datetime.now(UTC)
    # Refresh tokens reference access tokens, they are deleted first
    count = await cruds_oauth.delete_expired_refresh_tokens(db=db, now=now)
    count += await cruds_oauth.delete_expired_access_tokens(db=db, now=now)
    count += await cruds_oauth.delete_expired_authorization_codes(db=db, now=now)
    return count
