import base64
import binascii
import logging
import urllib.parse

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admins import models_admins
from app.core.oauth import exceptions_oauth, schemas_oauth, utils_oauth
from app.core.oauth.types_oauth import GrantType, ResponseType, TokenTypeHint
from app.core.utils.config import Settings
from app.dependencies import (
    get_db,
    get_request_id,
    get_settings,
    is_admin,
    is_super_admin,
)
from app.types.exceptions import AuthHTTPException
from app.types.module import CoreModule

router = APIRouter(tags=["OAuth"])

core_module = CoreModule(
    root="oauth",
    tag="OAuth",
    router=router,
)

hemis_access_logger = logging.getLogger("hemis.access")
hemis_security_logger = logging.getLogger("hemis.security")


# Authorization Code Grant #

# Terminology:
# Client: the application which wants to access resources owned by an admin
# Resource server: the entity that serves resources in exchange for an access token. Here it's the panel API
# Authorization server: the entity in charge of the authorization, it issues the codes and the tokens. Here it's also the panel API

# https://www.oauth.com/oauth2-servers/server-side-apps/authorization-code/


@router.get(
    "/oauth/authorize",
    response_model=schemas_oauth.AuthorizePageData,
    status_code=200,
)
async def get_authorize_page(
    client_id: str,
    redirect_uri: str,
    response_type: str,
    scope: str | None = None,
    state: str | None = None,
    db: AsyncSession = Depends(get_db),
    request_id: str = Depends(get_request_id),
):
    """
    Part 1 of the authorization code grant.

    Check the authorization request and return the data the consent screen should display.
    """
    client = await utils_oauth.get_client(db=db, client_id=client_id)
    if client is None or client.revoked:
        hemis_access_logger.warning(
            f"Authorize: Invalid or revoked client {client_id} ({request_id})",
        )
        raise AuthHTTPException(
            status_code=400,
            error="invalid_client",
            error_description="Invalid or revoked client",
        )
    if client.redirect_uri != redirect_uri:
        hemis_access_logger.warning(
            f"Authorize: Redirect URI mismatch for client {client_id} ({request_id})",
        )
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="Redirect URI mismatch",
        )
    if response_type != ResponseType.code:
        raise AuthHTTPException(
            status_code=400,
            error="unsupported_response_type",
            error_description=f"{response_type} is not supported",
        )

    return schemas_oauth.AuthorizePageData(
        client=schemas_oauth.ClientSimple(id=client.id, name=client.name),
        redirect_uri=redirect_uri,
        scope=scope,
        state=state,
    )


@router.post(
    "/oauth/authorize",
    response_model=schemas_oauth.AuthorizationGrantResponse,
    status_code=200,
)
async def post_authorize(
    grant: schemas_oauth.AuthorizationGrant,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: models_admins.Admin = Depends(is_admin),
    request_id: str = Depends(get_request_id),
):
    """
    The authenticated admin grants the client access to their resources.

    Return the url the admin should be redirected to, containing the authorization code and the state.
    """
    client = await utils_oauth.get_client(db=db, client_id=grant.client_id)
    if client is None or client.revoked:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_client",
            error_description="Invalid client",
        )
    if client.redirect_uri != grant.redirect_uri:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="Redirect URI mismatch",
        )

    authorization_code = await utils_oauth.issue_authorization_code(
        db=db,
        settings=settings,
        client_id=client.id,
        user_id=admin.id,
        scope=grant.scope,
    )

    query = {"code": authorization_code.id}
    if grant.state is not None:
        query["state"] = grant.state
    redirect_url = f"{grant.redirect_uri}?{urllib.parse.urlencode(query)}"

    hemis_access_logger.info(
        f"Authorize: Admin {admin.id} granted client {client.id} ({request_id})",
    )

    return schemas_oauth.AuthorizationGrantResponse(
        redirect_url=redirect_url,
        code=authorization_code.id,
        expires_in=utils_oauth.get_expires_in(authorization_code.expires_at),
    )


@router.post(
    "/oauth/token",
    response_model=schemas_oauth.TokenPair,
)
async def token(
    response: Response,
    # The client id and secret must be passed either in the authorization header or with client_id and client_secret parameters
    tokenreq: schemas_oauth.TokenReq = Depends(schemas_oauth.TokenReq.as_form),
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    request_id: str = Depends(get_request_id),
):
    """
    Part 2 of the authorization code grant, and refresh token rotation.

    Parameters must be `application/x-www-form-urlencoded` and include:
    * `grant_type`: `authorization_code` or `refresh_token`
    * `client_id`, and `client_secret` for confidential clients. They may be sent in a Basic authorization header instead
    * `code` and optionally `redirect_uri` for the `authorization_code` grant
    * `refresh_token` for the `refresh_token` grant

    https://datatracker.ietf.org/doc/html/rfc6749#section-4.1.3
    """
    if authorization is not None and authorization.startswith("Basic "):
        # client_id and client_secret are base64 encoded in the Basic authorization header
        try:
            tokenreq.client_id, tokenreq.client_secret = (
                base64.b64decode(authorization.removeprefix("Basic "))
                .decode("utf-8")
                .split(":", 1)
            )
        except (binascii.Error, UnicodeDecodeError, ValueError):
            raise AuthHTTPException(
                status_code=400,
                error="invalid_client",
                error_description="Invalid authorization header",
            ) from None

    if tokenreq.grant_type not in (GrantType.authorization_code, GrantType.refresh_token):
        hemis_access_logger.warning(
            f"Token: Unsupported grant_type, received {tokenreq.grant_type} ({request_id})",
        )
        raise AuthHTTPException(
            status_code=400,
            error="unsupported_grant_type",
            error_description=f"{tokenreq.grant_type} is not supported",
        )

    if not tokenreq.client_id:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="client_id is required",
        )

    hemis_access_logger.info(
        f"Token: Starting {tokenreq.grant_type} grant for client {tokenreq.client_id} ({request_id})",
    )

    try:
        if tokenreq.grant_type == GrantType.authorization_code:
            token_pair = await authorization_code_grant(
                db=db,
                settings=settings,
                tokenreq=tokenreq,
            )
        else:
            token_pair = await refresh_token_grant(
                db=db,
                settings=settings,
                tokenreq=tokenreq,
            )
    except exceptions_oauth.OAuthError as error:
        hemis_security_logger.warning(
            f"Token: Rejected {tokenreq.grant_type} grant for client {tokenreq.client_id}: {error.description} ({request_id})",
        )
        raise AuthHTTPException(
            status_code=400,
            error=error.error,
            error_description=error.description,
        ) from error

    # Required headers by OAuth
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    return token_pair


async def authorization_code_grant(
    db: AsyncSession,
    settings: Settings,
    tokenreq: schemas_oauth.TokenReq,
) -> schemas_oauth.TokenPair:
    if tokenreq.code is None:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="code is required",
        )

    return await utils_oauth.exchange_authorization_code(
        db=db,
        settings=settings,
        code=tokenreq.code,
        client_id=str(tokenreq.client_id),
        client_secret=tokenreq.client_secret,
        redirect_uri=tokenreq.redirect_uri,
    )


async def refresh_token_grant(
    db: AsyncSession,
    settings: Settings,
    tokenreq: schemas_oauth.TokenReq,
) -> schemas_oauth.TokenPair:
    if tokenreq.refresh_token is None:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="refresh_token is required",
        )

    if not await utils_oauth.validate_client(
        db=db,
        client_id=str(tokenreq.client_id),
        client_secret=tokenreq.client_secret,
    ):
        raise AuthHTTPException(
            status_code=400,
            error="invalid_client",
            error_description="Invalid client id or secret",
        )

    return await utils_oauth.refresh_access_token(
        db=db,
        settings=settings,
        refresh_token=tokenreq.refresh_token,
        client_id=str(tokenreq.client_id),
    )


@router.get(
    "/oauth/userinfo",
    response_model=schemas_oauth.UserInfo,
)
async def get_userinfo(
    access_token: str | None = None,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    request_id: str = Depends(get_request_id),
):
    """
    Return the subject of an access token. The token is passed as the `access_token` query parameter or as a bearer token.
    """
    if access_token is None and authorization is not None:
        if authorization.startswith("Bearer "):
            access_token = authorization.removeprefix("Bearer ")

    if not access_token:
        raise AuthHTTPException(
            status_code=400,
            error="invalid_request",
            error_description="Missing access token",
        )

    db_access_token = await utils_oauth.validate_access_token(db=db, token=access_token)
    if db_access_token is None:
        hemis_access_logger.warning(
            f"Userinfo: Invalid or expired access token ({request_id})",
        )
        raise AuthHTTPException(
            status_code=401,
            error="invalid_token",
            error_description="Token is invalid or expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return schemas_oauth.UserInfo(
        sub=db_access_token.user_id,
        client_id=db_access_token.client_id,
        scopes=db_access_token.scope.split(" ") if db_access_token.scope else [],
        exp=int(db_access_token.expires_at.timestamp()),
    )


@router.post(
    "/oauth/revoke",
    response_model=schemas_oauth.RevokeResponse,
)
async def revoke_token(
    revokereq: schemas_oauth.RevokeReq = Depends(schemas_oauth.RevokeReq.as_form),
    db: AsyncSession = Depends(get_db),
    request_id: str = Depends(get_request_id),
):
    """
    Revoke an access token or a refresh token. `token_type_hint` tells which kind of token is looked up first.

    https://datatracker.ietf.org/doc/html/rfc7009
    """
    if revokereq.token_type_hint == TokenTypeHint.refresh_token:
        revoked = await utils_oauth.revoke_refresh_token(
            db=db,
            token=revokereq.token,
        ) or await utils_oauth.revoke_access_token(db=db, token=revokereq.token)
    else:
        revoked = await utils_oauth.revoke_access_token(
            db=db,
            token=revokereq.token,
        ) or await utils_oauth.revoke_refresh_token(db=db, token=revokereq.token)

    if revoked:
        hemis_access_logger.info(f"Revoke: Revoked a token ({request_id})")

    return schemas_oauth.RevokeResponse(
        success=revoked,
        message="Token revoked" if revoked else "Token not found",
    )


# Clients management #


@router.post(
    "/oauth/clients",
    response_model=schemas_oauth.ClientCreated,
    status_code=201,
)
async def create_client(
    client_creation: schemas_oauth.ClientCreation,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
    request_id: str = Depends(get_request_id),
):
    """
    Register a new client. The secret is returned only once.

    **The admin must have a super admin role**
    """
    client, secret = await utils_oauth.create_client(
        db=db,
        name=client_creation.name,
        redirect_uri=client_creation.redirect_uri,
        confidential=client_creation.confidential,
        user_id=admin.id,
    )
    hemis_security_logger.info(
        f"Create_client: Admin {admin.id} registered client {client.id} ({request_id})",
    )
    return schemas_oauth.ClientCreated(
        id=client.id,
        name=client.name,
        redirect_uri=client.redirect_uri,
        user_id=client.user_id,
        revoked=client.revoked,
        created_at=client.created_at,
        secret=secret,
    )


@router.get(
    "/oauth/clients/{client_id}",
    response_model=schemas_oauth.ClientComplete,
    status_code=200,
)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
):
    """
    **The admin must have a super admin role**
    """
    client = await utils_oauth.get_client(db=db, client_id=client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.delete(
    "/oauth/clients/{client_id}",
    status_code=204,
)
async def revoke_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
    request_id: str = Depends(get_request_id),
):
    """
    Revoke a client. It can not obtain new codes or tokens anymore.

    **The admin must have a super admin role**
    """
    if not await utils_oauth.revoke_client(db=db, client_id=client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    hemis_security_logger.info(
        f"Revoke_client: Admin {admin.id} revoked client {client_id} ({request_id})",
    )


@router.post(
    "/oauth/cleanup",
    response_model=schemas_oauth.CleanupResponse,
    status_code=200,
)
async def cleanup_expired_tokens(
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
    request_id: str = Depends(get_request_id),
):
    """
    Delete expired codes and tokens.

    **The admin must have a super admin role**
    """
    deleted = await utils_oauth.cleanup_expired_tokens(db=db)
    hemis_access_logger.info(
        f"Cleanup: Deleted {deleted} expired codes and tokens ({request_id})",
    )
    return schemas_oauth.CleanupResponse(deleted=deleted)
