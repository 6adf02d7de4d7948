import base64
import urllib.parse
import uuid
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.core.admins import models_admins
from app.core.oauth import cruds_oauth, exceptions_oauth, models_oauth, utils_oauth
from tests.commons import (
    TestingSessionLocal,
    add_object_to_db,
    create_admin_with_roles,
    create_api_access_token,
    create_oauth_client,
    create_role_with_permissions,
    settings,
)

admin: models_admins.Admin
super_admin: models_admins.Admin

public_client: models_oauth.OAuthClient
confidential_client: models_oauth.OAuthClient
revoked_client: models_oauth.OAuthClient

confidential_client_secret = "confidential-client-secret"
redirect_uri = "https://client.example.com/callback"


@pytest_asyncio.fixture(scope="module", autouse=True)
async def init_objects() -> None:
    global admin, super_admin, public_client, confidential_client, revoked_client

    role = await create_role_with_permissions(["student.view"])
    admin = await create_admin_with_roles([role.code])
    super_admin = await create_admin_with_roles(["super_admin"])

    public_client = await create_oauth_client(redirect_uri=redirect_uri)
    confidential_client = await create_oauth_client(
        redirect_uri=redirect_uri,
        secret=confidential_client_secret,
    )
    revoked_client = await create_oauth_client(
        redirect_uri=redirect_uri,
        revoked=True,
    )


async def issue_code(
    client_id: str,
    user_id: str | None = None,
    scope: str | None = None,
) -> str:
    async with TestingSessionLocal() as db:
        authorization_code = await utils_oauth.issue_authorization_code(
            db=db,
            settings=settings,
            client_id=client_id,
            user_id=user_id or admin.id,
            scope=scope,
        )
        await db.commit()
    return authorization_code.id


async def issue_token_pair(client_id: str):
    """
    Issue a token pair to the public client `client_id`, using the authorization code flow
    """
    code = await issue_code(client_id=client_id)
    async with TestingSessionLocal() as db:
        token_pair = await utils_oauth.exchange_authorization_code(
            db=db,
            settings=settings,
            code=code,
            client_id=client_id,
        )
        await db.commit()
    return token_pair


async def add_expired_token_pair(
    client_id: str,
    refresh_token_expired: bool = True,
    revoked: bool = False,
) -> tuple[models_oauth.AccessToken, models_oauth.RefreshToken]:
    now = datetime.now(UTC)
    access_token = models_oauth.AccessToken(
        id=f"expired-access-{uuid.uuid4()}",
        client_id=client_id,
        user_id=admin.id,
        scope=None,
        created_at=now - timedelta(days=2),
        expires_at=now - timedelta(days=1),
        revoked=revoked,
    )
    await add_object_to_db(access_token)
    refresh_token = models_oauth.RefreshToken(
        id=f"expired-refresh-{uuid.uuid4()}",
        access_token_id=access_token.id,
        expires_at=now - timedelta(hours=1)
        if refresh_token_expired
        else now + timedelta(days=1),
        revoked=revoked,
    )
    await add_object_to_db(refresh_token)
    return access_token, refresh_token


# Token lifecycle #


async def test_exchange_authorization_code() -> None:
    code = await issue_code(client_id=public_client.id, scope="profile")

    async with TestingSessionLocal() as db:
        token_pair = await utils_oauth.exchange_authorization_code(
            db=db,
            settings=settings,
            code=code,
            client_id=public_client.id,
            redirect_uri=redirect_uri,
        )
        await db.commit()

    assert token_pair.token_type == "Bearer"
    assert token_pair.expires_in == settings.OAUTH_ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert token_pair.access_token != token_pair.refresh_token

    async with TestingSessionLocal() as db:
        access_token = await utils_oauth.validate_access_token(
            db=db,
            token=token_pair.access_token,
        )
        assert access_token is not None
        assert access_token.user_id == admin.id
        assert access_token.scope == "profile"

        authorization_code = await cruds_oauth.get_authorization_code_by_id(
            db=db,
            code=code,
        )
        assert authorization_code is not None
        assert authorization_code.revoked


async def test_exchange_authorization_code_twice() -> None:
    code = await issue_code(client_id=public_client.id)

    async with TestingSessionLocal() as db:
        await utils_oauth.exchange_authorization_code(
            db=db,
            settings=settings,
            code=code,
            client_id=public_client.id,
        )
        await db.commit()

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.AuthorizationCodeAlreadyUsedError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=code,
                client_id=public_client.id,
            )


async def test_exchange_unknown_authorization_code() -> None:
    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.InvalidAuthorizationCodeError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code="unknown-code",
                client_id=public_client.id,
            )


async def test_exchange_expired_authorization_code() -> None:
    authorization_code = models_oauth.AuthorizationCode(
        id="expired-authorization-code",
        client_id=public_client.id,
        user_id=admin.id,
        scope=None,
        expires_at=datetime.now(UTC) - timedelta(minutes=1),
    )
    await add_object_to_db(authorization_code)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.AuthorizationCodeExpiredError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=authorization_code.id,
                client_id=public_client.id,
            )


async def test_exchange_expired_and_used_authorization_code() -> None:
    authorization_code = models_oauth.AuthorizationCode(
        id=f"expired-used-authorization-code-{uuid.uuid4()}",
        client_id=public_client.id,
        user_id=admin.id,
        scope=None,
        expires_at=datetime.now(UTC) - timedelta(minutes=1),
        revoked=True,
    )
    await add_object_to_db(authorization_code)

    # Expiration is reported before reuse
    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.AuthorizationCodeExpiredError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=authorization_code.id,
                client_id=public_client.id,
            )



async def test_exchange_authorization_code_of_an_other_client() -> None:
    code = await issue_code(client_id=public_client.id)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.ClientMismatchError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=code,
                client_id=confidential_client.id,
                client_secret=confidential_client_secret,
            )


async def test_exchange_authorization_code_with_wrong_redirect_uri() -> None:
    code = await issue_code(client_id=public_client.id)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.RedirectUriMismatchError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=code,
                client_id=public_client.id,
                redirect_uri="https://attacker.example.com/callback",
            )


async def test_exchange_authorization_code_of_confidential_client() -> None:
    code = await issue_code(client_id=confidential_client.id)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.InvalidClientSecretError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=code,
                client_id=confidential_client.id,
            )
        with pytest.raises(exceptions_oauth.InvalidClientSecretError):
            await utils_oauth.exchange_authorization_code(
                db=db,
                settings=settings,
                code=code,
                client_id=confidential_client.id,
                client_secret="wrong-secret",
            )

        token_pair = await utils_oauth.exchange_authorization_code(
            db=db,
            settings=settings,
            code=code,
            client_id=confidential_client.id,
            client_secret=confidential_client_secret,
        )
        await db.commit()

    assert token_pair.access_token


async def test_refresh_access_token() -> None:
    client = await create_oauth_client()
    first_pair = await issue_token_pair(client_id=client.id)

    async with TestingSessionLocal() as db:
        second_pair = await utils_oauth.refresh_access_token(
            db=db,
            settings=settings,
            refresh_token=first_pair.refresh_token,
            client_id=client.id,
        )
        await db.commit()

    assert second_pair.access_token != first_pair.access_token
    assert second_pair.refresh_token != first_pair.refresh_token

    async with TestingSessionLocal() as db:
        # The rotated pair is revoked
        assert (
            await utils_oauth.validate_access_token(
                db=db,
                token=first_pair.access_token,
            )
            is None
        )
        old_refresh_token = await cruds_oauth.get_refresh_token_by_id(
            db=db,
            token=first_pair.refresh_token,
        )
        assert old_refresh_token is not None
        assert old_refresh_token.revoked

        new_access_token = await utils_oauth.validate_access_token(
            db=db,
            token=second_pair.access_token,
        )
        assert new_access_token is not None
        assert new_access_token.user_id == admin.id


async def test_reuse_of_rotated_refresh_token() -> None:
    client = await create_oauth_client()
    first_pair = await issue_token_pair(client_id=client.id)
    # An other session of the same user, from an other authorization code
    other_pair = await issue_token_pair(client_id=client.id)

    async with TestingSessionLocal() as db:
        second_pair = await utils_oauth.refresh_access_token(
            db=db,
            settings=settings,
            refresh_token=first_pair.refresh_token,
            client_id=client.id,
        )
        await db.commit()

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.TokenRevokedError):
            await utils_oauth.refresh_access_token(
                db=db,
                settings=settings,
                refresh_token=first_pair.refresh_token,
                client_id=client.id,
            )
        await db.commit()

    # The replay does not revoke any other token pair
    async with TestingSessionLocal() as db:
        assert (
            await utils_oauth.validate_access_token(
                db=db,
                token=second_pair.access_token,
            )
            is not None
        )
        assert (
            await utils_oauth.validate_access_token(
                db=db,
                token=other_pair.access_token,
            )
            is not None
        )

    async with TestingSessionLocal() as db:
        third_pair = await utils_oauth.refresh_access_token(
            db=db,
            settings=settings,
            refresh_token=other_pair.refresh_token,
            client_id=client.id,
        )
        await db.commit()

    assert third_pair.access_token


async def test_refresh_access_token_of_an_other_client() -> None:
    client = await create_oauth_client()
    token_pair = await issue_token_pair(client_id=client.id)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.ClientMismatchError):
            await utils_oauth.refresh_access_token(
                db=db,
                settings=settings,
                refresh_token=token_pair.refresh_token,
                client_id=public_client.id,
            )


async def test_refresh_unknown_token() -> None:
    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.InvalidTokenError):
            await utils_oauth.refresh_access_token(
                db=db,
                settings=settings,
                refresh_token="unknown-refresh-token",
                client_id=public_client.id,
            )


async def test_refresh_expired_token() -> None:
    _, refresh_token = await add_expired_token_pair(client_id=public_client.id)

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.TokenExpiredError):
            await utils_oauth.refresh_access_token(
                db=db,
                settings=settings,
                refresh_token=refresh_token.id,
                client_id=public_client.id,
            )


async def test_refresh_expired_and_revoked_token() -> None:
    _, refresh_token = await add_expired_token_pair(
        client_id=public_client.id,
        revoked=True,
    )

    async with TestingSessionLocal() as db:
        with pytest.raises(exceptions_oauth.TokenExpiredError):
            await utils_oauth.refresh_access_token(
                db=db,
                settings=settings,
                refresh_token=refresh_token.id,
                client_id=public_client.id,
            )



async def test_validate_client() -> None:
    async with TestingSessionLocal() as db:
        assert await utils_oauth.validate_client(db=db, client_id=public_client.id)
        assert await utils_oauth.validate_client(
            db=db,
            client_id=confidential_client.id,
            client_secret=confidential_client_secret,
        )
        assert not await utils_oauth.validate_client(
            db=db,
            client_id=confidential_client.id,
            client_secret="wrong-secret",
        )
        assert not await utils_oauth.validate_client(
            db=db,
            client_id=revoked_client.id,
        )
        assert not await utils_oauth.validate_client(db=db, client_id="unknown")


async def test_create_client() -> None:
    async with TestingSessionLocal() as db:
        client, secret = await utils_oauth.create_client(
            db=db,
            name="Mobile application",
            redirect_uri="hemis://callback",
            confidential=True,
        )
        await db.commit()

    assert secret is not None
    assert client.secret_hash != secret

    async with TestingSessionLocal() as db:
        assert await utils_oauth.validate_client(
            db=db,
            client_id=client.id,
            client_secret=secret,
        )


async def test_revoke_tokens() -> None:
    client = await create_oauth_client()
    token_pair = await issue_token_pair(client_id=client.id)

    async with TestingSessionLocal() as db:
        assert await utils_oauth.revoke_access_token(
            db=db,
            token=token_pair.access_token,
        )
        assert await utils_oauth.revoke_refresh_token(
            db=db,
            token=token_pair.refresh_token,
        )
        assert not await utils_oauth.revoke_access_token(db=db, token="unknown")
        assert not await utils_oauth.revoke_refresh_token(db=db, token="unknown")
        await db.commit()

    async with TestingSessionLocal() as db:
        assert (
            await utils_oauth.validate_access_token(
                db=db,
                token=token_pair.access_token,
            )
            is None
        )


async def test_cleanup_expired_tokens() -> None:
    expired_access_token, expired_refresh_token = await add_expired_token_pair(
        client_id=public_client.id,
    )
    # The refresh token is still valid, its access token must be kept
    kept_access_token, kept_refresh_token = await add_expired_token_pair(
        client_id=public_client.id,
        refresh_token_expired=False,
    )
    valid_pair = await issue_token_pair(client_id=public_client.id)

    async with TestingSessionLocal() as db:
        deleted = await utils_oauth.cleanup_expired_tokens(db=db)
        await db.commit()

    assert deleted >= 2

    async with TestingSessionLocal() as db:
        assert (
            await cruds_oauth.get_refresh_token_by_id(
                db=db,
                token=expired_refresh_token.id,
            )
            is None
        )
        assert (
            await cruds_oauth.get_access_token_by_id(
                db=db,
                token=expired_access_token.id,
            )
            is None
        )
        assert (
            await cruds_oauth.get_refresh_token_by_id(
                db=db,
                token=kept_refresh_token.id,
            )
            is not None
        )
        assert (
            await cruds_oauth.get_access_token_by_id(
                db=db,
                token=kept_access_token.id,
            )
            is not None
        )
        assert (
            await utils_oauth.validate_access_token(
                db=db,
                token=valid_pair.access_token,
            )
            is not None
        )


# Endpoints #


def test_get_authorize_page(client: TestClient) -> None:
    response = client.get(
        "/oauth/authorize",
        params={
            "client_id": public_client.id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": "xyz",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["client"]["id"] == public_client.id
    assert data["state"] == "xyz"


def test_get_authorize_page_with_invalid_request(client: TestClient) -> None:
    response = client.get(
        "/oauth/authorize",
        params={
            "client_id": revoked_client.id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"

    response = client.get(
        "/oauth/authorize",
        params={
            "client_id": public_client.id,
            "redirect_uri": "https://attacker.example.com/callback",
            "response_type": "code",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"

    response = client.get(
        "/oauth/authorize",
        params={
            "client_id": public_client.id,
            "redirect_uri": redirect_uri,
            "response_type": "token",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "unsupported_response_type"


def test_authorization_code_flow(client: TestClient) -> None:
    token = create_api_access_token(admin)

    response = client.post(
        "/oauth/authorize",
        json={
            "client_id": public_client.id,
            "redirect_uri": redirect_uri,
            "scope": "profile",
            "state": "xyz",
        },
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    data = response.json()
    query = urllib.parse.parse_qs(urllib.parse.urlsplit(data["redirect_url"]).query)
    assert data["redirect_url"].startswith(redirect_uri + "?")
    assert query["code"] == [data["code"]]
    assert query["state"] == ["xyz"]
    assert 0 < data["expires_in"] <= settings.AUTHORIZATION_CODE_EXPIRE_MINUTES * 60

    response = client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": data["code"],
            "client_id": public_client.id,
            "redirect_uri": redirect_uri,
        },
    )
    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "no-store"
    token_pair = response.json()
    assert token_pair["expires_in"] == 3600
    assert token_pair["token_type"] == "Bearer"

    response = client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": data["code"],
            "client_id": public_client.id,
        },
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "invalid_grant",
        "error_description": "Authorization code already used",
    }

    response = client.get(
        "/oauth/userinfo",
        headers={"Authorization": f"Bearer {token_pair['access_token']}"},
    )
    assert response.status_code == 200
    userinfo = response.json()
    assert userinfo["sub"] == admin.id
    assert userinfo["client_id"] == public_client.id
    assert userinfo["scopes"] == ["profile"]

    response = client.post(
        "/oauth/token",
        data={
            "grant_type": "refresh_token",
            "refresh_token": token_pair["refresh_token"],
            "client_id": public_client.id,
        },
    )
    assert response.status_code == 200
    assert response.json()["refresh_token"] != token_pair["refresh_token"]

    response = client.get(
        "/oauth/userinfo",
        params={"access_token": token_pair["access_token"]},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_authorize_requires_an_admin(client: TestClient) -> None:
    response = client.post(
        "/oauth/authorize",
        json={
            "client_id": public_client.id,
            "redirect_uri": redirect_uri,
        },
    )
    assert response.status_code == 401


def test_token_with_basic_authorization(client: TestClient) -> None:
    token = create_api_access_token(admin)
    response = client.post(
        "/oauth/authorize",
        json={
            "client_id": confidential_client.id,
            "redirect_uri": redirect_uri,
        },
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    code = response.json()["code"]

    credentials = base64.b64encode(
        f"{confidential_client.id}:{confidential_client_secret}".encode(),
    ).decode()
    response = client.post(
        "/oauth/token",
        data={"grant_type": "authorization_code", "code": code},
        headers={"Authorization": f"Basic {credentials}"},
    )
    assert response.status_code == 200


def test_token_with_wrong_client_secret(client: TestClient) -> None:
    token = create_api_access_token(admin)
    response = client.post(
        "/oauth/authorize",
        json={
            "client_id": confidential_client.id,
            "redirect_uri": redirect_uri,
        },
        headers={"Authorization": f"Bearer {token}"},
    )
    code = response.json()["code"]

    response = client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": code,
            "client_id": confidential_client.id,
            "client_secret": "wrong-secret",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_token_with_invalid_request(client: TestClient) -> None:
    response = client.post(
        "/oauth/token",
        data={"grant_type": "password", "client_id": public_client.id},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "unsupported_grant_type"

    response = client.post(
        "/oauth/token",
        data={"grant_type": "authorization_code", "code": "some-code"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"

    response = client.post(
        "/oauth/token",
        data={"grant_type": "refresh_token", "client_id": public_client.id},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"

    response = client.post(
        "/oauth/token",
        data={"grant_type": "authorization_code", "code": "some-code"},
        headers={"Authorization": "Basic not-base64"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_refresh_token_with_revoked_client(client: TestClient) -> None:
    response = client.post(
        "/oauth/token",
        data={
            "grant_type": "refresh_token",
            "refresh_token": "some-refresh-token",
            "client_id": revoked_client.id,
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_userinfo_without_token(client: TestClient) -> None:
    response = client.get("/oauth/userinfo")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"


async def test_revoke_endpoint(client: TestClient) -> None:
    token_pair = await issue_token_pair(client_id=public_client.id)

    response = client.post(
        "/oauth/revoke",
        data={"token": token_pair.refresh_token, "token_type_hint": "refresh_token"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Token revoked"}

    # Without hint, the access token is looked up first
    response = client.post(
        "/oauth/revoke",
        data={"token": token_pair.access_token},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.get(
        "/oauth/userinfo",
        params={"access_token": token_pair.access_token},
    )
    assert response.status_code == 401

    response = client.post(
        "/oauth/revoke",
        data={"token": "unknown-token"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Token not found"}


async def test_revoke_endpoint_with_unknown_hint(client: TestClient) -> None:
    token_pair = await issue_token_pair(client_id=public_client.id)

    response = client.post(
        "/oauth/revoke",
        data={"token": token_pair.refresh_token, "token_type_hint": "id_token"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Token revoked"}

    async with TestingSessionLocal() as db:
        refresh_token = await cruds_oauth.get_refresh_token_by_id(
            db=db,
            token=token_pair.refresh_token,
        )
        assert refresh_token is not None
        assert refresh_token.revoked


def test_create_client_endpoint(client: TestClient) -> None:
    token = create_api_access_token(super_admin)

    response = client.post(
        "/oauth/clients",
        json={"name": "Dashboard", "redirect_uri": redirect_uri},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["secret"] is not None
    assert data["user_id"] == super_admin.id
    assert data["revoked"] is False

    response = client.get(
        f"/oauth/clients/{data['id']}",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    assert "secret" not in response.json()

    response = client.post(
        "/oauth/clients",
        json={
            "name": "Mobile application",
            "redirect_uri": "hemis://callback",
            "confidential": False,
        },
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 201
    assert response.json()["secret"] is None


def test_create_client_requires_super_admin(client: TestClient) -> None:
    token = create_api_access_token(admin)

    response = client.post(
        "/oauth/clients",
        json={"name": "Dashboard", "redirect_uri": redirect_uri},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 403


async def test_revoke_client_endpoint(client: TestClient) -> None:
    oauth_client = await create_oauth_client()
    token = create_api_access_token(super_admin)

    response = client.delete(
        f"/oauth/clients/{oauth_client.id}",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 204

    response = client.get(
        "/oauth/authorize",
        params={
            "client_id": oauth_client.id,
            "redirect_uri": oauth_client.redirect_uri,
            "response_type": "code",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_unknown_client_endpoints(client: TestClient) -> None:
    token = create_api_access_token(super_admin)

    response = client.get(
        "/oauth/clients/unknown",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 404

    response = client.delete(
        "/oauth/clients/unknown",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 404


def test_cleanup_endpoint(client: TestClient) -> None:
    token = create_api_access_token(super_admin)

    response = client.post(
        "/oauth/cleanup",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    assert response.json()["deleted"] >= 0
