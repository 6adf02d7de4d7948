"""Schemas file for endpoint /oauth"""

from datetime import datetime

from fastapi import Form
from pydantic import BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_token: str


class TokenReq(BaseModel):
    """
    Body of the token endpoint. The request must be sent as `application/x-www-form-urlencoded`.
    """

    grant_type: str
    client_id: str | None = None
    client_secret: str | None = None
    # authorization_code grant
    code: str | None = None
    redirect_uri: str | None = None
    # refresh_token grant
    refresh_token: str | None = None

    @classmethod
    def as_form(
        cls,
        grant_type: str = Form(...),
        client_id: str | None = Form(None),
        client_secret: str | None = Form(None),
        code: str | None = Form(None),
        redirect_uri: str | None = Form(None),
        refresh_token: str | None = Form(None),
    ):
        return cls(
            grant_type=grant_type,
            client_id=client_id,
            client_secret=client_secret,
            code=code,
            redirect_uri=redirect_uri,
            refresh_token=refresh_token,
        )


class RevokeReq(BaseModel):
    token: str
    # Unknown hints are ignored, as if no hint was given
    token_type_hint: str | None = None

    @classmethod
    def as_form(
        cls,
        token: str = Form(...),
        token_type_hint: str | None = Form(None),
    ):
        return cls(token=token, token_type_hint=token_type_hint)


class RevokeResponse(BaseModel):
    success: bool
    message: str


class ClientSimple(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class AuthorizePageData(BaseModel):
    client: ClientSimple
    redirect_uri: str
    scope: str | None
    state: str | None


class AuthorizationGrant(BaseModel):
    client_id: str
    redirect_uri: str
    scope: str | None = None
    state: str | None = None


class AuthorizationGrantResponse(BaseModel):
    redirect_url: str
    code: str
    expires_in: int


class UserInfo(BaseModel):
    sub: str | None
    client_id: str
    scopes: list[str]
    exp: int


class ClientBase(BaseModel):
    name: str = Field(min_length=1)
    redirect_uri: str = Field(min_length=1)


class ClientCreation(ClientBase):
    # Public clients, like mobile applications, can not keep a secret
    confidential: bool = True


class ClientComplete(ClientBase):
    id: str
    user_id: str | None
    revoked: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientCreated(ClientComplete):
    # Only returned once, when the client is created
    secret: str | None


class CleanupResponse(BaseModel):
    deleted: int
