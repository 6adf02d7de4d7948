"""Schemas file for endpoint /admins"""

from pydantic import BaseModel, ConfigDict, Field


class TokenData(BaseModel):
    """
    Payload of an admin session JWT
    """

    sub: str  # Admin id
    scopes: str = ""


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AdminRoleBase(BaseModel):
    code: str = Field(min_length=1)
    name: str


class AdminRoleComplete(AdminRoleBase):
    active: bool
    permissions: list[str]


class RolePermissionCreation(BaseModel):
    permission: str = Field(min_length=1)


class AdminBase(BaseModel):
    login: str = Field(min_length=1)
    email: str | None = None
    full_name: str


class AdminCreation(AdminBase):
    password: str = Field(min_length=6)
    role_code: str | None = None
    # Roles the admin may switch to, the active role is always included
    role_codes: list[str] = []


class AdminSimple(AdminBase):
    id: str
    role_code: str | None
    active: bool

    model_config = ConfigDict(from_attributes=True)


class AdminMe(AdminSimple):
    role_codes: list[str]
    permissions: list[str]


class RoleSwitch(BaseModel):
    role_code: str
