"""Schemas file for endpoint /menu"""

from datetime import datetime

from pydantic import BaseModel, Field


class MenuNodeConfig(BaseModel):
    """
    A node of the configured menu tree, as written in the menu yaml file
    """

    # Falls back to the node id
    label: str | None = None
    url: str = "#"
    icon: str = "circle"
    permission: str | None = None
    active: bool = True
    order: int | None = None
    # Children, keyed by their id. Their declaration order is kept
    items: dict[str, "MenuNodeConfig"] = {}


class MenuConfig(BaseModel):
    menu: dict[str, MenuNodeConfig]
    # Legacy path (`student/student`) to frontend route (`/students`)
    routes: dict[str, str] = {}
    # Required permission to the list of permissions that are also accepted for it
    permission_aliases: dict[str, list[str]] = {}


class MenuItem(BaseModel):
    """
    A node of a filtered and translated menu
    """

    id: str
    label: str
    url: str
    icon: str
    permission: str | None = None
    items: list["MenuItem"] = []
    active: bool = True
    order: int | None = None


class MenuCacheEntry(BaseModel):
    menu: list[MenuItem]
    # Permissions used to build the menu
    permissions: list[str]
    expires_at: datetime


class MenuResponse(BaseModel):
    menu: list[MenuItem]
    permissions: list[str]
    locale: str
    cached: bool
    cache_expires_at: datetime | None
    generated_at: datetime


class PathAccessRequest(BaseModel):
    path: str = Field(min_length=1)


class PathAccessResponse(BaseModel):
    path: str
    accessible: bool
