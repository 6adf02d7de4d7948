import re
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit

import yaml
from pydantic import ValidationError

from app.core.menu import schemas_menu
from app.core.menu.cache_menu import MenuCache
from app.types.exceptions import MenuConfigurationError

# (label, locale) -> translated label
TranslateFunction = Callable[[str, str], str]

UNIVERSAL_PERMISSION = "*"


@lru_cache
def load_menu_config(path: str) -> schemas_menu.MenuConfig:
    """
    Read and validate the menu yaml file. The result is cached for the lifetime of the process.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise MenuConfigurationError(path, "file not found")

    with config_path.open(encoding="utf-8") as config_file:
        raw_config = yaml.safe_load(config_file)

    try:
        return schemas_menu.MenuConfig.model_validate(raw_config or {})
    except ValidationError as error:
        raise MenuConfigurationError(path, str(error)) from error


###########################
# Permission matching     #
###########################


def permission_matches(required: str, granted: str) -> bool:
    """
    Check if a single granted permission satisfies a required one.

    * `*` grants everything
    * an identical permission grants it
    * `prefix.*` grants every permission starting with `prefix.`
    """
    if granted in (UNIVERSAL_PERMISSION, required):
        return True
    if granted.endswith(".*"):
        return required.startswith(granted[:-1])
    return False


def has_permission(
    required: str,
    permissions: list[str],
    aliases: dict[str, list[str]] | None = None,
) -> bool:
    """
    Check the dot-notation grammar: one of `permissions` matches `required`,
    or one of the configured alternatives of `required` is held.
    """
    if any(permission_matches(required, granted) for granted in permissions):
        return True

    alternatives = (aliases or {}).get(required, [])
    return any(alternative in permissions for alternative in alternatives)


def legacy_path_matches(item_id: str, item_url: str, permissions: list[str]) -> bool:
    """
    Check the legacy path grammar: a permission containing a `/` grants items
    whose url path or id path starts with it, ignoring leading and trailing slashes.
    """
    item_id_path = item_id.strip("/")
    item_url_path = urlsplit(item_url).path.lstrip("/")

    for granted in permissions:
        if "/" not in granted:
            continue
        granted_path = granted.strip("/")
        if not granted_path:
            continue
        if item_url_path and item_url_path.startswith(granted_path):
            return True
        if item_id_path and item_id_path.startswith(granted_path):
            return True
    return False


def can_access_item(
    item_id: str,
    item_url: str,
    required: str | None,
    permissions: list[str],
    aliases: dict[str, list[str]] | None = None,
) -> bool:
    # Both grammars are independent, any of them may grant the access
    if required is None:
        return True
    return has_permission(required, permissions, aliases) or legacy_path_matches(
        item_id,
        item_url,
        permissions,
    )


###########################
# Menu filtering          #
###########################


def normalize_url(
    item_id: str,
    url: str,
    routes: dict[str, str],
    preserve_legacy_paths: bool,
) -> str:
    """
    Return the url sent to the frontend.

    Legacy paths are kept as is (with a single leading slash) when `preserve_legacy_paths` is set.
    Otherwise they are mapped with the route table, by id first then by url.
    """
    clean_id = item_id.lstrip("/")
    clean_url = url.lstrip("/")

    if preserve_legacy_paths:
        return "/" + clean_url

    if clean_id in routes:
        return routes[clean_id]
    if clean_url in routes:
        return routes[clean_url]

    return re.sub(r"/{2,}", "/", "/" + clean_url)


def sort_menu_items(items: list[schemas_menu.MenuItem]) -> list[schemas_menu.MenuItem]:
    """
    Items with an explicit order come first, sorted by order. Other items keep their declaration order.
    """
    ordered = sorted(
        (item for item in items if item.order is not None),
        key=lambda item: item.order or 0,
    )
    unordered = [item for item in items if item.order is None]
    return ordered + unordered


def build_menu_item(
    item_id: str,
    node: schemas_menu.MenuNodeConfig,
    permissions: list[str],
    locale: str,
    translate: TranslateFunction,
    menu_config: schemas_menu.MenuConfig,
    preserve_legacy_paths: bool,
) -> schemas_menu.MenuItem | None:
    """
    Filter the node children then the node itself. Return None if the node should not be displayed.

    A node having at least one visible child is always kept.
    """
    children: list[schemas_menu.MenuItem] = []
    for child_id, child_node in node.items.items():
        child = build_menu_item(
            item_id=child_id,
            node=child_node,
            permissions=permissions,
            locale=locale,
            translate=translate,
            menu_config=menu_config,
            preserve_legacy_paths=preserve_legacy_paths,
        )
        if child is not None:
            children.append(child)

    url = normalize_url(
        item_id=item_id,
        url=node.url,
        routes=menu_config.routes,
        preserve_legacy_paths=preserve_legacy_paths,
    )

    if not children and not can_access_item(
        item_id=item_id,
        item_url=url,
        required=node.permission,
        permissions=permissions,
        aliases=menu_config.permission_aliases,
    ):
        return None

    return schemas_menu.MenuItem(
        id=item_id,
        label=translate(node.label or item_id, locale),
        url=url,
        icon=node.icon,
        permission=node.permission,
        items=sort_menu_items(children),
        active=node.active,
        order=node.order,
    )


def compute_menu(
    menu_config: schemas_menu.MenuConfig,
    permissions: list[str],
    locale: str,
    translate: TranslateFunction,
    preserve_legacy_paths: bool = True,
) -> list[schemas_menu.MenuItem]:
    """
    Return the part of the configured menu the `permissions` give access to, translated in `locale`.

    This function has no side effect: the same arguments always give the same menu.
    """
    items: list[schemas_menu.MenuItem] = []
    for item_id, node in menu_config.menu.items():
        item = build_menu_item(
            item_id=item_id,
            node=node,
            permissions=permissions,
            locale=locale,
            translate=translate,
            menu_config=menu_config,
            preserve_legacy_paths=preserve_legacy_paths,
        )
        if item is not None:
            items.append(item)

    return sort_menu_items(items)


def get_menu(
    user_id: str,
    role_id: str | None,
    permissions: list[str],
    locale: str,
    menu_config: schemas_menu.MenuConfig,
    translate: TranslateFunction,
    menu_cache: MenuCache,
    preserve_legacy_paths: bool = True,
) -> schemas_menu.MenuResponse:
    """
    Cache-aside wrapper around `compute_menu`.

    On a cache hit, the cached menu and the permissions it was built with are returned.
    On a miss, the menu is computed then stored. If the cache can not be used, the computed menu is returned without `cache_expires_at`.
    """
    now = datetime.now(UTC)

    cached_entry = menu_cache.get(user_id=user_id, role_id=role_id, locale=locale)
    if cached_entry is not None:
        return schemas_menu.MenuResponse(
            menu=cached_entry.menu,
            permissions=cached_entry.permissions,
            locale=locale,
            cached=True,
            cache_expires_at=cached_entry.expires_at,
            generated_at=now,
        )

    menu = compute_menu(
        menu_config=menu_config,
        permissions=permissions,
        locale=locale,
        translate=translate,
        preserve_legacy_paths=preserve_legacy_paths,
    )
    expires_at = now + timedelta(seconds=menu_cache.ttl)

    stored = menu_cache.store(
        user_id=user_id,
        role_id=role_id,
        locale=locale,
        entry=schemas_menu.MenuCacheEntry(
            menu=menu,
            permissions=permissions,
            expires_at=expires_at,
        ),
    )

    return schemas_menu.MenuResponse(
        menu=menu,
        permissions=permissions,
        locale=locale,
        cached=False,
        cache_expires_at=expires_at if stored else None,
        generated_at=now,
    )


###########################
# Path access             #
###########################


def iter_menu_nodes(
    nodes: dict[str, schemas_menu.MenuNodeConfig],
) -> Iterator[tuple[str, schemas_menu.MenuNodeConfig]]:
    for node_id, node in nodes.items():
        yield node_id, node
        yield from iter_menu_nodes(node.items)


def is_path_accessible(
    path: str,
    permissions: list[str],
    menu_config: schemas_menu.MenuConfig,
    preserve_legacy_paths: bool = True,
) -> bool:
    """
    Check if a frontend path can be opened with `permissions`.

    Ajax paths are always accessible. Otherwise the legacy path grammar is checked,
    then the permission of the menu items whose id or url is the path.
    """
    clean_path = path.strip("/")

    if UNIVERSAL_PERMISSION in permissions or clean_path.startswith("ajax"):
        return True

    if legacy_path_matches(clean_path, "/" + clean_path, permissions):
        return True

    for node_id, node in iter_menu_nodes(menu_config.menu):
        url = normalize_url(
            item_id=node_id,
            url=node.url,
            routes=menu_config.routes,
            preserve_legacy_paths=preserve_legacy_paths,
        )
        if clean_path not in (node_id.strip("/"), url.strip("/")):
            continue
        if can_access_item(
            item_id=node_id,
            item_url=url,
            required=node.permission,
            permissions=permissions,
            aliases=menu_config.permission_aliases,
        ):
            return True
    return False
