import logging

from fastapi import APIRouter, Depends

from app.core.admins import models_admins, utils_admins
from app.core.menu import schemas_menu, utils_menu
from app.core.menu.cache_menu import MenuCache
from app.core.menu.dependencies_menu import get_locale
from app.core.utils.config import Settings
from app.dependencies import (
    get_menu_cache,
    get_menu_config,
    get_request_id,
    get_settings,
    get_translator,
    is_admin,
    is_super_admin,
)
from app.types.module import CoreModule
from app.utils.translations import MenuTranslator

router = APIRouter(tags=["Menu"])

core_module = CoreModule(
    root="menu",
    tag="Menu",
    router=router,
)

hemis_access_logger = logging.getLogger("hemis.access")


@router.get(
    "/menu",
    response_model=schemas_menu.MenuResponse,
    status_code=200,
)
async def get_menu(
    locale: str = Depends(get_locale),
    admin: models_admins.Admin = Depends(is_admin),
    settings: Settings = Depends(get_settings),
    menu_config: schemas_menu.MenuConfig = Depends(get_menu_config),
    translator: MenuTranslator = Depends(get_translator),
    menu_cache: MenuCache = Depends(get_menu_cache),
    request_id: str = Depends(get_request_id),
):
    """
    Return the menu of the current admin, filtered with the permissions of its active role and translated in the requested locale.

    The locale is read from the `locale` query parameter, the `X-Locale` header or the `Accept-Language` header.
    """
    menu = utils_menu.get_menu(
        user_id=admin.id,
        role_id=admin.role_code,
        permissions=utils_admins.get_admin_permissions(admin, settings),
        locale=locale,
        menu_config=menu_config,
        translate=translator.translate,
        menu_cache=menu_cache,
        preserve_legacy_paths=settings.MENU_PRESERVE_LEGACY_PATHS,
    )
    hemis_access_logger.debug(
        f"Get_menu: Menu of admin {admin.id} for role {admin.role_code} in {locale}, cached: {menu.cached} ({request_id})",
    )
    return menu


@router.post(
    "/menu/check-access",
    response_model=schemas_menu.PathAccessResponse,
    status_code=200,
)
async def check_path_access(
    path_access: schemas_menu.PathAccessRequest,
    admin: models_admins.Admin = Depends(is_admin),
    settings: Settings = Depends(get_settings),
    menu_config: schemas_menu.MenuConfig = Depends(get_menu_config),
):
    """
    Check if the current admin can open a frontend path
    """
    return schemas_menu.PathAccessResponse(
        path=path_access.path,
        accessible=utils_menu.is_path_accessible(
            path=path_access.path,
            permissions=utils_admins.get_admin_permissions(admin, settings),
            menu_config=menu_config,
            preserve_legacy_paths=settings.MENU_PRESERVE_LEGACY_PATHS,
        ),
    )


@router.post(
    "/menu/clear-cache",
    status_code=204,
)
async def clear_menu_cache(
    admin: models_admins.Admin = Depends(is_admin),
    menu_cache: MenuCache = Depends(get_menu_cache),
):
    """
    Delete the menus cached for the current admin, for every role and locale
    """
    menu_cache.invalidate_user(admin.id)


@router.get(
    "/menu/structure",
    response_model=schemas_menu.MenuConfig,
    status_code=200,
)
async def get_menu_structure(
    admin: models_admins.Admin = Depends(is_super_admin),
    menu_config: schemas_menu.MenuConfig = Depends(get_menu_config),
):
    """
    Return the whole menu configuration, without any filtering

    **The admin must have a super admin role**
    """
    return menu_config
