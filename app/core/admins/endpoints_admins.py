import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admins import cruds_admins, models_admins, schemas_admins, utils_admins
from app.core.menu.cache_menu import MenuCache
from app.core.utils.config import Settings
from app.core.utils.security import (
    authenticate_admin,
    create_access_token,
    get_password_hash,
)
from app.dependencies import (
    get_db,
    get_menu_cache,
    get_request_id,
    get_settings,
    is_admin,
    is_super_admin,
)
from app.types.module import CoreModule
from app.types.scopes_type import ScopeType

router = APIRouter(tags=["Admins"])

core_module = CoreModule(
    root="admins",
    tag="Admins",
    router=router,
)

hemis_security_logger = logging.getLogger("hemis.security")


@router.post(
    "/admins/token",
    response_model=schemas_admins.AccessToken,
    status_code=200,
)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    request_id: str = Depends(get_request_id),
):
    """
    Ask for a JWT access token using oauth password flow.

    *username* (the admin login) and *password* must be provided

    Note: the request body needs to use **form-data** and not json.
    """
    admin = await authenticate_admin(db, form_data.username, form_data.password)
    if not admin:
        hemis_security_logger.warning(
            f"Login: Failed login attempt for {form_data.username} ({request_id})",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # We put the admin id in the subject field of the token.
    # The subject `sub` is a JWT registered claim name, see https://datatracker.ietf.org/doc/html/rfc7519#section-4.1
    data = schemas_admins.TokenData(sub=admin.id, scopes=ScopeType.API)
    access_token = create_access_token(settings=settings, data=data)
    return schemas_admins.AccessToken(access_token=access_token)


@router.get(
    "/admins/me",
    response_model=schemas_admins.AdminMe,
    status_code=200,
)
async def read_current_admin(
    admin: models_admins.Admin = Depends(is_admin),
    settings: Settings = Depends(get_settings),
):
    """
    Return the current admin, its roles and the permissions of its active role
    """
    return schemas_admins.AdminMe(
        id=admin.id,
        login=admin.login,
        email=admin.email,
        full_name=admin.full_name,
        role_code=admin.role_code,
        active=admin.active,
        role_codes=admin.role_codes,
        permissions=utils_admins.get_admin_permissions(admin, settings),
    )


@router.patch(
    "/admins/me/role",
    status_code=204,
)
async def switch_role(
    role_switch: schemas_admins.RoleSwitch,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_admin),
    menu_cache: MenuCache = Depends(get_menu_cache),
    request_id: str = Depends(get_request_id),
):
    """
    Change the active role of the current admin. The admin must be a member of the role.

    The menus cached for the admin are invalidated.
    """
    if role_switch.role_code not in admin.role_codes:
        raise HTTPException(
            status_code=403,
            detail="You are not a member of this role",
        )

    await cruds_admins.update_admin_role(
        db=db,
        admin_id=admin.id,
        role_code=role_switch.role_code,
    )
    # Other requests must not rebuild the menu from the previous role
    await db.commit()
    menu_cache.invalidate_user(admin.id)

    hemis_security_logger.info(
        f"Switch_role: Admin {admin.id} switched from role {admin.role_code} to {role_switch.role_code} ({request_id})",
    )


@router.post(
    "/admins/",
    response_model=schemas_admins.AdminSimple,
    status_code=201,
)
async def create_admin(
    admin_creation: schemas_admins.AdminCreation,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
):
    """
    Create a new admin account. The active role is added to the roles the admin can switch to.

    **The admin must have a super admin role**
    """
    if await cruds_admins.get_admin_by_login(db=db, login=admin_creation.login):
        raise HTTPException(status_code=400, detail="Login already used")

    role_codes = list(admin_creation.role_codes)
    if admin_creation.role_code is not None and admin_creation.role_code not in role_codes:
        role_codes.append(admin_creation.role_code)
    for role_code in role_codes:
        if await cruds_admins.get_role_by_code(db=db, role_code=role_code) is None:
            raise HTTPException(status_code=404, detail=f"Role {role_code} not found")

    db_admin = models_admins.Admin(
        id=str(uuid.uuid4()),
        login=admin_creation.login,
        email=admin_creation.email,
        full_name=admin_creation.full_name,
        password_hash=get_password_hash(admin_creation.password),
        role_code=admin_creation.role_code,
        created_on=datetime.now(UTC),
    )
    await cruds_admins.create_admin(admin=db_admin, db=db)
    for role_code in role_codes:
        await cruds_admins.create_role_membership(
            membership=models_admins.AdminRoleMembership(
                admin_id=db_admin.id,
                role_code=role_code,
            ),
            db=db,
        )

    return db_admin


@router.get(
    "/admins/roles",
    response_model=list[schemas_admins.AdminRoleComplete],
    status_code=200,
)
async def get_roles(
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_admin),
):
    roles = await cruds_admins.get_roles(db=db)
    return [
        schemas_admins.AdminRoleComplete(
            code=role.code,
            name=role.name,
            active=role.active,
            permissions=role.permission_names,
        )
        for role in roles
    ]


@router.post(
    "/admins/roles",
    response_model=schemas_admins.AdminRoleComplete,
    status_code=201,
)
async def create_role(
    role_creation: schemas_admins.AdminRoleBase,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
):
    """
    **The admin must have a super admin role**
    """
    if await cruds_admins.get_role_by_code(db=db, role_code=role_creation.code):
        raise HTTPException(status_code=400, detail="Role already exists")

    await cruds_admins.create_role(
        role=models_admins.AdminRole(
            code=role_creation.code,
            name=role_creation.name,
        ),
        db=db,
    )
    return schemas_admins.AdminRoleComplete(
        code=role_creation.code,
        name=role_creation.name,
        active=True,
        permissions=[],
    )


@router.post(
    "/admins/roles/{role_code}/permissions",
    status_code=204,
)
async def add_role_permission(
    role_code: str,
    permission_creation: schemas_admins.RolePermissionCreation,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
    menu_cache: MenuCache = Depends(get_menu_cache),
    request_id: str = Depends(get_request_id),
):
    """
    Grant a permission to a role. Menus cached for the role are invalidated.

    **The admin must have a super admin role**
    """
    if await cruds_admins.get_role_by_code(db=db, role_code=role_code) is None:
        raise HTTPException(status_code=404, detail="Role not found")

    if (
        await cruds_admins.get_role_permission(
            db=db,
            role_code=role_code,
            permission=permission_creation.permission,
        )
        is None
    ):
        await cruds_admins.create_role_permission(
            role_permission=models_admins.AdminRolePermission(
                role_code=role_code,
                permission=permission_creation.permission,
            ),
            db=db,
        )
    await db.commit()
    menu_cache.invalidate_role(role_code)

    hemis_security_logger.info(
        f"Add_role_permission: Admin {admin.id} granted {permission_creation.permission} to role {role_code} ({request_id})",
    )


@router.delete(
    "/admins/roles/{role_code}/permissions/{permission:path}",
    status_code=204,
)
async def remove_role_permission(
    role_code: str,
    permission: str,
    db: AsyncSession = Depends(get_db),
    admin: models_admins.Admin = Depends(is_super_admin),
    menu_cache: MenuCache = Depends(get_menu_cache),
    request_id: str = Depends(get_request_id),
):
    """
    Remove a permission from a role. Menus cached for the role are invalidated.

    **The admin must have a super admin role**
    """
    if (
        await cruds_admins.get_role_permission(
            db=db,
            role_code=role_code,
            permission=permission,
        )
        is None
    ):
        raise HTTPException(status_code=404, detail="Permission not found")

    await cruds_admins.delete_role_permission(
        db=db,
        role_code=role_code,
        permission=permission,
    )
    await db.commit()
    menu_cache.invalidate_role(role_code)

    hemis_security_logger.info(
        f"Remove_role_permission: Admin {admin.id} removed {permission} from role {role_code} ({request_id})",
    )
