from app.core.admins import models_admins
from app.core.utils.config import Settings


def is_super_admin_role(role_code: str | None, settings: Settings) -> bool:
    return role_code is not None and role_code in settings.SUPER_ADMIN_ROLES


def get_role_permissions(
    role: models_admins.AdminRole | None,
    settings: Settings,
) -> list[str]:
    """
    Return the permissions granted by a role.

    Super admin roles are granted the universal `*` permission. Disabled roles grant nothing.
    """
    if role is None or not role.active:
        return []
    if is_super_admin_role(role.code, settings):
        return ["*"]
    return role.permission_names


def get_admin_permissions(
    admin: models_admins.Admin,
    settings: Settings,
) -> list[str]:
    """
    Return the permissions of the admin active role
    """
    return get_role_permissions(admin.role, settings)
