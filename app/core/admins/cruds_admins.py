"""File defining the functions called by the endpoints, making queries to the table using the models"""

from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admins import models_admins


async def get_admin_by_id(
    db: AsyncSession,
    admin_id: str,
) -> models_admins.Admin | None:
    result = await db.execute(
        select(models_admins.Admin).where(models_admins.Admin.id == admin_id),
    )
    return result.scalars().first()


async def get_admin_by_login(
    db: AsyncSession,
    login: str,
) -> models_admins.Admin | None:
    result = await db.execute(
        select(models_admins.Admin).where(models_admins.Admin.login == login),
    )
    return result.scalars().first()


async def create_admin(
    admin: models_admins.Admin,
    db: AsyncSession,
) -> None:
    db.add(admin)
    await db.flush()


async def update_admin_role(
    db: AsyncSession,
    admin_id: str,
    role_code: str,
) -> None:
    await db.execute(
        update(models_admins.Admin)
        .where(models_admins.Admin.id == admin_id)
        .values(role_code=role_code),
    )
    await db.flush()


async def get_roles(db: AsyncSession) -> Sequence[models_admins.AdminRole]:
    result = await db.execute(
        select(models_admins.AdminRole).order_by(models_admins.AdminRole.code),
    )
    return result.scalars().all()


async def get_role_by_code(
    db: AsyncSession,
    role_code: str,
) -> models_admins.AdminRole | None:
    result = await db.execute(
        select(models_admins.AdminRole).where(
            models_admins.AdminRole.code == role_code,
        ),
    )
    return result.scalars().first()


async def create_role(
    role: models_admins.AdminRole,
    db: AsyncSession,
) -> None:
    db.add(role)
    await db.flush()


async def create_role_membership(
    membership: models_admins.AdminRoleMembership,
    db: AsyncSession,
) -> None:
    db.add(membership)
    await db.flush()


async def get_role_permission(
    db: AsyncSession,
    role_code: str,
    permission: str,
) -> models_admins.AdminRolePermission | None:
    result = await db.execute(
        select(models_admins.AdminRolePermission).where(
            models_admins.AdminRolePermission.role_code == role_code,
            models_admins.AdminRolePermission.permission == permission,
        ),
    )
    return result.scalars().first()


async def get_role_permissions(
    db: AsyncSession,
    role_code: str,
) -> Sequence[str]:
    result = await db.execute(
        select(models_admins.AdminRolePermission.permission)
        .where(models_admins.AdminRolePermission.role_code == role_code)
        .order_by(models_admins.AdminRolePermission.permission),
    )
    return result.scalars().all()


async def create_role_permission(
    role_permission: models_admins.AdminRolePermission,
    db: AsyncSession,
) -> None:
    db.add(role_permission)
    await db.flush()


async def delete_role_permission(
    db: AsyncSession,
    role_code: str,
    permission: str,
) -> None:
    await db.execute(
        delete(models_admins.AdminRolePermission).where(
            models_admins.AdminRolePermission.role_code == role_code,
            models_admins.AdminRolePermission.permission == permission,
        ),
    )
    await db.flush()
