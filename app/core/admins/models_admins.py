from datetime import datetime

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.types.sqlalchemy import Base


class AdminRolePermission(Base):
    __tablename__ = "admin_role_permission"

    role_code: Mapped[str] = mapped_column(
        ForeignKey("admin_role.code"),
        primary_key=True,
        index=True,
    )
    # Either a dot-notation permission (`student.view`, `report.*`, `*`)
    # or a legacy path permission (`student/student`)
    permission: Mapped[str] = mapped_column(primary_key=True)


class AdminRole(Base):
    __tablename__ = "admin_role"

    code: Mapped[str] = mapped_column(primary_key=True, index=True)
    name: Mapped[str]
    active: Mapped[bool] = mapped_column(default=True)

    permissions: Mapped[list[AdminRolePermission]] = relationship(
        "AdminRolePermission",
        lazy="selectin",
        default_factory=list,
    )

    @property
    def permission_names(self) -> list[str]:
        return sorted(permission.permission for permission in self.permissions)


class AdminRoleMembership(Base):
    """Roles an admin is allowed to switch to"""

    __tablename__ = "admin_role_membership"

    admin_id: Mapped[str] = mapped_column(ForeignKey("admin.id"), primary_key=True)
    role_code: Mapped[str] = mapped_column(
        ForeignKey("admin_role.code"),
        primary_key=True,
    )


class Admin(Base):
    __tablename__ = "admin"

    id: Mapped[str] = mapped_column(primary_key=True, index=True)
    login: Mapped[str] = mapped_column(unique=True, index=True)
    email: Mapped[str | None]
    full_name: Mapped[str]
    password_hash: Mapped[str]
    # The active role, it decides which permissions the admin currently has
    role_code: Mapped[str | None] = mapped_column(ForeignKey("admin_role.code"))
    created_on: Mapped[datetime]
    active: Mapped[bool] = mapped_column(default=True)

    roles: Mapped[list[AdminRole]] = relationship(
        "AdminRole",
        secondary="admin_role_membership",
        lazy="selectin",
        default_factory=list,
    )
    role: Mapped[AdminRole | None] = relationship(
        "AdminRole",
        foreign_keys=[role_code],
        lazy="selectin",
        init=False,
    )

    @property
    def role_codes(self) -> list[str]:
        return [role.code for role in self.roles]
