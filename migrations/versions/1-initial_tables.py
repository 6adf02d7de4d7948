"""initial tables: admins, roles and OAuth tokens

Create Date: 2026-09-28 10:12:41.508213
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from app.types.sqlalchemy import TZDateTime

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d8e47"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "admin_role",
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("code"),
    )
    op.create_index(op.f("ix_admin_role_code"), "admin_role", ["code"], unique=False)
    op.create_table(
        "admin_role_permission",
        sa.Column("role_code", sa.String(), nullable=False),
        sa.Column("permission", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["role_code"], ["admin_role.code"]),
        sa.PrimaryKeyConstraint("role_code", "permission"),
    )
    op.create_index(
        op.f("ix_admin_role_permission_role_code"),
        "admin_role_permission",
        ["role_code"],
        unique=False,
    )
    op.create_table(
        "admin",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("login", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role_code", sa.String(), nullable=True),
        sa.Column("created_on", TZDateTime(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["role_code"], ["admin_role.code"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admin_id"), "admin", ["id"], unique=False)
    op.create_index(op.f("ix_admin_login"), "admin", ["login"], unique=True)
    op.create_table(
        "admin_role_membership",
        sa.Column("admin_id", sa.String(), nullable=False),
        sa.Column("role_code", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["admin_id"], ["admin.id"]),
        sa.ForeignKeyConstraint(["role_code"], ["admin_role.code"]),
        sa.PrimaryKeyConstraint("admin_id", "role_code"),
    )
    op.create_table(
        "oauth_client",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("redirect_uri", sa.String(), nullable=False),
        sa.Column("secret_hash", sa.String(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("created_at", TZDateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_oauth_client_id"), "oauth_client", ["id"], unique=False)
    op.create_table(
        "oauth_authorization_code",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("client_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("scope", sa.String(), nullable=True),
        sa.Column("expires_at", TZDateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["oauth_client.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_oauth_authorization_code_id"),
        "oauth_authorization_code",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_authorization_code_client_id"),
        "oauth_authorization_code",
        ["client_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_authorization_code_expires_at"),
        "oauth_authorization_code",
        ["expires_at"],
        unique=False,
    )
    op.create_table(
        "oauth_access_token",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("client_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("scope", sa.String(), nullable=True),
        sa.Column("created_at", TZDateTime(), nullable=False),
        sa.Column("expires_at", TZDateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["oauth_client.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_oauth_access_token_id"),
        "oauth_access_token",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_access_token_client_id"),
        "oauth_access_token",
        ["client_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_access_token_user_id"),
        "oauth_access_token",
        ["user_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_access_token_expires_at"),
        "oauth_access_token",
        ["expires_at"],
        unique=False,
    )
    op.create_table(
        "oauth_refresh_token",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("access_token_id", sa.String(), nullable=False),
        sa.Column("expires_at", TZDateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["access_token_id"], ["oauth_access_token.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_oauth_refresh_token_id"),
        "oauth_refresh_token",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_refresh_token_access_token_id"),
        "oauth_refresh_token",
        ["access_token_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_oauth_refresh_token_expires_at"),
        "oauth_refresh_token",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("oauth_refresh_token")
    op.drop_table("oauth_access_token")
    op.drop_table("oauth_authorization_code")
    op.drop_table("oauth_client")
    op.drop_table("admin_role_membership")
    op.drop_table("admin")
    op.drop_table("admin_role_permission")
    op.drop_table("admin_role")
