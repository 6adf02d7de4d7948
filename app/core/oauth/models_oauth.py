from datetime import datetime

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.types.sqlalchemy import Base


class OAuthClient(Base):
    __tablename__ = "oauth_client"

    id: Mapped[str] = mapped_column(primary_key=True, index=True)
    name: Mapped[str]
    redirect_uri: Mapped[str]
    # SHA-256 hash of the secret. Public clients have no secret
    secret_hash: Mapped[str | None]
    # Admin owning the client
    user_id: Mapped[str | None]
    created_at: Mapped[datetime]
    revoked: Mapped[bool] = mapped_column(default=False)


class AuthorizationCode(Base):
    __tablename__ = "oauth_authorization_code"

    id: Mapped[str] = mapped_column(primary_key=True, index=True)
    client_id: Mapped[str] = mapped_column(ForeignKey("oauth_client.id"), index=True)
    user_id: Mapped[str]
    # Space separated scopes
    scope: Mapped[str | None]
    expires_at: Mapped[datetime] = mapped_column(index=True)
    revoked: Mapped[bool] = mapped_column(default=False)


class AccessToken(Base):
    __tablename__ = "oauth_access_token"

    id: Mapped[str] = mapped_column(primary_key=True, index=True)
    client_id: Mapped[str] = mapped_column(ForeignKey("oauth_client.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(index=True)
    scope: Mapped[str | None]
    created_at: Mapped[datetime]
    expires_at: Mapped[datetime] = mapped_column(index=True)
    revoked: Mapped[bool] = mapped_column(default=False)


class RefreshToken(Base):
    __tablename__ = "oauth_refresh_token"

    id: Mapped[str] = mapped_column(primary_key=True, index=True)
    # Access token issued alongside the refresh token
    access_token_id: Mapped[str] = mapped_column(
        ForeignKey("oauth_access_token.id"),
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(index=True)
    revoked: Mapped[bool] = mapped_column(default=False)
