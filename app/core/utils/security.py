import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import bcrypt
import jwt
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admins import cruds_admins, models_admins, schemas_admins

if TYPE_CHECKING:
    from app.core.utils.config import Settings


"""
Passwords are salted and hashed with bcrypt (see https://en.wikipedia.org/wiki/Bcrypt).

A different salt is added automatically for each password. Default number of rounds is 12, 13 allows for a 0.5 seconds computing delay.
"""

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/admins/token",
    scheme_name="AdminPasswordAuthentication",
    scopes={"API": "Access the panel endpoints"},
)
"""
Admin sessions use JWT bearer tokens obtained with the OAuth2 password flow.
See [FastAPI documentation](https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/) about JWT.
"""

jwt_algorithm = "HS256"
"""
The algorithm used to sign admin session JWTs
"""


def generate_token(nbytes=32) -> str:
    """
    Generate a `nbytes` bytes cryptographically strong random urlsafe token using the *secrets* library.

    By default, a 32 bytes token is generated, which is encoded as a 43 characters string.
    """
    return secrets.token_urlsafe(nbytes)


def get_password_hash(password: str) -> str:
    """
    Return a salted hash computed from password.
    Both the salt and the algorithm identifier are included in the hash.
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=13))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Compare `plain_password` against its salted hash representation `hashed_password`.

    When `hashed_password` is None (unknown login), a fake hash is checked to take the same time as a real verification.
    This limits timing attacks that could be used to guess valid logins.
    """
    fake_hash = bcrypt.hashpw(generate_token(12).encode("utf-8"), bcrypt.gensalt(13))
    if hashed_password is None:
        return bcrypt.checkpw(plain_password.encode("utf-8"), fake_hash)
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def hash_client_secret(secret: str) -> str:
    """
    Return the SHA-256 hex digest of an OAuth client secret.

    Client secrets are random tokens generated by `generate_token`, a fast hash is enough to avoid storing them in clear.
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def verify_client_secret(plain_secret: str | None, hashed_secret: str) -> bool:
    """
    Compare a client secret with its stored hash in constant time.
    """
    if plain_secret is None:
        return False
    return secrets.compare_digest(
        hash_client_secret(plain_secret),
        hashed_secret,
    )


async def authenticate_admin(
    db: AsyncSession,
    login: str,
    password: str,
) -> models_admins.Admin | None:
    """
    Try to authenticate the admin.
    If the login is unknown, the account disabled or the password invalid return `None`. Else return the *Admin*.
    """
    admin = await cruds_admins.get_admin_by_login(db=db, login=login)
    if not admin:
        # Simulate the delay the password validation would have taken if the account existed
        verify_password("", None)

        return None
    if not verify_password(password, admin.password_hash):
        return None
    if not admin.active:
        return None
    return admin


def create_access_token(
    settings: "Settings",
    data: schemas_admins.TokenData,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT. The token is signed using ACCESS_TOKEN_SECRET_KEY secret.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.model_dump(exclude_none=True)
    iat = datetime.now(UTC)
    expire_on = datetime.now(UTC) + expires_delta
    to_encode.update({"exp": expire_on, "iat": iat})
    return jwt.encode(
        to_encode,
        settings.ACCESS_TOKEN_SECRET_KEY,
        algorithm=jwt_algorithm,
    )
