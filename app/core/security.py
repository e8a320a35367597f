from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.errors import AuthenticationError
from app.models.user import User

# HTTP Bearer scheme for FastAPI dependencies
bearer_scheme = HTTPBearer(auto_error=False)

PASSWORD_HASH_SCHEME = "pbkdf2_sha256"


def _get_jwt_secret() -> str:
    """Get the JWT secret, generating an ephemeral one if not set.

    WARNING: If not set, an ephemeral secret is generated per-process, which will
    invalidate tokens on restart. Configure settings.jwt_secret in production.
    """
    if settings.jwt_secret:
        return settings.jwt_secret
    secret = secrets.token_urlsafe(32)
    logger.warning(
        "JWT secret not configured. Using ephemeral secret for this process; tokens will invalidate on restart."
    )
    # Cache on settings to keep it stable during process lifetime
    settings.jwt_secret = secret
    return secret


def create_access_token(*, user_id: int, username: str) -> str:
    """Create an access JWT.

    Claims:
      - sub: user id as string
      - username
      - exp: expiry
      - iat: issued at
    """
    now = datetime.now(UTC)
    exp = now + timedelta(seconds=settings.access_token_ttl_seconds)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token, returning claims or raising.

    Raises jwt.InvalidTokenError (caught by caller) on invalid token.
    """
    return jwt.decode(token, _get_jwt_secret(), algorithms=[settings.jwt_algorithm])


def hash_password(password: str, *, iterations: int | None = None) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    iterations = iterations or settings.password_hash_iterations
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode(), iterations)
    return f"{PASSWORD_HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    if scheme != PASSWORD_HASH_SCHEME:
        return False

    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode(), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Resolve the current User from Authorization: Bearer <jwt>."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")
    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token") from None

    try:
        user_id = int(claims.get("sub", ""))
    except ValueError:
        raise AuthenticationError("Invalid token subject") from None

    result = await db.exec(select(User).where(User.id == user_id))
    user = result.first()
    if not user:
        raise AuthenticationError("Authentication required")
    return user


def get_client_ip(request: Request) -> str | None:
    # Best-effort, depends on deployment proxy
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
