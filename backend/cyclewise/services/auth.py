"""
Authentication - password hashing and bearer token issue/verification.

`local` mode verifies tokens this service issued at signup/login.
`supabase` mode verifies identity-provider tokens (audience "authenticated")
with the provider's JWT secret.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from cyclewise.config import Settings
from cyclewise.utils.datetime_helper import utcnow

logger = logging.getLogger(__name__)

SUPABASE_AUDIENCE = "authenticated"
BCRYPT_MAX_BYTES = 72


class InvalidToken(Exception):
    """Bearer token is missing claims, expired, or has a bad signature."""


@dataclass
class Principal:
    """The authenticated caller."""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    access_token: Optional[str] = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))


def create_access_token(settings: Settings, user_id: str, email: Optional[str] = None) -> str:
    """Issue a signed bearer token for a local account."""
    expire = utcnow() + timedelta(minutes=settings.jwt_expire_minutes)
    claims = {"sub": user_id, "exp": expire}
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Principal:
    """
    Verify a bearer token according to the configured auth provider.

    Raises:
        InvalidToken: signature, expiry or subject check failed
    """
    try:
        if settings.auth_provider == "supabase":
            settings.require("supabase_jwt_secret")
            payload = jwt.decode(
                token,
                settings.supabase_jwt_secret,
                algorithms=[settings.jwt_algorithm],
                audience=SUPABASE_AUDIENCE,
            )
        else:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False},
            )
    except JWTError as e:
        logger.debug("Bearer token rejected: %s", e)
        raise InvalidToken("Invalid or expired token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidToken("Token has no subject")

    metadata = payload.get("user_metadata") or {}
    return Principal(
        user_id=str(user_id),
        email=payload.get("email"),
        name=metadata.get("name") if isinstance(metadata, dict) else None,
        access_token=token,
    )
