"""Password hashing and JWT token helpers."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from threadpress.config import settings
from threadpress.exceptions import AuthError

PBKDF2_ITERATIONS = 260_000
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    """Hash a password as ``pbkdf2_sha256$iterations$salt$hash``."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash (constant time)."""
    try:
        algorithm, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations)
    )
    return secrets.compare_digest(digest.hex(), expected)


def _encode(payload: dict, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**payload, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int, email: str) -> str:
    return _encode(
        {"sub": str(user_id), "email": email, "type": ACCESS_TOKEN},
        timedelta(minutes=settings.JWT_ACCESS_EXPIRY_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(
        {"sub": str(user_id), "type": REFRESH_TOKEN},
        timedelta(days=settings.JWT_REFRESH_EXPIRY_DAYS),
    )


def decode_token(token: str, expected_type: str) -> dict:
    """
    Verify signature, expiry and token type.

    Raises:
        AuthError: token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid token") from e

    if payload.get("type") != expected_type:
        raise AuthError("Invalid token type")
    return payload
