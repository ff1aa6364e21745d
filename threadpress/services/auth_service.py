"""Account registration, login and token refresh."""

import logging

import validators
from sqlalchemy.ext.asyncio import AsyncSession

from threadpress.config import settings
from threadpress.db.models import User
from threadpress.db.repositories.users import UserRepository
from threadpress.exceptions import AuthError, ConflictError, ValidationError
from threadpress.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def _auth_response(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id, user.email),
        "refresh_token": create_refresh_token(user.id),
        "user": {"id": user.id, "email": user.email},
    }


class AuthService:
    """Auth operations bound to one database session."""

    def __init__(self, session: AsyncSession):
        self.users = UserRepository(session)

    async def register(self, email: str, password: str) -> dict:
        email = (email or "").strip().lower()
        if not email or not validators.email(email):
            raise ValidationError("Invalid email format")
        if not password or len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
            )
        if await self.users.get_by_email(email):
            raise ConflictError("Email already exists")

        user = await self.users.create(email=email, password_hash=hash_password(password))
        logger.info(f"Registered user {user.id}")
        return _auth_response(user)

    async def login(self, email: str, password: str) -> dict:
        user = await self.users.get_by_email(email or "")
        if user is None or not verify_password(password or "", user.password_hash):
            raise AuthError("Invalid credentials")
        return _auth_response(user)

    async def refresh(self, refresh_token: str) -> dict:
        payload = decode_token(refresh_token, REFRESH_TOKEN)
        user = await self.users.get_by_id(int(payload["sub"]))
        if user is None:
            raise AuthError("User not found")
        return {"access_token": create_access_token(user.id, user.email)}
