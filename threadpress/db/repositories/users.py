"""Repository for user accounts."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from threadpress.db.models import User
from threadpress.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user lookups by e-mail."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by e-mail (case-insensitive)."""
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
