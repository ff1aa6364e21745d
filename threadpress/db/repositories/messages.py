"""Repository for imported chat messages."""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from threadpress.db.models import Message
from threadpress.db.repositories.base import BaseRepository
from threadpress.exceptions import ConflictError


class MessageRepository(BaseRepository[Message]):
    """Append-only message store keyed by the archive's external id."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Message)

    async def get_by_external_id(self, external_id: str) -> Optional[Message]:
        """Get message by archive GUID."""
        stmt = select(Message).where(Message.external_id == external_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_existing_external_ids(self, external_ids: Iterable[str]) -> set[str]:
        """Return which of the given external ids are already stored."""
        ids = list(external_ids)
        if not ids:
            return set()
        stmt = select(Message.external_id).where(Message.external_id.in_(ids))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def insert_new(self, records: Sequence) -> int:
        """
        Insert messages that are not stored yet.

        Re-delivered records (same external id, in the store or earlier in
        the batch) are skipped, so calling this twice with the same input
        adds nothing the second time.

        Args:
            records: objects with external_id, chat_id, sender_id,
                sender_name, is_from_me, text and sent_at attributes

        Returns:
            Number of rows inserted
        """
        existing = await self.get_existing_external_ids(r.external_id for r in records)
        added = 0
        for record in records:
            if record.external_id in existing:
                continue
            existing.add(record.external_id)
            self.session.add(
                Message(
                    external_id=record.external_id,
                    chat_id=record.chat_id,
                    sender_id=record.sender_id,
                    sender_name=record.sender_name,
                    is_from_me=record.is_from_me,
                    text=record.text,
                    sent_at=record.sent_at,
                )
            )
            added += 1
        await self.session.flush()
        return added

    async def find_unclaimed(self) -> List[Message]:
        """Messages not yet linked to a post, oldest first."""
        stmt = (
            select(Message)
            .where(Message.processed_for_post == False)  # noqa: E712
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_many(self, ids: Sequence[int]) -> List[Message]:
        """Load messages by id, oldest first."""
        if not ids:
            return []
        stmt = (
            select(Message)
            .where(Message.id.in_(list(ids)))
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_claimed(self, ids: Sequence[int]) -> int:
        """
        Flag messages as used by a post.

        Rows are locked for the rest of the transaction where the database
        supports it. Raises ConflictError if any id is unknown or already
        claimed, which leaves the caller's transaction to be rolled back.
        """
        unique_ids = set(ids)
        if not unique_ids:
            return 0
        stmt = (
            select(Message)
            .where(Message.id.in_(unique_ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        messages = list(result.scalars().all())

        missing = unique_ids - {m.id for m in messages}
        if missing:
            raise ConflictError(f"Messages not found: {sorted(missing)}")
        already = sorted(m.id for m in messages if m.processed_for_post)
        if already:
            raise ConflictError(f"Messages already linked to a post: {already}")

        for message in messages:
            message.processed_for_post = True
        await self.session.flush()
        return len(messages)

    async def get_last_sync_time(self) -> Optional[datetime]:
        """When the most recent message was imported."""
        result = await self.session.execute(select(func.max(Message.synced_at)))
        return result.scalar()

    async def get_latest_sent_at(self) -> Optional[datetime]:
        """Timestamp of the newest stored message (sync watermark)."""
        result = await self.session.execute(select(func.max(Message.sent_at)))
        return result.scalar()

    async def get_missing_text(self, limit: int = 1000) -> List[Message]:
        """Messages stored without text (candidates for backfill)."""
        stmt = (
            select(Message)
            .where(or_(Message.text.is_(None), Message.text == ""))
            .order_by(Message.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_text(self, message_id: int, text: str) -> Optional[Message]:
        """Replace a message's text."""
        return await self.update(message_id, text=text)
