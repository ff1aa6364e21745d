"""Message sync: import new messages from the archive into the database."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from threadpress.db.connection import get_session_context
from threadpress.db.repositories.messages import MessageRepository
from threadpress.threads import Thread, detect_threads

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync pass."""

    messages_added: int = 0
    errors: List[str] = field(default_factory=list)
    last_sync_time: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "messages_added": self.messages_added,
            "errors": list(self.errors),
            "last_sync_time": self.last_sync_time.isoformat(),
        }


class MessageSyncService:
    """Imports messages from a source and exposes thread detection over them."""

    def __init__(self, source=None, session_factory=get_session_context):
        """
        Args:
            source: object with ``async fetch_since(since)``; None disables import
            session_factory: returns an async context manager yielding a session
        """
        self.source = source
        self.session_factory = session_factory

    async def sync_new_messages(self) -> SyncResult:
        """
        Import messages newer than the newest stored one.

        Never raises: an unavailable source or a storage failure is reported
        in ``errors`` with nothing added.
        """
        result = SyncResult()
        if self.source is None:
            logger.info("No message source configured, skipping sync")
            return result

        try:
            async with self.session_factory() as session:
                repo = MessageRepository(session)
                since = await repo.get_latest_sent_at()
                incoming = await self.source.fetch_since(since)
                result.messages_added = await repo.insert_new(incoming)
        except Exception as e:
            logger.warning(f"Message sync failed: {e}")
            result.messages_added = 0
            result.errors.append(f"Sync failed: {e}")
        else:
            logger.info(f"Synced {result.messages_added} new messages")

        result.last_sync_time = datetime.now()
        return result

    async def detect_thread_boundaries(
        self, gap_hours: float = 2, newest_first: bool = False
    ) -> List[Thread]:
        """Group all unclaimed messages into threads."""
        async with self.session_factory() as session:
            messages = await MessageRepository(session).find_unclaimed()
        return detect_threads(messages, timedelta(hours=gap_hours), newest_first=newest_first)

    async def get_last_sync_time(self) -> Optional[datetime]:
        async with self.session_factory() as session:
            return await MessageRepository(session).get_last_sync_time()
