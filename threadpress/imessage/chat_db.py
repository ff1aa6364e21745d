"""Read-only access to a local iMessage archive (chat.db)."""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from threadpress.exceptions import SourceUnavailableError
from threadpress.imessage.attributed_body import extract_text_from_attributed_body

logger = logging.getLogger(__name__)

APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
# Dates above this are nanoseconds (macOS 10.13+), below are seconds
NANOSECOND_THRESHOLD = 10**11

MESSAGES_QUERY = """
    SELECT
        m.guid,
        m.text,
        m.attributedBody,
        m.date,
        m.is_from_me,
        h.id AS handle,
        c.chat_identifier
    FROM message m
    JOIN chat_message_join cmj ON cmj.message_id = m.ROWID
    JOIN chat c ON c.ROWID = cmj.chat_id
    LEFT JOIN handle h ON h.ROWID = m.handle_id
    WHERE m.date > ?
      AND COALESCE(m.associated_message_type, 0) = 0
    ORDER BY m.date ASC, m.ROWID ASC
"""


@dataclass
class IncomingMessage:
    """Message as read from the archive, before it is stored."""

    external_id: str
    chat_id: str
    sender_id: str
    sender_name: Optional[str]
    is_from_me: bool
    text: Optional[str]
    sent_at: datetime


def apple_time_to_datetime(value: Optional[int]) -> Optional[datetime]:
    """Convert an Apple epoch timestamp to a local naive datetime."""
    if value is None:
        return None
    seconds = value / 1e9 if abs(value) > NANOSECOND_THRESHOLD else float(value)
    return (APPLE_EPOCH + timedelta(seconds=seconds)).astimezone().replace(tzinfo=None)


def datetime_to_apple_time(value: datetime, nanoseconds: bool = True) -> int:
    """Convert a local naive datetime to Apple epoch nanoseconds (or seconds)."""
    aware = value.astimezone(timezone.utc) if value.tzinfo is None else value
    seconds = (aware - APPLE_EPOCH).total_seconds()
    return int(seconds * 1e9) if nanoseconds else round(seconds)


def message_text(text: Optional[str], attributed_body: Optional[bytes]) -> Optional[str]:
    """Plain text column first, attributedBody as fallback."""
    if text and text.strip():
        return text.strip()
    if attributed_body:
        try:
            return extract_text_from_attributed_body(bytes(attributed_body))
        except Exception as e:
            logger.warning(f"Failed to decode attributedBody: {e}")
    return None


class ChatDbSource:
    """Message source backed by the iMessage SQLite archive."""

    def __init__(self, db_path: Path, owner_id: str = "me", owner_name: str = "Me"):
        self.db_path = Path(db_path)
        self.owner_id = owner_id
        self.owner_name = owner_name

    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.exists():
            raise SourceUnavailableError(f"iMessage database not found: {self.db_path}")
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True, timeout=5.0)
        except sqlite3.Error as e:
            raise SourceUnavailableError(f"Cannot open iMessage database: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _row_to_message(self, row: sqlite3.Row) -> IncomingMessage:
        is_from_me = bool(row["is_from_me"])
        sender_id = self.owner_id if is_from_me else (row["handle"] or "unknown")
        return IncomingMessage(
            external_id=row["guid"],
            chat_id=row["chat_identifier"],
            sender_id=sender_id,
            sender_name=self.owner_name if is_from_me else None,
            is_from_me=is_from_me,
            text=message_text(row["text"], row["attributedBody"]),
            sent_at=apple_time_to_datetime(row["date"]),
        )

    def _threshold(self, conn: sqlite3.Connection, since: Optional[datetime]) -> int:
        """Watermark in the unit the archive stores dates in."""
        if since is None:
            return 0
        newest = conn.execute("SELECT MAX(date) FROM message").fetchone()[0]
        nanoseconds = newest is None or abs(newest) > NANOSECOND_THRESHOLD
        return datetime_to_apple_time(since, nanoseconds=nanoseconds)

    def _read_since(self, since: Optional[datetime]) -> List[IncomingMessage]:
        conn = self._connect()
        try:
            threshold = self._threshold(conn, since)
            rows = conn.execute(MESSAGES_QUERY, (threshold,)).fetchall()
        except sqlite3.Error as e:
            raise SourceUnavailableError(f"Cannot read iMessage database: {e}") from e
        finally:
            conn.close()

        # A message in several chats joins once per chat; keep the first
        seen = set()
        messages = []
        for row in rows:
            if row["guid"] in seen:
                continue
            seen.add(row["guid"])
            messages.append(self._row_to_message(row))
        return messages

    async def fetch_since(self, since: Optional[datetime] = None) -> List[IncomingMessage]:
        """
        Messages newer than ``since`` (all when None), oldest first.

        Tapback reactions are skipped. Raises SourceUnavailableError when the
        archive is missing, locked or unreadable.
        """
        messages = await asyncio.to_thread(self._read_since, since)
        logger.info(f"Read {len(messages)} messages from {self.db_path}")
        return messages

    def _read_texts(self, external_ids: List[str]) -> Dict[str, Tuple[Optional[str], Optional[bytes]]]:
        conn = self._connect()
        try:
            found = {}
            for external_id in external_ids:
                row = conn.execute(
                    "SELECT text, attributedBody FROM message WHERE guid = ?",
                    (external_id,),
                ).fetchone()
                if row is not None:
                    found[external_id] = (row["text"], row["attributedBody"])
            return found
        except sqlite3.Error as e:
            raise SourceUnavailableError(f"Cannot read iMessage database: {e}") from e
        finally:
            conn.close()

    async def fetch_texts(self, external_ids: Iterable[str]) -> Dict[str, Optional[str]]:
        """Re-read message text for the given GUIDs (used by the backfill script)."""
        raw = await asyncio.to_thread(self._read_texts, list(external_ids))
        return {guid: message_text(text, body) for guid, (text, body) in raw.items()}
