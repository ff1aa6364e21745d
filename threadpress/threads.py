"""Conversation thread detection.

A thread is a maximal run of messages from the same chat in which no two
consecutive messages are separated by ``gap`` or more. Threads are not
stored; they are recomputed from unclaimed messages on every generation run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional


@dataclass
class Thread:
    """Contiguous run of messages from one chat."""

    chat_id: str
    start_time: datetime
    end_time: datetime
    message_ids: List[int] = field(default_factory=list)
    participants: List[str] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.message_ids)

    @classmethod
    def seeded_with(cls, message) -> "Thread":
        """Open a thread containing a single message."""
        return cls(
            chat_id=message.chat_id,
            start_time=message.sent_at,
            end_time=message.sent_at,
            message_ids=[message.id],
            participants=[message.sender_id],
        )

    def accepts(self, message, gap: timedelta) -> bool:
        """Same chat and strictly less than ``gap`` since the thread's last message."""
        return (
            message.chat_id == self.chat_id
            and message.sent_at - self.end_time < gap
        )

    def extend(self, message) -> None:
        self.message_ids.append(message.id)
        self.end_time = message.sent_at
        if message.sender_id not in self.participants:
            self.participants.append(message.sender_id)

    def to_dict(self) -> dict:
        return {
            "chat_id": self.chat_id,
            "message_ids": list(self.message_ids),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "message_count": self.message_count,
            "participants": list(self.participants),
        }


def detect_threads(
    messages: Iterable,
    gap: timedelta,
    newest_first: bool = False,
) -> List[Thread]:
    """
    Partition time-ordered messages into threads.

    The scan is a single pass over all chats at once, in the order given,
    with one open thread at a time. A message joins the open thread only if
    it belongs to the same chat and arrived less than ``gap`` after the
    thread's last message; anything else closes the open thread and starts
    a new one. A gap exactly equal to ``gap`` therefore splits, and so does
    a chat change even with no time between messages.

    Args:
        messages: objects with id, chat_id, sender_id and sent_at, sorted by
            sent_at ascending
        gap: silence that ends a thread
        newest_first: reverse the finished list (presentation only)

    Returns:
        Threads whose message_ids together cover every input message once
    """
    threads: List[Thread] = []
    current: Optional[Thread] = None

    for message in messages:
        if current is None:
            current = Thread.seeded_with(message)
        elif current.accepts(message, gap):
            current.extend(message)
        else:
            threads.append(current)
            current = Thread.seeded_with(message)

    if current is not None:
        threads.append(current)

    if newest_first:
        threads.reverse()
    return threads
