#!/usr/bin/env python3
"""
Backfill script: re-read message text from the iMessage archive.

Usage:
    python scripts/backfill_message_text.py [--db-path chat.db] [--dry-run]

Messages imported with empty text (text stored only in the attributedBody
blob) are looked up by GUID in the archive and updated when text can be
extracted.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from threadpress.config import settings
from threadpress.db.connection import close_db, get_session_context, init_db
from threadpress.db.repositories.messages import MessageRepository
from threadpress.imessage.chat_db import ChatDbSource


async def backfill_message_text(
    db_path: Path, dry_run: bool = False, session_factory=get_session_context
) -> tuple[int, int]:
    """
    Fill in missing message text.

    Returns:
        Tuple of (updated count, skipped count)
    """
    source = ChatDbSource(db_path)
    updated = 0
    skipped = 0

    async with session_factory() as session:
        repo = MessageRepository(session)
        empty = await repo.get_missing_text(limit=100_000)
        print(f"[backfill] Found {len(empty)} messages with empty text")

        texts = await source.fetch_texts(m.external_id for m in empty)

        for message in empty:
            new_text = texts.get(message.external_id)
            if message.external_id not in texts:
                print(f"[backfill] Message {message.external_id} not found in archive")
                skipped += 1
                continue
            if not new_text:
                skipped += 1
                continue

            if not dry_run:
                await repo.update_text(message.id, new_text)
            updated += 1
            print(f"[backfill] Updated message {message.id}: {new_text[:50]!r}")

        if dry_run:
            await session.rollback()

    return updated, skipped


async def run(db_path: Path, dry_run: bool) -> None:
    await init_db()
    try:
        updated, skipped = await backfill_message_text(db_path, dry_run=dry_run)
        print(f"[backfill] Completed: {updated} updated, {skipped} skipped")
    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Backfill empty message text from chat.db")
    parser.add_argument(
        "--db-path",
        type=Path,
        default=settings.IMESSAGE_DB_PATH,
        help=f"Path to the iMessage archive (default: {settings.IMESSAGE_DB_PATH})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    args = parser.parse_args()
    asyncio.run(run(args.db_path, args.dry_run))


if __name__ == "__main__":
    main()
