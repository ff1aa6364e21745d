"""Shared fixtures: in-memory SQLite database and message helpers."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from threadpress.db.models import Base, Message

T0 = datetime(2025, 11, 8, 9, 0, 0)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def session_factory(sessionmaker):
    """Same commit/rollback contract as db.connection.get_session_context."""

    @asynccontextmanager
    async def factory():
        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


def incoming(external_id, sent_at, chat_id="chat-a", sender_id="+15550001", text="hi"):
    """Record shaped like a message source result."""
    return SimpleNamespace(
        external_id=external_id,
        chat_id=chat_id,
        sender_id=sender_id,
        sender_name=None,
        is_from_me=False,
        text=text,
        sent_at=sent_at,
    )


@pytest.fixture
def add_messages(session_factory):
    """Insert messages given as (chat_id, offset_minutes, text) tuples; returns ids."""

    async def add(*specs, sender_id="+15550001"):
        async with session_factory() as session:
            messages = [
                Message(
                    external_id=f"guid-{chat_id}-{offset}-{i}",
                    chat_id=chat_id,
                    sender_id=sender_id,
                    text=text,
                    sent_at=T0 + timedelta(minutes=offset),
                )
                for i, (chat_id, offset, text) in enumerate(specs)
            ]
            session.add_all(messages)
            await session.flush()
            return [m.id for m in messages]

    return add
