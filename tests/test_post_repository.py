"""Tests for threadpress/db/repositories/posts.py."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from threadpress.db.models import PostMessage, PostStatus
from threadpress.db.repositories.messages import MessageRepository
from threadpress.db.repositories.posts import PostRepository
from threadpress.exceptions import ConflictError, NotFoundError, ValidationError
from threadpress.summarizer import BlogPostContent
from threadpress.threads import detect_threads

GAP = timedelta(hours=2)
CONTENT = BlogPostContent(title="Weekend plans", content="We planned the weekend.")


async def make_thread(session_factory, add_messages):
    await add_messages(("chat-a", 0, "one"), ("chat-a", 10, "two"), ("chat-a", 20, "three"))
    async with session_factory() as session:
        messages = await MessageRepository(session).find_unclaimed()
    return detect_threads(messages, GAP)[0]


async def make_post(session_factory, add_messages, status=PostStatus.DRAFT):
    thread = await make_thread(session_factory, add_messages)
    async with session_factory() as session:
        post = await PostRepository(session).create_draft_post(thread, CONTENT)
        post.status = status
    return post.id


async def link_count(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(PostMessage))
        return result.scalar()


#============================================
async def test_create_draft_post_claims_and_links(session_factory, add_messages):
    thread = await make_thread(session_factory, add_messages)

    async with session_factory() as session:
        post = await PostRepository(session).create_draft_post(thread, CONTENT)

    async with session_factory() as session:
        repo = PostRepository(session)
        stored = await repo.get_with_messages(post.id)
        assert stored.status == PostStatus.DRAFT
        assert stored.message_count == 3
        assert stored.published_at is None
        assert stored.thread_start_time == thread.start_time
        assert stored.thread_end_time == thread.end_time
        assert sorted(link.message_id for link in stored.message_links) == sorted(thread.message_ids)
        assert all(link.message.processed_for_post for link in stored.message_links)
        assert await MessageRepository(session).find_unclaimed() == []


#============================================
async def test_create_draft_post_records_fallback_flag(session_factory, add_messages):
    thread = await make_thread(session_factory, add_messages)
    fallback = BlogPostContent(title="Conversation from 2025-11-08", content="...", fallback=True)

    async with session_factory() as session:
        post = await PostRepository(session).create_draft_post(thread, fallback)
    assert post.is_fallback is True


#============================================
async def test_failed_insert_leaves_no_message_claimed(session_factory, add_messages, monkeypatch):
    """Failure after claiming but before the post insert rolls the claim back."""
    thread = await make_thread(session_factory, add_messages)

    async def broken_insert(self, thread, content):
        raise RuntimeError("disk full")

    monkeypatch.setattr(PostRepository, "_insert_post", broken_insert)

    with pytest.raises(RuntimeError):
        async with session_factory() as session:
            await PostRepository(session).create_draft_post(thread, CONTENT)

    async with session_factory() as session:
        unclaimed = await MessageRepository(session).find_unclaimed()
        assert [m.id for m in unclaimed] == thread.message_ids
        assert await PostRepository(session).count() == 0
    assert await link_count(session_factory) == 0


#============================================
async def test_message_cannot_be_claimed_by_two_posts(session_factory, add_messages):
    thread = await make_thread(session_factory, add_messages)
    async with session_factory() as session:
        await PostRepository(session).create_draft_post(thread, CONTENT)

    with pytest.raises(ConflictError):
        async with session_factory() as session:
            await PostRepository(session).create_draft_post(thread, CONTENT)

    async with session_factory() as session:
        assert await PostRepository(session).count() == 1


#============================================
async def test_update_post_only_for_drafts(session_factory, add_messages):
    post_id = await make_post(session_factory, add_messages)

    async with session_factory() as session:
        post = await PostRepository(session).update_post(post_id, title="New title")
        assert post.title == "New title"
        assert post.content == CONTENT.content

    async with session_factory() as session:
        await PostRepository(session).publish_post(post_id)

    with pytest.raises(ValidationError):
        async with session_factory() as session:
            await PostRepository(session).update_post(post_id, content="late edit")


#============================================
async def test_update_post_requires_a_field(session_factory, add_messages):
    post_id = await make_post(session_factory, add_messages)
    with pytest.raises(ValidationError):
        async with session_factory() as session:
            await PostRepository(session).update_post(post_id)


#============================================
async def test_publish_post_stamps_published_at(session_factory, add_messages):
    post_id = await make_post(session_factory, add_messages)

    async with session_factory() as session:
        post = await PostRepository(session).publish_post(post_id)
    assert post.status == PostStatus.PUBLISHED
    assert post.published_at is not None


#============================================
@pytest.mark.parametrize("status", [PostStatus.PUBLISHED, PostStatus.ARCHIVED])
async def test_publish_post_rejects_non_drafts(session_factory, add_messages, status):
    post_id = await make_post(session_factory, add_messages, status=status)

    with pytest.raises(ValidationError):
        async with session_factory() as session:
            await PostRepository(session).publish_post(post_id)

    async with session_factory() as session:
        post = await PostRepository(session).get_by_id(post_id)
        assert post.status == status


#============================================
async def test_delete_published_post_rejected(session_factory, add_messages):
    post_id = await make_post(session_factory, add_messages, status=PostStatus.PUBLISHED)
    with pytest.raises(ValidationError):
        async with session_factory() as session:
            await PostRepository(session).delete_post(post_id)


#============================================
async def test_delete_draft_cascades_links_only(session_factory, add_messages):
    post_id = await make_post(session_factory, add_messages)
    assert await link_count(session_factory) == 3

    async with session_factory() as session:
        await PostRepository(session).delete_post(post_id)

    assert await link_count(session_factory) == 0
    async with session_factory() as session:
        assert await PostRepository(session).get_by_id(post_id) is None
        assert await MessageRepository(session).count() == 3


#============================================
@pytest.mark.parametrize("status", list(PostStatus))
async def test_archive_from_any_status(session_factory, add_messages, status):
    post_id = await make_post(session_factory, add_messages, status=status)

    async with session_factory() as session:
        post = await PostRepository(session).archive_post(post_id)
    assert post.status == PostStatus.ARCHIVED
    assert post.published_at is None


#============================================
async def test_unknown_post_raises_not_found(session_factory):
    async with session_factory() as session:
        repo = PostRepository(session)
        with pytest.raises(NotFoundError):
            await repo.publish_post(404)
        with pytest.raises(NotFoundError):
            await repo.archive_post(404)
        with pytest.raises(NotFoundError):
            await repo.delete_post(404)


#============================================
async def test_list_posts_filters_by_status(session_factory, add_messages):
    draft_id = await make_post(session_factory, add_messages)

    async with session_factory() as session:
        repo = PostRepository(session)
        assert [p.id for p in await repo.list_posts()] == [draft_id]
        assert [p.id for p in await repo.list_posts(status=PostStatus.DRAFT)] == [draft_id]
        assert await repo.list_posts(status=PostStatus.PUBLISHED) == []
        assert await repo.count_by_status(PostStatus.DRAFT) == 1
        assert await repo.list_posts(limit=1, offset=1) == []
