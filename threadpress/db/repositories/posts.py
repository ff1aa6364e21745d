"""Repository for generated blog posts and their status lifecycle."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from threadpress.db.models import BlogPost, PostMessage, PostStatus
from threadpress.db.repositories.base import BaseRepository
from threadpress.db.repositories.messages import MessageRepository
from threadpress.exceptions import ValidationError


class PostRepository(BaseRepository[BlogPost]):
    """Blog post CRUD with draft -> published -> archived guards."""

    not_found_message = "Post not found"

    def __init__(self, session: AsyncSession):
        super().__init__(session, BlogPost)
        self.messages = MessageRepository(session)

    async def create_draft_post(self, thread, content) -> BlogPost:
        """
        Create a draft from a thread and link it to the thread's messages.

        Claims the messages, inserts the post and one link row per message
        inside the session's current transaction. Nothing is committed
        here: the caller's session context commits the whole unit or rolls
        all of it back, so a message is never claimed without a post and a
        post never exists without its links.

        Args:
            thread: Thread with message_ids, start_time and end_time
            content: BlogPostContent with title, content and fallback

        Returns:
            The new draft post
        """
        await self.messages.mark_claimed(thread.message_ids)

        post = await self._insert_post(thread, content)

        self.session.add_all(
            PostMessage(post_id=post.id, message_id=message_id)
            for message_id in thread.message_ids
        )
        await self.session.flush()
        return post

    async def _insert_post(self, thread, content) -> BlogPost:
        post = BlogPost(
            title=content.title,
            content=content.content,
            status=PostStatus.DRAFT,
            is_fallback=bool(getattr(content, "fallback", False)),
            thread_start_time=thread.start_time,
            thread_end_time=thread.end_time,
            message_count=len(thread.message_ids),
        )
        self.session.add(post)
        await self.session.flush()
        return post

    async def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> BlogPost:
        """Edit a draft's title and/or content."""
        if title is None and content is None:
            raise ValidationError("Title or content required")

        post = await self.get_or_raise(post_id)
        if post.status != PostStatus.DRAFT:
            raise ValidationError("Can only edit draft posts")

        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        post.updated_at = datetime.now()
        await self.session.flush()
        return post

    async def publish_post(self, post_id: int) -> BlogPost:
        """Publish a draft and stamp published_at."""
        post = await self.get_or_raise(post_id)
        if post.status != PostStatus.DRAFT:
            raise ValidationError("Can only publish draft posts")

        post.status = PostStatus.PUBLISHED
        post.published_at = datetime.now()
        await self.session.flush()
        return post

    async def delete_post(self, post_id: int) -> None:
        """Delete a draft or archived post; its messages stay claimed."""
        post = await self.get_or_raise(post_id)
        if post.status == PostStatus.PUBLISHED:
            raise ValidationError("Cannot delete published posts. Archive them instead.")

        await self.remove(post)

    async def archive_post(self, post_id: int) -> BlogPost:
        """Archive a post from any status."""
        post = await self.get_or_raise(post_id)
        post.status = PostStatus.ARCHIVED
        # published_at only describes currently published posts
        post.published_at = None
        await self.session.flush()
        return post

    async def list_posts(
        self,
        status: Optional[PostStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[BlogPost]:
        """List posts, newest first, optionally filtered by status."""
        stmt = (
            select(BlogPost)
            .order_by(desc(BlogPost.created_at), desc(BlogPost.id))
            .limit(limit)
            .offset(offset)
        )
        if status is not None:
            stmt = stmt.where(BlogPost.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_with_messages(self, post_id: int) -> Optional[BlogPost]:
        """Get post with its linked source messages loaded."""
        stmt = (
            select(BlogPost)
            .options(
                selectinload(BlogPost.message_links).selectinload(PostMessage.message)
            )
            .where(BlogPost.id == post_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_status(self, status: PostStatus) -> int:
        """Count posts with the given status."""
        stmt = select(func.count()).select_from(BlogPost).where(BlogPost.status == status)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
