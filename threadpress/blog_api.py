"""REST API for reviewing, editing, publishing and archiving posts."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from threadpress.auth import get_current_user
from threadpress.db.models import PostStatus
from threadpress.dependencies import DbSession, PostRepoDep
from threadpress.exceptions import NotFoundError, ValidationError
from threadpress.models import PostDetail, PostResponse, PostUpdate, SourceMessage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/blog",
    tags=["Blog"],
    dependencies=[Depends(get_current_user)],
)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("/posts")
async def list_posts(
    repo: PostRepoDep,
    status: Optional[PostStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """List posts, newest first."""
    posts = await repo.list_posts(status=status, limit=limit, offset=offset)
    return {
        "posts": [PostResponse.model_validate(p) for p in posts],
        "count": len(posts),
    }


@router.get("/posts/{post_id}")
async def get_post(post_id: int, repo: PostRepoDep):
    """Get a post with its source messages."""
    post = await repo.get_with_messages(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    detail = PostDetail.model_validate(post)
    detail.messages = sorted(
        (SourceMessage.model_validate(link.message) for link in post.message_links),
        key=lambda m: (m.sent_at, m.id),
    )
    return {"post": detail}


@router.put("/posts/{post_id}")
async def update_post(post_id: int, update: PostUpdate, repo: PostRepoDep, session: DbSession):
    """Edit a draft."""
    try:
        post = await repo.update_post(post_id, title=update.title, content=update.content)
    except (NotFoundError, ValidationError) as e:
        raise _http_error(e)
    await session.commit()
    return {"post": PostResponse.model_validate(post)}


@router.post("/posts/{post_id}/publish")
async def publish_post(post_id: int, repo: PostRepoDep, session: DbSession):
    """Publish a draft."""
    try:
        post = await repo.publish_post(post_id)
    except (NotFoundError, ValidationError) as e:
        raise _http_error(e)
    await session.commit()
    logger.info(f"Published post {post_id}")
    return {"post": PostResponse.model_validate(post)}


@router.delete("/posts/{post_id}")
async def delete_post(post_id: int, repo: PostRepoDep, session: DbSession):
    """Delete a post that is not published."""
    try:
        await repo.delete_post(post_id)
    except (NotFoundError, ValidationError) as e:
        raise _http_error(e)
    await session.commit()
    return {"success": True}


@router.post("/posts/{post_id}/archive")
async def archive_post(post_id: int, repo: PostRepoDep, session: DbSession):
    """Archive a post."""
    try:
        post = await repo.archive_post(post_id)
    except NotFoundError as e:
        raise _http_error(e)
    await session.commit()
    return {"post": PostResponse.model_validate(post)}
