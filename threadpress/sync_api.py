"""REST API for manual sync, manual generation and pipeline status."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends

from threadpress.auth import get_current_user
from threadpress.config import settings
from threadpress.db.models import PostStatus
from threadpress.dependencies import (
    GenerationJobDep,
    MessageRepoDep,
    PostRepoDep,
    SyncServiceDep,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/sync",
    tags=["Sync"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/trigger")
async def trigger_sync(sync_service: SyncServiceDep):
    """Import new messages without generating drafts."""
    result = await sync_service.sync_new_messages()
    return {"result": result.to_dict()}


@router.post("/generate")
async def trigger_generation(job: GenerationJobDep):
    """Run the generation job now (shares the scheduler's single-flight guard)."""
    result = await job.run()
    return {"result": result.to_dict()}


@router.get("/status")
async def sync_status(
    messages: MessageRepoDep,
    posts: PostRepoDep,
    job: GenerationJobDep,
):
    """Last sync time, counts and schedule."""
    last_sync = await messages.get_last_sync_time()
    return {
        "last_sync_time": last_sync.isoformat() if last_sync else None,
        "message_count": await messages.count(),
        "draft_count": await posts.count_by_status(PostStatus.DRAFT),
        "schedule": settings.SYNC_SCHEDULE,
        "job_running": job.is_running,
    }


@router.get("/threads")
async def preview_threads(
    sync_service: SyncServiceDep,
    order: Literal["asc", "desc"] = "desc",
):
    """Threads the next generation run would see (nothing is claimed)."""
    threads = await sync_service.detect_thread_boundaries(
        settings.THREAD_GAP_HOURS, newest_first=(order == "desc")
    )
    return {
        "threads": [t.to_dict() for t in threads],
        "count": len(threads),
        "gap_hours": settings.THREAD_GAP_HOURS,
    }
