"""FastAPI application for Threadpress."""

import logging

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from threadpress import openai_client
from threadpress.auth_api import router as auth_router
from threadpress.blog_api import router as blog_router
from threadpress.config import settings
from threadpress.db.connection import close_db, get_session_context, init_db
from threadpress.imessage.chat_db import ChatDbSource
from threadpress.models import HealthStatus
from threadpress.scheduler import GenerationScheduler
from threadpress.services.generation_job import GenerationJob
from threadpress.services.message_sync import MessageSyncService
from threadpress.summarizer import generate_blog_post
from threadpress.sync_api import router as sync_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Threadpress",
    description="Turns chat archive conversations into blog post drafts",
    version="1.0.0"
)

# Register API routers
app.include_router(auth_router)
app.include_router(blog_router)
app.include_router(sync_router)

# Pipeline: one sync service and one generation job shared by the
# scheduler and the manual trigger endpoint
sync_service = MessageSyncService(source=ChatDbSource(settings.IMESSAGE_DB_PATH))
generation_job = GenerationJob(
    sync_service,
    generate_blog_post,
    gap_hours=settings.THREAD_GAP_HOURS,
    max_threads_per_run=settings.MAX_THREADS_PER_RUN,
    newest_first=settings.THREAD_ORDER.lower() != "asc",
)
scheduler = GenerationScheduler(generation_job, settings.SYNC_SCHEDULE)

app.state.sync_service = sync_service
app.state.generation_job = generation_job
app.state.scheduler = scheduler

# Prometheus metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.on_event("startup")
async def startup_event():
    """Initialize database and start the generation scheduler."""
    await init_db()
    logger.info("Threadpress started")
    logger.info(f"iMessage archive: {settings.IMESSAGE_DB_PATH}")
    logger.info(
        f"Thread gap: {settings.THREAD_GAP_HOURS}h, "
        f"max threads per run: {settings.MAX_THREADS_PER_RUN}"
    )

    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Generation scheduler disabled (SCHEDULER_ENABLED=false)")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the scheduler, close HTTP and database clients."""
    scheduler.stop()

    await openai_client.close_client()
    logger.info("OpenAI client closed")

    await close_db()
    logger.info("Database connection closed")


@app.get("/health", response_model=HealthStatus)
async def health_check():
    """Check database connectivity and pipeline state."""
    database_available = False
    try:
        async with get_session_context() as session:
            await session.execute(text("SELECT 1"))
        database_available = True
    except Exception as e:
        logger.warning(f"Health check failed: {e}")

    return HealthStatus(
        status="healthy" if database_available else "degraded",
        database_available=database_available,
        scheduler_running=scheduler.running,
        job_running=generation_job.is_running,
    )
