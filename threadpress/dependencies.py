"""FastAPI dependencies for database repositories and pipeline services."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from threadpress.db.connection import get_session
from threadpress.db.repositories.messages import MessageRepository
from threadpress.db.repositories.posts import PostRepository
from threadpress.services.auth_service import AuthService
from threadpress.services.generation_job import GenerationJob
from threadpress.services.message_sync import MessageSyncService


# Session dependency
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


# Type alias for session dependency
DbSession = Annotated[AsyncSession, Depends(get_db)]


# Repository dependencies
async def get_message_repo(session: DbSession) -> MessageRepository:
    """Get message repository."""
    return MessageRepository(session)


async def get_post_repo(session: DbSession) -> PostRepository:
    """Get post repository."""
    return PostRepository(session)


async def get_auth_service(session: DbSession) -> AuthService:
    """Get auth service."""
    return AuthService(session)


# Pipeline services live on app.state, built once at import time in main
def get_generation_job(request: Request) -> GenerationJob:
    """Get the shared generation job (one single-flight guard per app)."""
    return request.app.state.generation_job


def get_sync_service(request: Request) -> MessageSyncService:
    """Get the shared message sync service."""
    return request.app.state.sync_service


# Type aliases for dependencies
MessageRepoDep = Annotated[MessageRepository, Depends(get_message_repo)]
PostRepoDep = Annotated[PostRepository, Depends(get_post_repo)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
GenerationJobDep = Annotated[GenerationJob, Depends(get_generation_job)]
SyncServiceDep = Annotated[MessageSyncService, Depends(get_sync_service)]
