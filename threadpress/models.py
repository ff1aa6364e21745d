"""Pydantic models for Threadpress API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from threadpress.db.models import PostStatus


class RegisterRequest(BaseModel):
    email: str = Field(..., description="Account e-mail")
    password: str = Field(..., description="Plain password (min length from settings)")


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., description="Refresh token from login/register")


class UserInfo(BaseModel):
    id: int
    email: str


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class PostResponse(BaseModel):
    """Blog post without its source messages."""

    id: int
    title: str
    content: str
    status: PostStatus
    is_fallback: bool = Field(False, description="Body is the raw transcript, not model output")
    thread_start_time: datetime
    thread_end_time: datetime
    message_count: int
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SourceMessage(BaseModel):
    id: int
    chat_id: str
    sender_id: str
    sender_name: Optional[str] = None
    is_from_me: bool
    text: Optional[str] = None
    sent_at: datetime

    model_config = {"from_attributes": True}


class PostDetail(PostResponse):
    """Blog post with the messages it was generated from."""

    messages: list[SourceMessage] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database_available: bool = Field(..., description="Whether the database answers queries")
    scheduler_running: bool = Field(..., description="Whether the cron trigger is active")
    job_running: bool = Field(..., description="Whether a generation run is in progress")
