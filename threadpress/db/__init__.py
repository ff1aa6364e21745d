"""Database module for Threadpress."""

from .connection import get_session, get_session_context, engine, async_session_factory
from .models import (
    Base,
    BlogPost,
    Message,
    PostMessage,
    PostStatus,
    User,
)

__all__ = [
    "get_session",
    "get_session_context",
    "engine",
    "async_session_factory",
    "Base",
    "BlogPost",
    "Message",
    "PostMessage",
    "PostStatus",
    "User",
]
