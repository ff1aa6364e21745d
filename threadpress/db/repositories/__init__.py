"""Repository module for database operations."""

from .base import BaseRepository
from .messages import MessageRepository
from .posts import PostRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "MessageRepository",
    "PostRepository",
    "UserRepository",
]
