"""SQLAlchemy ORM models for Threadpress."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class PostStatus(str, enum.Enum):
    """Blog post lifecycle: draft -> published -> archived."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class User(Base):
    """Account allowed to review and publish drafts."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )


class Message(Base):
    """Message imported from the chat archive."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_chat_id_sent_at", "chat_id", "sent_at"),
        Index("ix_messages_processed_for_post", "processed_for_post"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # GUID assigned by the archive, immutable
    external_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    chat_id: Mapped[str] = mapped_column(String(255), nullable=False)
    sender_id: Mapped[str] = mapped_column(String(255), nullable=False)
    sender_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_from_me: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    synced_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    # Claimed by a draft; flips to True exactly once
    processed_for_post: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Relationships
    post_links: Mapped[List["PostMessage"]] = relationship(back_populates="message")

    @property
    def display_name(self) -> str:
        """Sender label used in prompts and transcripts."""
        if self.is_from_me:
            return self.sender_name or "Me"
        return self.sender_name or self.sender_id


class BlogPost(Base):
    """Post generated from one conversation thread."""
    __tablename__ = "blog_posts"
    __table_args__ = (
        Index("ix_blog_posts_status_created_at", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, name="post_status", values_callable=lambda e: [m.value for m in e]),
        default=PostStatus.DRAFT,
        nullable=False,
    )
    is_fallback: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    thread_start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    thread_end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    message_links: Mapped[List["PostMessage"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
    )


class PostMessage(Base):
    """Link between a post and one of its source messages."""
    __tablename__ = "post_messages"
    __table_args__ = (
        UniqueConstraint("post_id", "message_id", name="uq_post_messages_post_message"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False
    )
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False
    )

    # Relationships
    post: Mapped["BlogPost"] = relationship(back_populates="message_links")
    message: Mapped["Message"] = relationship(back_populates="post_links")
