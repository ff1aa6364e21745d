"""Initial schema: users, messages, blog posts and post/message links

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-11-08

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


post_status = sa.Enum('draft', 'published', 'archived', name='post_status')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_id', sa.String(255), nullable=False, unique=True),
        sa.Column('chat_id', sa.String(255), nullable=False),
        sa.Column('sender_id', sa.String(255), nullable=False),
        sa.Column('sender_name', sa.String(255), nullable=True),
        sa.Column('is_from_me', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('synced_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('processed_for_post', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'blog_posts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', post_status, nullable=False, server_default='draft'),
        sa.Column('is_fallback', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('thread_start_time', sa.DateTime(), nullable=False),
        sa.Column('thread_end_time', sa.DateTime(), nullable=False),
        sa.Column('message_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('published_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'post_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'post_id',
            sa.Integer(),
            sa.ForeignKey('blog_posts.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'message_id',
            sa.Integer(),
            sa.ForeignKey('messages.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.UniqueConstraint('post_id', 'message_id', name='uq_post_messages_post_message'),
    )

    # Create indexes
    op.create_index('ix_messages_chat_id_sent_at', 'messages', ['chat_id', 'sent_at'])
    op.create_index('ix_messages_processed_for_post', 'messages', ['processed_for_post'])
    op.create_index('ix_blog_posts_status_created_at', 'blog_posts', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_blog_posts_status_created_at', table_name='blog_posts')
    op.drop_index('ix_messages_processed_for_post', table_name='messages')
    op.drop_index('ix_messages_chat_id_sent_at', table_name='messages')
    op.drop_table('post_messages')
    op.drop_table('blog_posts')
    op.drop_table('messages')
    op.drop_table('users')
    post_status.drop(op.get_bind(), checkfirst=True)
