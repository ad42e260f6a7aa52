"""create posts and post_revisions tables

Revision ID: 0001_create_posts
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_create_posts'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('posts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('slug', sa.String(length=600), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('draft', 'scheduled', 'published')", name='ck_posts_status'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_posts_slug', 'posts', ['slug'], unique=True)
    op.create_index('ix_posts_owner_id', 'posts', ['owner_id'], unique=False)
    op.create_index('ix_posts_status_scheduled_for', 'posts', ['status', 'scheduled_for'], unique=False)

    op.create_table('post_revisions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('post_id', sa.Uuid(), nullable=False),
        sa.Column('title_snapshot', sa.String(length=500), nullable=False),
        sa.Column('content_snapshot', sa.Text(), nullable=False),
        sa.Column('revision_author_id', sa.Uuid(), nullable=False),
        sa.Column('revision_timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_post_revisions_post_id', 'post_revisions', ['post_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_post_revisions_post_id', table_name='post_revisions')
    op.drop_table('post_revisions')
    op.drop_index('ix_posts_status_scheduled_for', table_name='posts')
    op.drop_index('ix_posts_owner_id', table_name='posts')
    op.drop_index('ix_posts_slug', table_name='posts')
    op.drop_table('posts')
