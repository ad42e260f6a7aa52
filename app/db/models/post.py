from sqlalchemy import Column, String, Text, ForeignKey, Uuid, DateTime, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Post(BaseModel):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("status IN ('draft', 'scheduled', 'published')", name="ck_posts_status"),
        # Выборка воркера: status = 'scheduled' AND scheduled_for <= now
        Index("ix_posts_status_scheduled_for", "status", "scheduled_for"),
    )

    title = Column(String(500), nullable=False)
    slug = Column(String(600), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="draft")
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    scheduled_for = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    revisions = relationship("PostRevision", back_populates="post", passive_deletes=True)


class PostRevision(BaseModel):
    __tablename__ = "post_revisions"

    post_id = Column(Uuid(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    title_snapshot = Column(String(500), nullable=False)
    content_snapshot = Column(Text, nullable=False, default="")
    revision_author_id = Column(Uuid(as_uuid=True), nullable=False)
    revision_timestamp = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    post = relationship("Post", back_populates="revisions")
