import enum
import uuid
from datetime import datetime
from typing import Optional

from app.domains.posts.exceptions import ValidationError

TITLE_MAX_LENGTH = 500


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class Post:
    """Сущность поста: draft -> scheduled -> published"""

    def __init__(
        self,
        id: uuid.UUID,
        title: str,
        slug: str,
        owner_id: uuid.UUID,
        content: str = "",
        status: PostStatus = PostStatus.DRAFT,
        scheduled_for: Optional[datetime] = None,
        published_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.id = id
        self.title = title
        self.slug = slug
        self.owner_id = owner_id
        self.content = content
        self.status = PostStatus(status)
        self.scheduled_for = scheduled_for
        self.published_at = published_at
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    @property
    def is_draft(self) -> bool:
        return self.status == PostStatus.DRAFT

    def is_owned_by(self, principal_id: uuid.UUID) -> bool:
        return self.owner_id == principal_id

    def changes_for(self, title: Optional[str], content: Optional[str]) -> dict:
        """Поля, которые действительно изменятся при правке"""
        changes = {}
        if title is not None and title != self.title:
            changes["title"] = title
        if content is not None and content != self.content:
            changes["content"] = content
        return changes

    @staticmethod
    def clean_title(title: Optional[str]) -> str:
        """Проверка и нормализация заголовка"""
        if title is None or not title.strip():
            raise ValidationError("Title cannot be empty")
        title = title.strip()
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
        return title

    def __eq__(self, other) -> bool:
        if not isinstance(other, Post):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Post(id={self.id}, slug={self.slug}, status={self.status.value})"


class PostRevision:
    """Снимок заголовка и содержимого поста до правки"""

    def __init__(
        self,
        id: uuid.UUID,
        post_id: uuid.UUID,
        title_snapshot: str,
        content_snapshot: str,
        revision_author_id: uuid.UUID,
        revision_timestamp: datetime
    ):
        self.id = id
        self.post_id = post_id
        self.title_snapshot = title_snapshot
        self.content_snapshot = content_snapshot
        self.revision_author_id = revision_author_id
        self.revision_timestamp = revision_timestamp

    @classmethod
    def capture(cls, post: Post, author_id: uuid.UUID, timestamp: datetime) -> "PostRevision":
        """Создание ревизии из текущего состояния поста"""
        return cls(
            id=uuid.uuid4(),
            post_id=post.id,
            title_snapshot=post.title,
            content_snapshot=post.content,
            revision_author_id=author_id,
            revision_timestamp=timestamp
        )

    def __repr__(self) -> str:
        return f"PostRevision(id={self.id}, post_id={self.post_id}, at={self.revision_timestamp})"
