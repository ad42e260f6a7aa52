from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
import math
import uuid
from datetime import datetime

from app.domains.posts.entities import PostStatus, TITLE_MAX_LENGTH


class PostCreate(BaseModel):
    """Схема для создания черновика"""
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = ""

    @field_validator('title', mode="before")
    @classmethod
    def strip_title(cls, v):
        # Длина проверяется уже по обрезанному значению
        return v.strip() if isinstance(v, str) else v

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return v.strip()


class PostUpdate(BaseModel):
    """Схема для правки поста"""
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = None

    @field_validator('title', mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return v.strip() if v is not None else v


class PostSchedule(BaseModel):
    """Схема для отложенной публикации"""
    scheduled_for: datetime


class PostResponse(BaseModel):
    """Схема для ответа с данными поста"""
    id: uuid.UUID
    title: str
    slug: str
    content: str
    status: PostStatus
    owner_id: uuid.UUID
    scheduled_for: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class PostListResponse(BaseModel):
    """Схема для страницы списка постов"""
    posts: List[PostResponse]
    pagination: Pagination


class RevisionResponse(BaseModel):
    """Схема для ответа с ревизией поста"""
    revision_id: uuid.UUID = Field(..., validation_alias="id")
    post_id: uuid.UUID
    title_snapshot: str
    content_snapshot: str
    revision_author_id: uuid.UUID
    revision_timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
