from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import require_author
from app.core.config import settings
from app.core.db import get_db
from app.core.security import Principal
from app.domains.posts.cache import PublishedPostCache, get_published_post_cache
from app.domains.posts.schemas import (
    PostCreate, PostUpdate, PostSchedule, PostResponse, PostListResponse, RevisionResponse
)
from app.domains.posts.services import PostLifecycleService

router = APIRouter(prefix="/posts", tags=["posts"])


def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    cache: PublishedPostCache = Depends(get_published_post_cache)
) -> PostLifecycleService:
    return PostLifecycleService(db, cache)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """Создание черновика"""
    post = await service.create_draft(author.id, post_data.title, post_data.content)
    return PostResponse.model_validate(post)


@router.get("", response_model=PostListResponse)
async def list_own_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination_default_limit, ge=1, le=settings.pagination_max_limit),
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """Список постов автора"""
    return await service.list_owned(author.id, page, limit)


@router.get("/{post_id}", response_model=PostResponse)
async def get_own_post(
    post_id: uuid.UUID,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    post = await service.get_owned(post_id, author.id)
    return PostResponse.model_validate(post)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: uuid.UUID,
    update_data: PostUpdate,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """Правка поста с записью ревизии"""
    post = await service.update_post(post_id, author.id, update_data.title, update_data.content)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: uuid.UUID,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    await service.delete_post(post_id, author.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/publish", response_model=PostResponse)
async def publish_post(
    post_id: uuid.UUID,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """Немедленная публикация черновика"""
    post = await service.publish_draft(post_id, author.id)
    return PostResponse.model_validate(post)


@router.post("/{post_id}/schedule", response_model=PostResponse)
async def schedule_post(
    post_id: uuid.UUID,
    schedule_data: PostSchedule,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """Отложенная публикация черновика"""
    post = await service.schedule_draft(post_id, author.id, schedule_data.scheduled_for)
    return PostResponse.model_validate(post)


@router.get("/{post_id}/revisions", response_model=List[RevisionResponse])
async def list_post_revisions(
    post_id: uuid.UUID,
    author: Principal = Depends(require_author),
    service: PostLifecycleService = Depends(get_lifecycle_service)
):
    """История правок поста, новые первыми"""
    revisions = await service.list_revisions(post_id, author.id)
    return [RevisionResponse.model_validate(revision) for revision in revisions]
