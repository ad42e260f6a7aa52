from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.config import settings
from app.core.db import get_db
from app.domains.posts.cache import PublishedPostCache, get_published_post_cache
from app.domains.posts.schemas import PostListResponse, PostResponse
from app.domains.posts.services import PublicPostService

router = APIRouter(prefix="/posts", tags=["public"])


@router.get("/published", response_model=PostListResponse)
async def list_published_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination_default_limit, ge=1, le=settings.pagination_max_limit),
    db: AsyncSession = Depends(get_db),
    cache: PublishedPostCache = Depends(get_published_post_cache)
):
    """Список опубликованных постов (публичный, через кэш)"""
    return await PublicPostService(db, cache).list_published(page, limit)


@router.get("/published/{post_id}", response_model=PostResponse)
async def get_published_post(
    post_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    cache: PublishedPostCache = Depends(get_published_post_cache)
):
    """Опубликованный пост по id (публичный, через кэш)"""
    return await PublicPostService(db, cache).get_published(post_id)
