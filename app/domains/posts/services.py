import logging
import uuid
from datetime import datetime
from typing import Optional, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import SystemClock, as_utc
from app.core.config import settings
from app.db.repositories.post_repository import PostRepository, PostRevisionRepository
from app.domains.posts.cache import PublishedPostCache
from app.domains.posts.entities import Post, PostRevision
from app.domains.posts.exceptions import (
    Forbidden, InvalidState, InvalidTime, NotFound, SlugConflict, ValidationError
)
from app.domains.posts.revisions import RevisionRecorder
from app.domains.posts.schemas import Pagination, PostListResponse, PostResponse
from app.domains.posts.slugs import slug_for_new_title, unique_slug
from app.infrastructure.database.session import transaction

logger = logging.getLogger(__name__)

# Сколько раз повторять транзакцию, если уникальный индекс отверг slug
SLUG_ATTEMPTS = 5


def clamp_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Нормализация параметров пагинации"""
    page = max(1, page or 1)
    limit = min(settings.pagination_max_limit, max(1, limit or settings.pagination_default_limit))
    return page, limit


class PostLifecycleService:
    """Жизненный цикл постов: draft -> scheduled -> published.

    Каждая операция выполняется в одной транзакции; кэш инвалидируется
    только после ее коммита.
    """

    def __init__(self, session: AsyncSession, cache: PublishedPostCache, clock=None):
        self.session = session
        self.cache = cache
        self.clock = clock or SystemClock()
        self.posts = PostRepository(session)
        self.revisions = PostRevisionRepository(session)
        self.recorder = RevisionRecorder(self.revisions)

    async def create_draft(self, owner_id: uuid.UUID, title: str, content: Optional[str] = "") -> Post:
        """Создание черновика с уникальным slug"""
        title = Post.clean_title(title)
        content = content or ""

        async def insert() -> Post:
            async with transaction(self.session):
                now = self.clock.now()
                slug = await unique_slug(self.posts, title)
                return await self.posts.add(Post(
                    id=uuid.uuid4(),
                    title=title,
                    slug=slug,
                    owner_id=owner_id,
                    content=content,
                    created_at=now,
                    updated_at=now
                ))

        post = await self._retry_slug_conflicts(insert)
        logger.info(f"Created draft {post.id} with slug {post.slug}")
        return post

    async def get_owned(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> Post:
        """Пост автора в любом состоянии"""
        async with transaction(self.session):
            return await self._load_owned(post_id, owner_id)

    async def update_post(
        self,
        post_id: uuid.UUID,
        owner_id: uuid.UUID,
        title: Optional[str] = None,
        content: Optional[str] = None
    ) -> Post:
        """Правка title/content с записью ревизии"""
        if title is not None:
            title = Post.clean_title(title)

        async def edit() -> Tuple[Post, Post, bool]:
            async with transaction(self.session):
                before = await self._load_owned(post_id, owner_id, for_update=True)
                changes = before.changes_for(title, content)
                if not changes:
                    return before, before, False

                now = self.clock.now()
                # Ревизия пишется до применения новых значений, из строки этой транзакции
                await self.recorder.record(before, owner_id, now)
                if "title" in changes:
                    changes["slug"] = await slug_for_new_title(
                        self.posts, before.id, before.slug, changes["title"], now
                    )
                await self.posts.apply_edit(post_id, changes, now)
                return before, await self.posts.get_by_id(post_id), True

        before, updated, changed = await self._retry_slug_conflicts(edit)
        if changed:
            logger.info(f"Updated post {post_id}")
            if before.is_published:
                await self.cache.invalidate(post_id)
        return updated

    async def publish_draft(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> Post:
        """Немедленная публикация черновика"""
        async with transaction(self.session):
            await self._load_owned(post_id, owner_id)
            if not await self.posts.claim_publish_draft(post_id, self.clock.now()):
                raise InvalidState("Only draft posts can be published immediately")
            post = await self.posts.get_by_id(post_id)

        await self.cache.invalidate(post_id)
        logger.info(f"Published post {post_id}")
        return post

    async def schedule_draft(self, post_id: uuid.UUID, owner_id: uuid.UUID, when: datetime) -> Post:
        """Перевод черновика в scheduled; время должно быть строго в будущем"""
        when = as_utc(when)
        if when is None:
            raise ValidationError("scheduled_for is required")
        if when <= self.clock.now():
            raise InvalidTime("scheduled_for must be a future date and time")

        async with transaction(self.session):
            await self._load_owned(post_id, owner_id)
            if not await self.posts.claim_schedule_draft(post_id, when, self.clock.now()):
                raise InvalidState("Only draft posts can be scheduled")
            post = await self.posts.get_by_id(post_id)

        logger.info(f"Scheduled post {post_id} for {when.isoformat()}")
        return post

    async def delete_post(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        """Удаление поста вместе с ревизиями"""
        async with transaction(self.session):
            post = await self._load_owned(post_id, owner_id, for_update=True)
            await self.posts.delete(post_id)

        if post.is_published:
            await self.cache.invalidate(post_id)
        logger.info(f"Deleted post {post_id}")

    async def list_owned(
        self,
        owner_id: uuid.UUID,
        page: Optional[int] = 1,
        limit: Optional[int] = None
    ) -> PostListResponse:
        page, limit = clamp_page(page, limit)
        async with transaction(self.session):
            total = await self.posts.count_by_owner(owner_id)
            posts = await self.posts.list_by_owner(owner_id, limit=limit, offset=(page - 1) * limit)

        return PostListResponse(
            posts=[PostResponse.model_validate(post) for post in posts],
            pagination=Pagination.build(page, limit, total)
        )

    async def list_revisions(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> List[PostRevision]:
        """История правок, новые первыми"""
        async with transaction(self.session):
            await self._load_owned(post_id, owner_id)
            return await self.revisions.list_by_post(post_id)

    async def _load_owned(self, post_id: uuid.UUID, owner_id: uuid.UUID, for_update: bool = False) -> Post:
        if for_update:
            post = await self.posts.get_for_update(post_id)
        else:
            post = await self.posts.get_by_id(post_id)

        if post is None:
            raise NotFound("Post not found")
        if not post.is_owned_by(owner_id):
            raise Forbidden("Not authorized to access this post")
        return post

    async def _retry_slug_conflicts(self, operation):
        for attempt in range(1, SLUG_ATTEMPTS + 1):
            try:
                return await operation()
            except IntegrityError:
                logger.info(f"Slug taken by a concurrent writer, retrying (attempt {attempt})")
        raise SlugConflict("Could not assign a unique slug")


class PublicPostService:
    """Публичное чтение опубликованных постов через кэш"""

    def __init__(self, session: AsyncSession, cache: PublishedPostCache):
        self.session = session
        self.cache = cache
        self.posts = PostRepository(session)

    async def get_published(self, post_id: uuid.UUID) -> PostResponse:
        async def load() -> Optional[PostResponse]:
            async with transaction(self.session):
                post = await self.posts.get_published(post_id)
            return PostResponse.model_validate(post) if post else None

        post = await self.cache.get_or_load_post(post_id, load)
        if post is None:
            raise NotFound("Post not found")
        return post

    async def list_published(self, page: Optional[int] = 1, limit: Optional[int] = None) -> PostListResponse:
        page, limit = clamp_page(page, limit)

        async def load() -> PostListResponse:
            async with transaction(self.session):
                total = await self.posts.count_published()
                posts = await self.posts.list_published(limit=limit, offset=(page - 1) * limit)
            return PostListResponse(
                posts=[PostResponse.model_validate(post) for post in posts],
                pagination=Pagination.build(page, limit, total)
            )

        return await self.cache.get_or_load_list(page, limit, load)
