from typing import Optional, List
from datetime import datetime
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, and_

from app.core.clock import as_utc
from app.db.models.post import Post as PostModel, PostRevision as PostRevisionModel
from app.domains.posts.entities import Post, PostRevision, PostStatus


class PostRepository:
    """Репозиторий постов. Не фиксирует транзакции: работает внутри транзакции вызывающего"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, post: Post) -> Post:
        """Вставка нового поста; IntegrityError по slug поднимается при flush"""
        db_post = PostModel(
            id=post.id,
            title=post.title,
            slug=post.slug,
            content=post.content,
            status=post.status.value,
            owner_id=post.owner_id,
            scheduled_for=post.scheduled_for,
            published_at=post.published_at,
            created_at=post.created_at,
            updated_at=post.updated_at
        )
        self.session.add(db_post)
        await self.session.flush()
        return self._to_domain(db_post)

    async def get_by_id(self, post_id: uuid.UUID) -> Optional[Post]:
        return await self._get(select(PostModel).where(PostModel.id == post_id))

    async def get_for_update(self, post_id: uuid.UUID) -> Optional[Post]:
        """Чтение строки с блокировкой до конца транзакции (где бэкенд это поддерживает)"""
        return await self._get(
            select(PostModel).where(PostModel.id == post_id).with_for_update()
        )

    async def get_published(self, post_id: uuid.UUID) -> Optional[Post]:
        return await self._get(
            select(PostModel).where(
                and_(PostModel.id == post_id, PostModel.status == PostStatus.PUBLISHED.value)
            )
        )

    async def slug_taken(self, slug: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        stmt = select(PostModel.id).where(PostModel.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(PostModel.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.first() is not None

    async def apply_edit(self, post_id: uuid.UUID, values: dict, now: datetime) -> None:
        """Применение новых значений title/content/slug"""
        stmt = (
            update(PostModel)
            .where(PostModel.id == post_id)
            .values(**values, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def delete(self, post_id: uuid.UUID) -> bool:
        """Удаление поста вместе с ревизиями"""
        await self.session.execute(
            delete(PostRevisionModel)
            .where(PostRevisionModel.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(PostModel)
            .where(PostModel.id == post_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    # --- Условные переходы (claim): одна строка меняется только если состояние совпало ---

    async def claim_publish_draft(self, post_id: uuid.UUID, now: datetime) -> bool:
        return await self._claim(
            and_(PostModel.id == post_id, PostModel.status == PostStatus.DRAFT.value),
            status=PostStatus.PUBLISHED.value,
            published_at=now,
            updated_at=now,
        )

    async def claim_schedule_draft(self, post_id: uuid.UUID, when: datetime, now: datetime) -> bool:
        return await self._claim(
            and_(PostModel.id == post_id, PostModel.status == PostStatus.DRAFT.value),
            status=PostStatus.SCHEDULED.value,
            scheduled_for=when,
            updated_at=now,
        )

    async def claim_publish_scheduled(self, post_id: uuid.UUID, now: datetime) -> bool:
        # scheduled_for не сбрасывается: остается для аудита
        return await self._claim(
            and_(
                PostModel.id == post_id,
                PostModel.status == PostStatus.SCHEDULED.value,
                PostModel.scheduled_for <= now,
            ),
            status=PostStatus.PUBLISHED.value,
            published_at=now,
            updated_at=now,
        )

    async def list_due_ids(self, now: datetime) -> List[uuid.UUID]:
        """Посты, время публикации которых наступило"""
        result = await self.session.execute(
            select(PostModel.id)
            .where(
                and_(
                    PostModel.status == PostStatus.SCHEDULED.value,
                    PostModel.scheduled_for.is_not(None),
                    PostModel.scheduled_for <= now,
                )
            )
            .order_by(PostModel.scheduled_for.asc())
        )
        return list(result.scalars().all())

    async def list_by_owner(self, owner_id: uuid.UUID, limit: int = 20, offset: int = 0) -> List[Post]:
        result = await self.session.execute(
            select(PostModel)
            .where(PostModel.owner_id == owner_id)
            .order_by(PostModel.updated_at.desc(), PostModel.id)
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(post) for post in result.scalars().all()]

    async def count_by_owner(self, owner_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(PostModel.id)).where(PostModel.owner_id == owner_id)
        )
        return result.scalar()

    async def list_published(self, limit: int = 20, offset: int = 0) -> List[Post]:
        result = await self.session.execute(
            select(PostModel)
            .where(PostModel.status == PostStatus.PUBLISHED.value)
            .order_by(PostModel.published_at.desc(), PostModel.updated_at.desc(), PostModel.id)
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(post) for post in result.scalars().all()]

    async def count_published(self) -> int:
        result = await self.session.execute(
            select(func.count(PostModel.id)).where(PostModel.status == PostStatus.PUBLISHED.value)
        )
        return result.scalar()

    async def _claim(self, criteria, **values) -> bool:
        stmt = (
            update(PostModel)
            .where(criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def _get(self, stmt) -> Optional[Post]:
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        db_post = result.scalar_one_or_none()
        return self._to_domain(db_post) if db_post else None

    def _to_domain(self, db_post: PostModel) -> Post:
        """Преобразование модели БД в доменную сущность"""
        return Post(
            id=db_post.id,
            title=db_post.title,
            slug=db_post.slug,
            owner_id=db_post.owner_id,
            content=db_post.content or "",
            status=PostStatus(db_post.status),
            scheduled_for=as_utc(db_post.scheduled_for),
            published_at=as_utc(db_post.published_at),
            created_at=as_utc(db_post.created_at),
            updated_at=as_utc(db_post.updated_at)
        )


class PostRevisionRepository:
    """Репозиторий ревизий постов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, revision: PostRevision) -> PostRevision:
        db_revision = PostRevisionModel(
            id=revision.id,
            post_id=revision.post_id,
            title_snapshot=revision.title_snapshot,
            content_snapshot=revision.content_snapshot,
            revision_author_id=revision.revision_author_id,
            revision_timestamp=revision.revision_timestamp
        )
        self.session.add(db_revision)
        await self.session.flush()
        return self._to_domain(db_revision)

    async def list_by_post(self, post_id: uuid.UUID) -> List[PostRevision]:
        """Ревизии поста, новые первыми"""
        result = await self.session.execute(
            select(PostRevisionModel)
            .where(PostRevisionModel.post_id == post_id)
            .order_by(PostRevisionModel.revision_timestamp.desc())
        )
        return [self._to_domain(revision) for revision in result.scalars().all()]

    async def count_by_post(self, post_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(PostRevisionModel.id)).where(PostRevisionModel.post_id == post_id)
        )
        return result.scalar()

    def _to_domain(self, db_revision: PostRevisionModel) -> PostRevision:
        return PostRevision(
            id=db_revision.id,
            post_id=db_revision.post_id,
            title_snapshot=db_revision.title_snapshot,
            content_snapshot=db_revision.content_snapshot or "",
            revision_author_id=db_revision.revision_author_id,
            revision_timestamp=as_utc(db_revision.revision_timestamp)
        )
