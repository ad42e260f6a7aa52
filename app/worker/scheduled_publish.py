import asyncio
import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.clock import SystemClock
from app.db.repositories.post_repository import PostRepository
from app.domains.posts.cache import PublishedPostCache
from app.infrastructure.database.session import transaction

logger = logging.getLogger(__name__)


class ScheduledPublishWorker:
    """Периодическая публикация постов, время которых наступило.

    Воркер не хранит состояния кроме таймера: несколько экземпляров могут
    работать одновременно, условный UPDATE гарантирует, что строку
    переведет в published только один из них.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        cache: PublishedPostCache,
        clock=None,
        interval: float = 60.0,
        item_timeout: float = 30.0
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.clock = clock or SystemClock()
        self.interval = interval
        self.item_timeout = item_timeout

    async def run_cycle(self) -> int:
        """Один проход: возвращает число постов, опубликованных этим экземпляром"""
        async with self.session_factory() as session:
            async with transaction(session):
                due_ids = await PostRepository(session).list_due_ids(self.clock.now())

        published = 0
        for post_id in due_ids:
            try:
                claimed = await asyncio.wait_for(self._publish_one(post_id), timeout=self.item_timeout)
            except Exception:
                # Ошибка одного поста не прерывает пачку
                logger.exception(f"Scheduled publish failed for post {post_id}")
                continue

            if claimed:
                published += 1
                await self.cache.invalidate(post_id)
                logger.info(f"Published scheduled post {post_id}")
            else:
                logger.debug(f"Post {post_id} already published by a concurrent run")

        if due_ids:
            logger.info(f"Scheduled publish cycle: {published} of {len(due_ids)} due posts published")
        return published

    async def _publish_one(self, post_id: uuid.UUID) -> bool:
        """Отдельная транзакция на каждый пост; False если строку уже перевели"""
        async with self.session_factory() as session:
            async with transaction(session):
                return await PostRepository(session).claim_publish_scheduled(post_id, self.clock.now())

    async def run_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Цикл: сразу при старте, затем каждые interval секунд до отмены"""
        logger.info(f"Scheduled publish worker started (runs every {self.interval:g}s)")
        stop_event = stop_event or asyncio.Event()

        while not stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Scheduled publish cycle failed")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Scheduled publish worker stopped")
