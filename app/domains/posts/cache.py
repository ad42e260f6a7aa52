import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.domains.posts.schemas import PostListResponse, PostResponse

logger = logging.getLogger(__name__)

POST_KEY_PREFIX = "published_post:"
POST_GENERATION_PREFIX = "published_post_gen:"
LIST_KEY_PREFIX = "published_posts_list:"
LIST_GENERATION_KEY = "published_posts_list_gen"

# Счетчик поколения живет заметно дольше любой записи кэша
GENERATION_TTL = 24 * 60 * 60

CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class PublishedPostCache:
    """Read-through кэш опубликованных постов поверх Redis.

    Ключи включают номер поколения. Инвалидация увеличивает поколение,
    поэтому читатель, загрузивший из БД состояние до коммита, может
    записать его только под старым поколением, которое больше никто
    не читает. Любая ошибка Redis считается промахом кэша.
    """

    def __init__(self, redis: Optional[Redis], post_ttl: int = 300, list_ttl: int = 60):
        self.redis = redis
        self.post_ttl = post_ttl
        self.list_ttl = list_ttl

    async def get_or_load_post(
        self,
        post_id: uuid.UUID,
        loader: Callable[[], Awaitable[Optional[PostResponse]]]
    ) -> Optional[PostResponse]:
        generation = await self._generation(f"{POST_GENERATION_PREFIX}{post_id}")
        key = f"{POST_KEY_PREFIX}{generation}:{post_id}" if generation is not None else None

        if key is not None:
            cached = await self._get(key)
            if cached is not None:
                return PostResponse.model_validate_json(cached)

        post = await loader()
        if post is not None and key is not None:
            await self._set(key, post.model_dump_json(), self.post_ttl)
        return post

    async def get_or_load_list(
        self,
        page: int,
        limit: int,
        loader: Callable[[], Awaitable[PostListResponse]]
    ) -> PostListResponse:
        generation = await self._generation(LIST_GENERATION_KEY)
        key = f"{LIST_KEY_PREFIX}{generation}:{page}:{limit}" if generation is not None else None

        if key is not None:
            cached = await self._get(key)
            if cached is not None:
                return PostListResponse.model_validate_json(cached)

        payload = await loader()
        if key is not None:
            await self._set(key, payload.model_dump_json(by_alias=True), self.list_ttl)
        return payload

    async def invalidate(self, post_id: uuid.UUID) -> None:
        """Инвалидация записи поста и всех страниц списка.

        Вызывается только после коммита транзакции, изменившей пост.
        """
        await self.invalidate_post(post_id)
        await self.invalidate_lists()

    async def invalidate_post(self, post_id: uuid.UUID) -> None:
        if self.redis is None:
            return
        generation_key = f"{POST_GENERATION_PREFIX}{post_id}"
        try:
            generation = await self.redis.get(generation_key) or "0"
            await self.redis.delete(f"{POST_KEY_PREFIX}{generation}:{post_id}")
            await self._bump(generation_key)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache invalidation failed for post {post_id}: {e}")

    async def invalidate_lists(self) -> None:
        """Списки нельзя инвалидировать выборочно: вставка сдвигает все страницы"""
        if self.redis is None:
            return
        try:
            await self._bump(LIST_GENERATION_KEY)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache invalidation failed for published lists: {e}")

    async def _bump(self, generation_key: str) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(generation_key)
            pipe.expire(generation_key, GENERATION_TTL)
            await pipe.execute()

    async def _generation(self, generation_key: str) -> Optional[str]:
        """Текущее поколение; None если кэш недоступен"""
        if self.redis is None:
            return None
        try:
            value = await self.redis.get(generation_key)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache read failed for {generation_key}: {e}")
            return None
        return str(value) if value is not None else "0"

    async def _get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def _set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.redis.setex(key, ttl, value)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e}")


def get_published_post_cache() -> PublishedPostCache:
    """Зависимость FastAPI: кэш поверх общего клиента Redis"""
    from app.core.cache import get_redis
    from app.core.config import settings

    return PublishedPostCache(
        get_redis(),
        post_ttl=settings.cache_post_ttl,
        list_ttl=settings.cache_list_ttl,
    )
