"""
Published-post cache tests.

- Read-through population and key layout
- Coherence with edits, publishing and deletion
- Stale loads racing an invalidation
- Degradation to direct reads when Redis fails
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.db.repositories.post_repository import PostRepository
from app.domains.posts.cache import (
    LIST_GENERATION_KEY,
    POST_GENERATION_PREFIX,
    PublishedPostCache,
)
from app.domains.posts.exceptions import NotFound
from app.domains.posts.schemas import PostResponse
from app.domains.posts.services import PostLifecycleService, PublicPostService


async def published_post(service, owner_id, title="Cached", content="v1"):
    post = await service.create_draft(owner_id, title, content)
    return await service.publish_draft(post.id, owner_id)


class TestReadThrough:
    """Population of the cache on public reads."""

    async def test_first_read_populates_item_key(self, service, public_reader, redis, owner_id) -> None:
        post = await published_post(service, owner_id)

        result = await public_reader.get(post.id)

        assert result.content == "v1"
        key = f"published_post:1:{post.id}"
        assert await redis.get(key) is not None
        ttl = await redis.ttl(key)
        assert 0 < ttl <= 300

    async def test_cached_value_is_served_without_database(
        self, service, public_reader, session, owner_id, clock
    ) -> None:
        post = await published_post(service, owner_id)
        await public_reader.get(post.id)

        # Правка в обход сервиса: кэш не инвалидируется
        async with session.begin():
            await PostRepository(session).apply_edit(post.id, {"content": "sneaky"}, clock.now())

        assert (await public_reader.get(post.id)).content == "v1"

    async def test_list_read_populates_list_key(self, service, public_reader, redis, owner_id) -> None:
        await published_post(service, owner_id)

        listing = await public_reader.list(page=1, limit=20)

        assert listing.pagination.total == 1
        key = "published_posts_list:1:1:20"
        assert await redis.get(key) is not None
        assert 0 < await redis.ttl(key) <= 60

    async def test_cached_list_keeps_pagination_shape(self, service, public_reader, owner_id) -> None:
        await published_post(service, owner_id)

        first = await public_reader.list(page=1, limit=20)
        second = await public_reader.list(page=1, limit=20)

        assert second == first
        assert second.pagination.total_pages == 1

    async def test_unpublished_post_is_not_found_and_not_cached(
        self, service, public_reader, redis, owner_id
    ) -> None:
        draft = await service.create_draft(owner_id, "Hidden")

        with pytest.raises(NotFound):
            await public_reader.get(draft.id)
        assert await redis.get(f"published_post:0:{draft.id}") is None


class TestCoherence:
    """Reads after a committed change never return the old value."""

    async def test_edit_of_published_post_is_visible_immediately(
        self, service, public_reader, owner_id
    ) -> None:
        post = await published_post(service, owner_id)
        await public_reader.get(post.id)
        await public_reader.list()

        await service.update_post(post.id, owner_id, title="Renamed", content="v2")

        fresh = await public_reader.get(post.id)
        assert fresh.title == "Renamed"
        assert fresh.content == "v2"
        listing = await public_reader.list()
        assert [p.title for p in listing.posts] == ["Renamed"]

    async def test_publish_refreshes_lists(self, service, public_reader, owner_id, clock) -> None:
        await published_post(service, owner_id, title="First")
        assert (await public_reader.list()).pagination.total == 1

        clock.advance(minutes=1)
        await published_post(service, owner_id, title="Second")

        listing = await public_reader.list()
        assert [p.title for p in listing.posts] == ["Second", "First"]

    async def test_publish_after_failed_read_is_visible(self, service, public_reader, owner_id) -> None:
        draft = await service.create_draft(owner_id, "Soon")
        with pytest.raises(NotFound):
            await public_reader.get(draft.id)

        await service.publish_draft(draft.id, owner_id)

        assert (await public_reader.get(draft.id)).title == "Soon"

    async def test_delete_of_published_post_is_visible(self, service, public_reader, owner_id) -> None:
        post = await published_post(service, owner_id)
        await public_reader.get(post.id)
        await public_reader.list()

        await service.delete_post(post.id, owner_id)

        with pytest.raises(NotFound):
            await public_reader.get(post.id)
        assert (await public_reader.list()).posts == []

    async def test_invalidation_bumps_generations(self, cache, redis, owner_id, service) -> None:
        post = await published_post(service, owner_id)

        assert await redis.get(f"{POST_GENERATION_PREFIX}{post.id}") == "1"
        assert await redis.get(LIST_GENERATION_KEY) == "1"

        await cache.invalidate(post.id)

        assert await redis.get(f"{POST_GENERATION_PREFIX}{post.id}") == "2"
        assert await redis.get(LIST_GENERATION_KEY) == "2"
        assert await redis.ttl(LIST_GENERATION_KEY) > 0

    async def test_draft_edit_leaves_cache_alone(self, service, redis, owner_id) -> None:
        post = await service.create_draft(owner_id, "Draft", "a")

        await service.update_post(post.id, owner_id, content="b")

        assert await redis.get(f"{POST_GENERATION_PREFIX}{post.id}") is None
        assert await redis.get(LIST_GENERATION_KEY) is None


class TestRacingLoads:
    """A load that started before a commit cannot overwrite the fresh value."""

    async def test_stale_load_is_written_under_retired_generation(
        self, service, cache, public_reader, owner_id
    ) -> None:
        post = await published_post(service, owner_id)
        stale = PostResponse.model_validate(post)

        async def racing_loader():
            # Запись с инвалидацией завершается, пока читатель держит старое состояние
            await service.update_post(post.id, owner_id, content="v2")
            return stale

        returned = await cache.get_or_load_post(post.id, racing_loader)
        assert returned.content == "v1"

        assert (await public_reader.get(post.id)).content == "v2"

    async def test_stale_list_load_is_not_served(self, service, cache, public_reader, owner_id) -> None:
        post = await published_post(service, owner_id)
        stale = await public_reader.list()
        await cache.invalidate_lists()

        async def racing_loader():
            await service.update_post(post.id, owner_id, title="Fresh Title")
            return stale

        await cache.get_or_load_list(1, 20, racing_loader)

        listing = await public_reader.list()
        assert [p.title for p in listing.posts] == ["Fresh Title"]


class TestDegradation:
    """Redis failures are treated as misses."""

    @pytest.fixture
    def broken_redis(self):
        redis = MagicMock()
        error = RedisConnectionError("Connection refused")
        redis.get = AsyncMock(side_effect=error)
        redis.setex = AsyncMock(side_effect=error)
        redis.delete = AsyncMock(side_effect=error)
        redis.pipeline = MagicMock(side_effect=error)
        return redis

    async def test_reads_and_writes_survive_redis_outage(
        self, session_factory, broken_redis, owner_id, clock
    ) -> None:
        cache = PublishedPostCache(broken_redis)
        async with session_factory() as session:
            service = PostLifecycleService(session, cache, clock)
            post = await published_post(service, owner_id)
            updated = await service.update_post(post.id, owner_id, content="v2")

        assert updated.content == "v2"

        async with session_factory() as session:
            reader = PublicPostService(session, cache)
            assert (await reader.get_published(post.id)).content == "v2"
            assert (await reader.list_published()).pagination.total == 1
        broken_redis.get.assert_awaited()

    async def test_missing_client_disables_cache(self, session_factory, owner_id, clock) -> None:
        cache = PublishedPostCache(None)
        async with session_factory() as session:
            service = PostLifecycleService(session, cache, clock)
            post = await published_post(service, owner_id)

        async with session_factory() as session:
            reader = PublicPostService(session, cache)
            assert (await reader.get_published(post.id)).title == "Cached"
