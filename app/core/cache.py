from typing import Optional

from redis.asyncio import Redis

from app.core.config import settings

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """Общий клиент Redis (создается лениво, соединение устанавливается при первом запросе)"""
    global _client
    if _client is None:
        _client = Redis.from_url(
            settings.redis_url,
            socket_timeout=settings.cache_socket_timeout,
            socket_connect_timeout=settings.cache_socket_timeout,
            decode_responses=True,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
