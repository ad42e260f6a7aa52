import asyncio
import logging
import signal

from app.core.cache import close_redis
from app.core.config import settings
from app.core.db import SessionLocal, engine
from app.domains.posts.cache import get_published_post_cache
from app.worker.scheduled_publish import ScheduledPublishWorker


async def main() -> None:
    worker = ScheduledPublishWorker(
        SessionLocal,
        get_published_post_cache(),
        interval=settings.worker_interval_seconds,
        item_timeout=settings.worker_item_timeout,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await worker.run_forever(stop_event)
    finally:
        await close_redis()
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    asyncio.run(main())
