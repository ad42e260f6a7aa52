import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.core.cache import close_redis
from app.core.config import settings
from app.core.db import SessionLocal, engine
from app.domains.posts.cache import get_published_post_cache
from app.domains.posts.exceptions import PostError
from app.worker.scheduled_publish import ScheduledPublishWorker

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Запуск и остановка воркера отложенной публикации"""
    stop_event = asyncio.Event()
    worker_task = None

    if settings.worker_enabled:
        worker = ScheduledPublishWorker(
            SessionLocal,
            get_published_post_cache(),
            interval=settings.worker_interval_seconds,
            item_timeout=settings.worker_item_timeout,
        )
        worker_task = asyncio.create_task(worker.run_forever(stop_event))

    yield

    stop_event.set()
    if worker_task is not None:
        await worker_task
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Postflow CMS",
    description="Content management backend: drafts, scheduled publishing and cached public reads",
    version="1.0.0",
    lifespan=lifespan
)

# Настройка CORS для работы с frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PostError)
async def post_error_handler(request: Request, exc: PostError):
    """Ошибки домена -> стабильный код и статус"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}}
    )


# Подключаем роутеры
app.include_router(api_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "Postflow CMS API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
