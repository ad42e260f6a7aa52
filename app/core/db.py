from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

# Базовый класс для моделей
Base = declarative_base()


def build_engine(database_url: str = settings.database_url):
    """Асинхронный движок с ограниченным временем ожидания соединения"""
    engine_kwargs = {"future": True, "echo": settings.db_echo, "pool_pre_ping": True}

    if database_url.startswith("postgresql"):
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
            connect_args={
                "timeout": settings.db_pool_timeout,
                "command_timeout": settings.db_command_timeout,
            },
        )

    return create_async_engine(database_url, **engine_kwargs)


engine = build_engine()

# Сессии
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Функция для dependency injection в FastAPI
async def get_db():
    async with SessionLocal() as session:
        yield session
