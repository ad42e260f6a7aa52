import asyncio
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.posts.exceptions import Transient

# Сбои соединения: драйвер может отдать их и в сыром виде (asyncpg при connect)
CONNECTION_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError, asyncio.TimeoutError)


@asynccontextmanager
async def transaction(session: AsyncSession):
    """Транзакция на одну логическую операцию.

    Любое исключение внутри блока откатывает транзакцию; сбои соединения
    с хранилищем превращаются в Transient.
    """
    try:
        async with session.begin():
            yield session
    except CONNECTION_ERRORS as e:
        raise Transient("Storage is temporarily unavailable") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise Transient("Storage is temporarily unavailable") from e
        raise
