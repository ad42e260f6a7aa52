import logging
import uuid
from datetime import datetime

from app.db.repositories.post_repository import PostRevisionRepository
from app.domains.posts.entities import Post, PostRevision

logger = logging.getLogger(__name__)


class RevisionRecorder:
    """Фиксация состояния поста перед правкой title/content"""

    def __init__(self, repository: PostRevisionRepository):
        self.repository = repository

    async def record(self, before: Post, author_id: uuid.UUID, timestamp: datetime) -> PostRevision:
        """Вставка ревизии до применения новых значений.

        `before` должен быть прочитан в той же транзакции, что и правка,
        иначе снимок может не совпасть с тем, что перезаписывается.
        """
        revision = PostRevision.capture(before, author_id, timestamp)
        saved = await self.repository.add(revision)
        logger.debug(f"Recorded revision {saved.id} for post {before.id}")
        return saved
