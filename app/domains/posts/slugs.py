import re
import unicodedata
import uuid
from datetime import datetime
from typing import Optional

from app.db.repositories.post_repository import PostRepository

FALLBACK_SLUG = "post"

# Основа slug плюс суффикс -N или -<ms> укладывается в String(600)
SLUG_BASE_MAX_LENGTH = 500

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Нормализация заголовка в URL-безопасную основу slug"""
    text = unicodedata.normalize("NFKD", title or "")
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = _NON_ALNUM.sub("-", text).strip("-")
    text = text[:SLUG_BASE_MAX_LENGTH].rstrip("-")
    return text or FALLBACK_SLUG


async def unique_slug(repository: PostRepository, title: str) -> str:
    """Slug для нового поста: основа, затем основа-1, основа-2, ...

    Проверка выполняется в транзакции вставки; гонку двух одновременных
    вставок окончательно разрешает уникальный индекс по slug.
    """
    base = slugify(title)
    slug = base
    counter = 0
    while await repository.slug_taken(slug):
        counter += 1
        slug = f"{base}-{counter}"
    return slug


async def slug_for_new_title(
    repository: PostRepository,
    post_id: uuid.UUID,
    current_slug: Optional[str],
    title: str,
    now: datetime
) -> str:
    """Slug после смены заголовка.

    При коллизии с другим постом добавляется метка времени в миллисекундах,
    а не счетчик: путь правки не должен перебирать значения под нагрузкой.
    """
    base = slugify(title)
    if base == current_slug:
        return base
    if await repository.slug_taken(base, exclude_id=post_id):
        return f"{base}-{int(now.timestamp() * 1000)}"
    return base
