from datetime import datetime, timezone
from typing import Optional


class SystemClock:
    """Источник текущего времени (всегда UTC с tzinfo)"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Приведение времени к UTC; наивное время считается UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
