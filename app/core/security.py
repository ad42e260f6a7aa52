from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import uuid

from jose import JWTError, jwt

from app.core.config import settings

ROLE_AUTHOR = "author"
ROLE_READER = "reader"


class Principal:
    """Аутентифицированный субъект запроса: (principal_id, role)"""

    def __init__(self, principal_id: uuid.UUID, role: str):
        self.id = principal_id
        self.role = role

    @property
    def is_author(self) -> bool:
        return self.role == ROLE_AUTHOR

    def __eq__(self, other) -> bool:
        if not isinstance(other, Principal):
            return False
        return self.id == other.id and self.role == other.role

    def __repr__(self) -> str:
        return f"Principal(id={self.id}, role={self.role})"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Создание JWT токена доступа"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=7)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Проверка JWT токена и извлечение данных"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def principal_from_token(token: str) -> Optional[Principal]:
    """Извлечение пары (principal_id, role) из токена; None если токен недействителен"""
    payload = verify_token(token)
    if not payload:
        return None

    try:
        principal_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None

    role = payload.get("role")
    if not role:
        return None

    return Principal(principal_id, role)
