from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import Principal, principal_from_token
from app.domains.posts.exceptions import Forbidden

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Principal]:
    if credentials is None:
        return None
    return principal_from_token(credentials.credentials)


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    """Зависимость для получения текущего субъекта"""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def require_author(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Зависимость: только роль author может управлять постами"""
    if not principal.is_author:
        raise Forbidden("Author role required")
    return principal
