from fastapi import APIRouter

from app.api.http import health_router, public_router, posts_router

api_router = APIRouter()
# Публичные роуты раньше авторских, чтобы /posts/published не попал в /posts/{post_id}
api_router.include_router(health_router)
api_router.include_router(public_router)
api_router.include_router(posts_router)
