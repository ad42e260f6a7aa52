from app.api.http.health import router as health_router
from app.api.http.public import router as public_router
from app.api.http.posts import router as posts_router

__all__ = [
    "health_router",
    "public_router",
    "posts_router"
]
