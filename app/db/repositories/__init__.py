from app.db.repositories.post_repository import PostRepository, PostRevisionRepository

__all__ = [
    "PostRepository",
    "PostRevisionRepository"
]
