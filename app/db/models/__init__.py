from app.db.models.post import Post, PostRevision

__all__ = [
    "Post",
    "PostRevision"
]
