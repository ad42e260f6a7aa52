from app.domains.posts.entities import Post, PostRevision, PostStatus
from app.domains.posts.exceptions import (
    PostError, ValidationError, InvalidTime, NotFound, Forbidden,
    InvalidState, SlugConflict, Transient
)
from app.domains.posts.schemas import (
    PostCreate, PostUpdate, PostSchedule, PostResponse,
    Pagination, PostListResponse, RevisionResponse
)

__all__ = [
    "Post", "PostRevision", "PostStatus",
    "PostError", "ValidationError", "InvalidTime", "NotFound", "Forbidden",
    "InvalidState", "SlugConflict", "Transient",
    "PostCreate", "PostUpdate", "PostSchedule", "PostResponse",
    "Pagination", "PostListResponse", "RevisionResponse"
]
