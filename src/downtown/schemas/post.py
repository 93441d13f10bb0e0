"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel

from downtown.models import AgeRange, PostType
from downtown.services.posts import PostView


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: int
    post_type: PostType
    town_id: int
    content: str
    age_range: AgeRange | None
    capacity: int | None
    place: str | None
    images: list[str]
    like_count: int
    comment_count: int
    liked: bool
    created_at: datetime

    @classmethod
    def from_view(cls, view: PostView) -> "PostResponse":
        post = view.post
        return cls(
            id=post.id,
            author_id=post.author_id,
            post_type=post.kind,
            town_id=post.town_id,
            content=post.content,
            age_range=AgeRange(post.age_range) if post.age_range is not None else None,
            capacity=post.capacity,
            place=post.place,
            images=view.image_urls,
            like_count=view.like_count,
            comment_count=view.comment_count,
            liked=view.liked,
            created_at=post.created_at,
        )
