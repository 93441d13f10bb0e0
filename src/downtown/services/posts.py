"""Posts, their images and the town feed.

Images are uploaded before the rows referencing them are written. When the
write fails the fresh uploads are deleted again; objects that belonged to
an edited or deleted post are removed only after the commit succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from downtown.core.errors import AppError, InvalidRequest, PostNotFound
from downtown.core.settings import settings
from downtown.db.session import atomic
from downtown.models import AgeRange, Post, PostBlock, PostImage, PostLike, PostType, User
from downtown.services import comments, likes, visibility
from downtown.services.storage import POST_IMAGE_PREFIX, Storage, discard, random_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostDraft:
    """Editable content of a post.

    Gathering posts must carry an age range, a capacity and a place; every
    other kind must carry none of them.
    """

    post_type: PostType
    content: str
    age_range: AgeRange | None = None
    capacity: int | None = None
    place: str | None = None

    def validate(self) -> None:
        if not self.content.strip():
            raise InvalidRequest("content must not be empty")
        gathering_fields = (self.age_range, self.capacity, self.place)
        if self.post_type is PostType.GATHERING:
            if any(value is None for value in gathering_fields):
                raise InvalidRequest("gathering posts need age_range, capacity and place")
            if self.capacity is not None and self.capacity < 1:
                raise InvalidRequest("capacity must be positive")
        elif any(value is not None for value in gathering_fields):
            raise InvalidRequest("only gathering posts take age_range, capacity or place")


@dataclass(frozen=True)
class PostView:
    post: Post
    image_urls: list[str]
    like_count: int
    comment_count: int
    liked: bool


def _upload(storage: Storage, image_paths: Sequence[str]) -> list[tuple[str, str]]:
    uploaded: list[tuple[str, str]] = []
    try:
        for path in image_paths:
            key = random_key(POST_IMAGE_PREFIX)
            uploaded.append((key, storage.push_file(path, key)))
    except AppError:
        discard(storage, [key for key, _ in uploaded])
        raise
    return uploaded


def _attach(db: Session, post_id: int, uploaded: list[tuple[str, str]]) -> None:
    db.add_all(PostImage(post_id=post_id, object_key=key, image_url=url) for key, url in uploaded)


def images(db: Session, post_id: int) -> list[PostImage]:
    return list(
        db.scalars(select(PostImage).where(PostImage.post_id == post_id).order_by(PostImage.id))
    )


def create(
    db: Session,
    author: User,
    draft: PostDraft,
    image_paths: Sequence[str],
    storage: Storage,
) -> Post:
    """Publish a post to the author's town."""
    draft.validate()
    uploaded = _upload(storage, image_paths)
    try:
        with atomic(db):
            post = Post(
                author_id=author.id,
                post_type=int(draft.post_type),
                town_id=author.town_id,
                content=draft.content,
                age_range=int(draft.age_range) if draft.age_range is not None else None,
                capacity=draft.capacity,
                place=draft.place,
            )
            db.add(post)
            db.flush()
            _attach(db, post.id, uploaded)
    except AppError:
        discard(storage, [key for key, _ in uploaded])
        raise

    logger.info("User %d created post %d with %d images", author.id, post.id, len(uploaded))
    return post


def _owned(db: Session, post_id: int, user: User) -> Post:
    post = db.get(Post, post_id)
    if post is None or post.author_id != user.id:
        raise PostNotFound(post_id)
    return post


def edit(
    db: Session,
    user: User,
    post_id: int,
    draft: PostDraft,
    image_paths: Sequence[str],
    storage: Storage,
) -> Post:
    """Replace the content and images of a post owned by ``user``."""
    draft.validate()
    post = _owned(db, post_id, user)
    stale_keys = [image.object_key for image in images(db, post_id)]

    uploaded = _upload(storage, image_paths)
    try:
        with atomic(db):
            post.post_type = int(draft.post_type)
            post.content = draft.content
            post.age_range = int(draft.age_range) if draft.age_range is not None else None
            post.capacity = draft.capacity
            post.place = draft.place
            db.execute(delete(PostImage).where(PostImage.post_id == post_id))
            _attach(db, post_id, uploaded)
    except AppError:
        discard(storage, [key for key, _ in uploaded])
        raise

    discard(storage, stale_keys)
    return post


def remove(db: Session, user: User, post_id: int, storage: Storage) -> None:
    """Delete a post owned by ``user`` with everything hanging off it."""
    post = _owned(db, post_id, user)
    keys = [image.object_key for image in images(db, post_id)]

    with atomic(db):
        comments.purge_post(db, post_id)
        db.execute(delete(PostLike).where(PostLike.post_id == post_id))
        db.execute(delete(PostBlock).where(PostBlock.post_id == post_id))
        db.execute(delete(PostImage).where(PostImage.post_id == post_id))
        db.delete(post)

    discard(storage, keys)
    logger.info("User %d deleted post %d", user.id, post_id)


def from_id(db: Session, post_id: int, viewer_id: int) -> Post:
    """Fetch a post the viewer may see.

    Raises:
        PostNotFound: The post is absent, its author withdrew, or the viewer
            blocked the post or its author.
        Blocked: The author has blocked the viewer.
    """
    post = db.get(Post, post_id)
    if post is None:
        raise PostNotFound(post_id)
    visibility.ensure_not_blocked_by(db, post.author_id, viewer_id)

    visible = db.scalar(
        select(Post.id).where(Post.id == post_id, *visibility.post_filters(viewer_id))
    )
    if visible is None:
        raise PostNotFound(post_id)
    return post


def town_feed(
    db: Session,
    viewer: User,
    *,
    last_id: int | None = None,
    limit: int | None = None,
) -> list[Post]:
    """Newest posts in the viewer's town, paged by the last id seen."""
    size = min(limit or settings.post_page_size, settings.post_page_size_max)
    stmt = select(Post).where(Post.town_id == viewer.town_id, *visibility.post_filters(viewer.id))
    if last_id is not None:
        stmt = stmt.where(Post.id < last_id)
    return list(db.scalars(stmt.order_by(Post.id.desc()).limit(size)))


def view(db: Session, post: Post, viewer_id: int) -> PostView:
    return PostView(
        post=post,
        image_urls=[image.image_url for image in images(db, post.id)],
        like_count=likes.post_like_count(db, post.id),
        comment_count=comments.count_for_post(db, post.id, viewer_id),
        liked=likes.has_liked_post(db, viewer_id, post.id),
    )
