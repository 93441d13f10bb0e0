"""Likes on users and posts.

Liking twice or removing a like that does not exist are both no-ops.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, exists, func, select
from sqlalchemy.orm import Session

from downtown.core.errors import InvalidRequest, UserNotFound
from downtown.db.session import atomic
from downtown.models import Post, PostLike, User, UserLike

logger = logging.getLogger(__name__)


def like_post(db: Session, user: User, post: Post) -> None:
    if has_liked_post(db, user.id, post.id):
        return
    with atomic(db):
        db.add(PostLike(user_id=user.id, post_id=post.id))
    logger.debug("User %d liked post %d", user.id, post.id)


def unlike_post(db: Session, user: User, post: Post) -> None:
    with atomic(db):
        db.execute(
            delete(PostLike).where(PostLike.user_id == user.id, PostLike.post_id == post.id)
        )


def has_liked_post(db: Session, user_id: int, post_id: int) -> bool:
    return bool(
        db.scalar(
            select(exists().where(PostLike.user_id == user_id, PostLike.post_id == post_id))
        )
    )


def post_like_count(db: Session, post_id: int) -> int:
    return db.scalar(select(func.count(PostLike.id)).where(PostLike.post_id == post_id)) or 0


def like_user(db: Session, user: User, target_id: int) -> None:
    if target_id == user.id:
        raise InvalidRequest("cannot like yourself")
    target = db.get(User, target_id)
    if target is None or target.deleted:
        raise UserNotFound(target_id)

    already = db.scalar(
        select(exists().where(UserLike.issuer_id == user.id, UserLike.target_id == target_id))
    )
    if already:
        return
    with atomic(db):
        db.add(UserLike(issuer_id=user.id, target_id=target_id))
    logger.debug("User %d liked user %d", user.id, target_id)


def unlike_user(db: Session, user: User, target_id: int) -> None:
    with atomic(db):
        db.execute(
            delete(UserLike).where(UserLike.issuer_id == user.id, UserLike.target_id == target_id)
        )


def user_like_count(db: Session, user_id: int) -> int:
    return db.scalar(select(func.count(UserLike.id)).where(UserLike.target_id == user_id)) or 0
