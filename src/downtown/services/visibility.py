"""Block lists and the read-path filters derived from them.

A viewer never sees posts or comments they blocked, nor content written by
users they blocked or by users who blocked them. Comment blocks hide the
whole reply subtree below the blocked comment. Fetching content written by
someone who blocked the viewer directly fails with :class:`Blocked`.
"""

from __future__ import annotations

import logging

from sqlalchemy import ColumnElement, Select, delete, exists, or_, select
from sqlalchemy.orm import Session

from downtown.core.errors import Blocked, InvalidRequest, PostNotFound, UserNotFound
from downtown.db.session import atomic
from downtown.models import (
    Comment,
    CommentBlock,
    CommentClosure,
    Post,
    PostBlock,
    User,
    UserBlock,
)

logger = logging.getLogger(__name__)


def blocked_user_ids(viewer_id: int) -> Select[tuple[int]]:
    """Users the viewer has blocked."""
    return select(UserBlock.target_id).where(UserBlock.user_id == viewer_id)


def blocking_user_ids(viewer_id: int) -> Select[tuple[int]]:
    """Users who have blocked the viewer."""
    return select(UserBlock.user_id).where(UserBlock.target_id == viewer_id)


def withdrawn_user_ids() -> Select[tuple[int]]:
    return select(User.id).where(User.deleted.is_(True))


def post_filters(viewer_id: int) -> list[ColumnElement[bool]]:
    """Conditions on :class:`Post` keeping only posts the viewer may see."""
    return [
        Post.author_id.not_in(blocked_user_ids(viewer_id)),
        Post.author_id.not_in(blocking_user_ids(viewer_id)),
        Post.author_id.not_in(withdrawn_user_ids()),
        Post.id.not_in(select(PostBlock.post_id).where(PostBlock.user_id == viewer_id)),
    ]


def hidden_comment_ids(viewer_id: int) -> Select[tuple[int]]:
    """Comments hidden from the viewer, including every reply beneath them."""
    hidden_roots = select(Comment.id).where(
        or_(
            Comment.id.in_(
                select(CommentBlock.comment_id).where(CommentBlock.user_id == viewer_id)
            ),
            Comment.author_id.in_(blocked_user_ids(viewer_id)),
            Comment.author_id.in_(blocking_user_ids(viewer_id)),
        )
    )
    return select(CommentClosure.child_comment_id).where(
        CommentClosure.parent_comment_id.in_(hidden_roots)
    )


def comment_filters(viewer_id: int) -> list[ColumnElement[bool]]:
    return [Comment.id.not_in(hidden_comment_ids(viewer_id))]


def has_blocked(db: Session, user_id: int, target_id: int) -> bool:
    """Return whether ``user_id`` has blocked ``target_id``."""
    return bool(
        db.scalar(
            select(
                exists().where(UserBlock.user_id == user_id, UserBlock.target_id == target_id)
            )
        )
    )


def ensure_not_blocked_by(db: Session, author_id: int | None, viewer_id: int) -> None:
    """Raise :class:`Blocked` when ``author_id`` has blocked the viewer."""
    if author_id is None or author_id == viewer_id:
        return
    if has_blocked(db, author_id, viewer_id):
        raise Blocked()


def block_user(db: Session, user: User, target_id: int) -> None:
    if target_id == user.id:
        raise InvalidRequest("cannot block yourself")
    target = db.get(User, target_id)
    if target is None or target.deleted:
        raise UserNotFound(target_id)

    if has_blocked(db, user.id, target_id):
        return
    with atomic(db):
        db.add(UserBlock(user_id=user.id, target_id=target_id))
    logger.info("User %d blocked user %d", user.id, target_id)


def unblock_user(db: Session, user: User, target_id: int) -> None:
    with atomic(db):
        db.execute(
            delete(UserBlock).where(
                UserBlock.user_id == user.id, UserBlock.target_id == target_id
            )
        )


def block_post(db: Session, user: User, post_id: int) -> None:
    post = db.get(Post, post_id)
    if post is None:
        raise PostNotFound(post_id)

    already = db.scalar(
        select(exists().where(PostBlock.user_id == user.id, PostBlock.post_id == post_id))
    )
    if already:
        return
    with atomic(db):
        db.add(PostBlock(user_id=user.id, post_id=post_id))
    logger.info("User %d blocked post %d", user.id, post_id)


def unblock_post(db: Session, user: User, post_id: int) -> None:
    with atomic(db):
        db.execute(
            delete(PostBlock).where(PostBlock.user_id == user.id, PostBlock.post_id == post_id)
        )


def block_comment(db: Session, user: User, comment: Comment) -> None:
    already = db.scalar(
        select(
            exists().where(
                CommentBlock.user_id == user.id, CommentBlock.comment_id == comment.id
            )
        )
    )
    if already:
        return
    with atomic(db):
        db.add(CommentBlock(user_id=user.id, comment_id=comment.id))
    logger.info("User %d blocked comment %d", user.id, comment.id)


def unblock_comment(db: Session, user: User, comment: Comment) -> None:
    with atomic(db):
        db.execute(
            delete(CommentBlock).where(
                CommentBlock.user_id == user.id, CommentBlock.comment_id == comment.id
            )
        )
