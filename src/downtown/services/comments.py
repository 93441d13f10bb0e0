"""Threaded comments stored with a closure table.

Every comment owns a reflexive edge ``(c, c, 0)``. A reply ``r`` to ``p``
copies each edge ``(a, p, d)`` as ``(a, r, d + 1)``, so the ancestors of ``r``
are exactly the ancestors of ``p`` plus ``r`` itself, and the direct parent
is the single depth-1 edge. Deleting a comment removes its whole subtree:
the comment rows, every closure edge touching them and the blocks that
reference them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import Integer, and_, func, insert, literal, or_, select, update
from sqlalchemy import delete as delete_rows
from sqlalchemy.orm import Session, aliased

from downtown.core.errors import CommentNotFound, InvalidRequest, PostNotFound
from downtown.db.session import atomic
from downtown.models import Comment, CommentBlock, CommentClosure, Post, User
from downtown.services import visibility

logger = logging.getLogger(__name__)

CLOSURE_COLUMNS = ("parent_comment_id", "child_comment_id", "depth")


@dataclass(frozen=True)
class CommentNode:
    """A visible comment and the edge linking it to its direct parent.

    Roots carry their reflexive edge, so ``parent_comment_id`` equals
    ``child_comment_id``.
    """

    comment: Comment
    parent_comment_id: int
    child_comment_id: int

    @property
    def is_root(self) -> bool:
        return self.parent_comment_id == self.child_comment_id


@dataclass
class CommentThread:
    comment: Comment
    parent_comment_id: int | None = None
    replies: list[CommentThread] = field(default_factory=list)


def _lock(db: Session, comment_id: int) -> Comment | None:
    return db.scalars(
        select(Comment).where(Comment.id == comment_id).with_for_update()
    ).first()


def _lock_ancestors(db: Session, comment_id: int) -> dict[int, Comment]:
    """Lock ``comment_id`` and every comment above it, keyed by id.

    A comment whose closure edges are gone yields an empty mapping.
    """
    chain = select(CommentClosure.parent_comment_id).where(
        CommentClosure.child_comment_id == comment_id
    )
    locked = db.scalars(
        select(Comment).where(Comment.id.in_(chain)).order_by(Comment.id).with_for_update()
    )
    return {comment.id: comment for comment in locked}


def add(
    db: Session,
    post_id: int,
    author_id: int,
    content: str,
    parent_comment_id: int | None = None,
) -> Comment:
    """Create a comment on ``post_id``, optionally replying to another comment.

    Args:
        db: Database session.
        post_id: Post the comment belongs to.
        author_id: Author of the comment.
        content: Comment body.
        parent_comment_id: Comment being replied to; omitted for a root comment.

    Returns:
        The committed comment.

    Raises:
        PostNotFound: The post does not exist.
        CommentNotFound: The parent comment does not exist.
        InvalidRequest: The parent comment belongs to a different post.
        DatabaseError: The store failed; nothing was written.
    """
    with atomic(db):
        if db.get(Post, post_id) is None:
            raise PostNotFound(post_id)

        if parent_comment_id is not None:
            # A delete of any ancestor waits on these locks, and a delete
            # that already ran leaves the parent without edges.
            parent = _lock_ancestors(db, parent_comment_id).get(parent_comment_id)
            if parent is None:
                raise CommentNotFound(parent_comment_id)
            if parent.post_id != post_id:
                raise InvalidRequest("parent comment belongs to another post")

        comment = Comment(post_id=post_id, author_id=author_id, content=content)
        db.add(comment)
        db.flush()

        if parent_comment_id is not None:
            db.execute(
                insert(CommentClosure).from_select(
                    CLOSURE_COLUMNS,
                    select(
                        CommentClosure.parent_comment_id,
                        literal(comment.id, Integer),
                        CommentClosure.depth + 1,
                    ).where(CommentClosure.child_comment_id == parent_comment_id),
                )
            )
        db.execute(
            insert(CommentClosure).values(
                parent_comment_id=comment.id,
                child_comment_id=comment.id,
                depth=0,
            )
        )

    logger.debug(
        "Added comment %d on post %d (parent=%s)", comment.id, post_id, parent_comment_id
    )
    return comment


def subtree_ids(db: Session, comment_id: int) -> set[int]:
    """Ids of ``comment_id`` and every reply beneath it."""
    return set(
        db.scalars(
            select(CommentClosure.child_comment_id).where(
                CommentClosure.parent_comment_id == comment_id
            )
        )
    )


def ancestor_ids(db: Session, comment_id: int) -> set[int]:
    """Ids of ``comment_id`` and every comment above it."""
    return set(
        db.scalars(
            select(CommentClosure.parent_comment_id).where(
                CommentClosure.child_comment_id == comment_id
            )
        )
    )


def delete(db: Session, comment_id: int) -> set[int]:
    """Delete ``comment_id`` together with all of its replies.

    Returns:
        The ids of the removed comments.
    """
    with atomic(db):
        if _lock(db, comment_id) is None:
            raise CommentNotFound(comment_id)

        seen = subtree_ids(db, comment_id)
        db.scalars(
            select(Comment.id).where(Comment.id.in_(seen)).order_by(Comment.id).with_for_update()
        ).all()
        # Replies committed between the scan and the locks are picked up here.
        removed = subtree_ids(db, comment_id) | {comment_id}
        _purge(db, removed)

    logger.info("Deleted comment %d and %d replies", comment_id, len(removed) - 1)
    return removed


def _purge(db: Session, comment_ids: Iterable[int]) -> None:
    ids = list(comment_ids)
    if not ids:
        return
    db.execute(
        delete_rows(CommentClosure).where(
            or_(
                CommentClosure.parent_comment_id.in_(ids),
                CommentClosure.child_comment_id.in_(ids),
            )
        )
    )
    db.execute(delete_rows(CommentBlock).where(CommentBlock.comment_id.in_(ids)))
    db.execute(delete_rows(Comment).where(Comment.id.in_(ids)))


def purge_post(db: Session, post_id: int) -> None:
    """Remove every comment of ``post_id``; the caller commits."""
    _purge(db, db.scalars(select(Comment.id).where(Comment.post_id == post_id)))


def remove(db: Session, post_id: int, comment_id: int, user: User) -> set[int]:
    """Delete a comment on behalf of its author.

    Comments of other users are reported as missing.
    """
    comment = from_id_ignore_block(db, comment_id)
    if comment.post_id != post_id:
        raise InvalidRequest("comment does not belong to this post")
    if comment.author_id != user.id:
        raise CommentNotFound(comment_id)
    return delete(db, comment_id)


def from_post_id(db: Session, post_id: int, viewer_id: int) -> list[CommentNode]:
    """Return the comments of ``post_id`` visible to the viewer, oldest first."""
    parent_edge = aliased(CommentClosure)
    stmt = (
        select(Comment, func.coalesce(parent_edge.parent_comment_id, Comment.id))
        .outerjoin(
            parent_edge,
            and_(parent_edge.child_comment_id == Comment.id, parent_edge.depth == 1),
        )
        .where(Comment.post_id == post_id, *visibility.comment_filters(viewer_id))
        .order_by(Comment.created_at, Comment.id)
    )
    return [
        CommentNode(comment=comment, parent_comment_id=parent_id, child_comment_id=comment.id)
        for comment, parent_id in db.execute(stmt)
    ]


def build_threads(nodes: Sequence[CommentNode]) -> list[CommentThread]:
    """Nest a flat node list into reply trees, keeping the input order."""
    threads = {
        node.child_comment_id: CommentThread(
            comment=node.comment,
            parent_comment_id=None if node.is_root else node.parent_comment_id,
        )
        for node in nodes
    }
    roots: list[CommentThread] = []
    for node in nodes:
        thread = threads[node.child_comment_id]
        if node.is_root:
            roots.append(thread)
            continue
        parent = threads.get(node.parent_comment_id)
        if parent is not None:
            parent.replies.append(thread)
    return roots


def from_id_ignore_block(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFound(comment_id)
    return comment


def from_id(db: Session, comment_id: int, viewer_id: int) -> Comment:
    """Fetch a comment the viewer may see.

    Raises:
        CommentNotFound: The comment is absent or hidden by the viewer's blocks.
        Blocked: The author has blocked the viewer.
    """
    comment = from_id_ignore_block(db, comment_id)
    visibility.ensure_not_blocked_by(db, comment.author_id, viewer_id)

    visible = db.scalar(
        select(Comment.id).where(Comment.id == comment_id, *visibility.comment_filters(viewer_id))
    )
    if visible is None:
        raise CommentNotFound(comment_id)
    return comment


def count_for_post(db: Session, post_id: int, viewer_id: int) -> int:
    """Number of comments on ``post_id`` the viewer can see."""
    return (
        db.scalar(
            select(func.count(Comment.id)).where(
                Comment.post_id == post_id, *visibility.comment_filters(viewer_id)
            )
        )
        or 0
    )


def withdraw_author(db: Session, user_id: int) -> None:
    """Detach a withdrawing user from their comments; the caller commits."""
    db.execute(
        update(Comment)
        .where(Comment.author_id == user_id)
        .values(author_id=None, deleted=True)
    )
