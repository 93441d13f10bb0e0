"""Comment endpoints: threaded replies, deletion and comment blocks."""

from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy.orm import Session

from downtown.api.v1.dependencies import CurrentUserDep, SessionDep
from downtown.core.errors import CommentNotFound
from downtown.models import Comment
from downtown.schemas.comment import CommentCreate, CommentResponse, CommentThreadResponse
from downtown.services import comments, posts, visibility

router = APIRouter(prefix="/post/{post_id}/comment", tags=["comments"])


def _comment_on(db: Session, post_id: int, comment_id: int) -> Comment:
    comment = comments.from_id_ignore_block(db, comment_id)
    if comment.post_id != post_id:
        raise CommentNotFound(comment_id)
    return comment


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: int,
    payload: CommentCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> CommentResponse:
    """Comment on a post, or reply to one of its comments."""
    posts.from_id(db, post_id, current_user.id)
    if payload.parent_comment_id is not None:
        comments.from_id(db, payload.parent_comment_id, current_user.id)

    comment = comments.add(
        db,
        post_id,
        current_user.id,
        payload.content,
        parent_comment_id=payload.parent_comment_id,
    )
    return CommentResponse.from_comment(comment, payload.parent_comment_id)


@router.get("", response_model=list[CommentResponse])
def list_comments(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> list[CommentResponse]:
    """List visible comments oldest first, each with the edge to its parent."""
    posts.from_id(db, post_id, current_user.id)
    nodes = comments.from_post_id(db, post_id, current_user.id)
    return [CommentResponse.from_node(node) for node in nodes]


@router.get("/tree", response_model=list[CommentThreadResponse])
def comment_tree(
    post_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> list[CommentThreadResponse]:
    """List visible comments nested under the comments they reply to."""
    posts.from_id(db, post_id, current_user.id)
    threads = comments.build_threads(comments.from_post_id(db, post_id, current_user.id))
    return [CommentThreadResponse.from_thread(thread) for thread in threads]


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    post_id: int,
    comment_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> None:
    """Delete one of the caller's comments together with all replies to it."""
    comments.remove(db, post_id, comment_id, current_user)


@router.post("/{comment_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def block_comment(
    post_id: int,
    comment_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> None:
    visibility.block_comment(db, current_user, _comment_on(db, post_id, comment_id))


@router.delete("/{comment_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def unblock_comment(
    post_id: int,
    comment_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> None:
    visibility.unblock_comment(db, current_user, _comment_on(db, post_id, comment_id))
