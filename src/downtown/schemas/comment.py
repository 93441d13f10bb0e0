"""Comment-related Pydantic schemas.

Comments of withdrawn authors are rendered without author or content.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from downtown.models import ActiveComment, Comment
from downtown.services.comments import CommentNode, CommentThread


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5120)
    parent_comment_id: int | None = Field(None, description="Comment being replied to")


class CommentBody(BaseModel):
    id: int
    post_id: int
    author_id: int | None
    content: str | None
    deleted: bool
    created_at: datetime

    @staticmethod
    def fields_of(comment: Comment) -> dict[str, object]:
        state = comment.state
        if isinstance(state, ActiveComment):
            author_id, content, deleted = state.author_id, state.content, False
        else:
            author_id, content, deleted = None, None, True
        return {
            "id": comment.id,
            "post_id": comment.post_id,
            "author_id": author_id,
            "content": content,
            "deleted": deleted,
            "created_at": comment.created_at,
        }


class CommentResponse(CommentBody):
    """A comment with the edge linking it to its direct parent.

    Root comments carry their own id as ``parent_comment_id``.
    """

    parent_comment_id: int
    child_comment_id: int

    @classmethod
    def from_node(cls, node: CommentNode) -> CommentResponse:
        return cls(
            **cls.fields_of(node.comment),
            parent_comment_id=node.parent_comment_id,
            child_comment_id=node.child_comment_id,
        )

    @classmethod
    def from_comment(cls, comment: Comment, parent_comment_id: int | None) -> CommentResponse:
        return cls(
            **cls.fields_of(comment),
            parent_comment_id=parent_comment_id if parent_comment_id is not None else comment.id,
            child_comment_id=comment.id,
        )


class CommentThreadResponse(CommentBody):
    parent_comment_id: int | None
    replies: list[CommentThreadResponse] = Field(default_factory=list)

    @classmethod
    def from_thread(cls, thread: CommentThread) -> CommentThreadResponse:
        return cls(
            **cls.fields_of(thread.comment),
            parent_comment_id=thread.parent_comment_id,
            replies=[cls.from_thread(reply) for reply in thread.replies],
        )
