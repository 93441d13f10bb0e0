"""SQLAlchemy models for threaded comments.

Replies are stored in a closure table: for every comment ``c`` there is a
reflexive edge ``(c, c, 0)`` and, for every ancestor ``a`` of ``c``, an edge
``(a, c, depth)`` where ``depth`` is the distance between them. A whole
subtree or ancestor chain is therefore one indexed lookup away.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base
from downtown.db.time import utcnow


@dataclass(frozen=True)
class ActiveComment:
    author_id: int
    content: str


@dataclass(frozen=True)
class DeletedComment:
    """Comment whose author withdrew; its content is no longer shown."""


CommentState = ActiveComment | DeletedComment


class Comment(Base):
    """Comment on a post. Content is immutable once written."""

    __tablename__ = "post_comment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(String(5120), nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def state(self) -> CommentState:
        if self.deleted or self.author_id is None:
            return DeletedComment()
        return ActiveComment(author_id=self.author_id, content=self.content)


class CommentClosure(Base):
    """Reachability edge between an ancestor comment and a descendant."""

    __tablename__ = "post_comment_closure"
    __table_args__ = (
        Index("ix_post_comment_closure_child", "child_comment_id", "depth"),
    )

    parent_comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post_comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    child_comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post_comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
