"""Models for per-user block lists.

Each relation is a set of ordered pairs; a pair hides the target from the
blocking user on read paths.
"""

from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base


class UserBlock(Base):
    __tablename__ = "user_block"
    __table_args__ = (UniqueConstraint("user_id", "target_id", name="uq_user_block_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )


class PostBlock(Base):
    __tablename__ = "post_block"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_post_block_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False
    )


class CommentBlock(Base):
    __tablename__ = "post_comment_block"
    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", name="uq_post_comment_block_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("post_comment.id", ondelete="CASCADE"), nullable=False
    )
