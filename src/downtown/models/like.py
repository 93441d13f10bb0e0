"""Models capturing likes on users and posts."""

from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base


class UserLike(Base):
    """Like issued by one user to another."""

    __tablename__ = "user_like"
    __table_args__ = (UniqueConstraint("issuer_id", "target_id", name="uq_user_like_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issuer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )


class PostLike(Base):
    __tablename__ = "post_like"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_post_like_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
