"""SQLAlchemy models for posts and their images."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base
from downtown.db.time import utcnow


class PostType(enum.IntEnum):
    DAILY = 1
    QUESTION = 2
    GATHERING = 3


class AgeRange(enum.IntEnum):
    """Target age bracket of a gathering post."""

    ANY = 1
    TEENS = 2
    TWENTIES = 3
    THIRTIES = 4
    FORTIES = 5
    FIFTIES_AND_OVER = 6


class Post(Base):
    """Content published by a user to their town."""

    __tablename__ = "post"
    __table_args__ = (Index("ix_post_town_id_id", "town_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    post_type: Mapped[int] = mapped_column(Integer, nullable=False)
    town_id: Mapped[int] = mapped_column(Integer, ForeignKey("town.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Gathering-only fields; NULL for every other post type.
    age_range: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    place: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def kind(self) -> PostType:
        return PostType(self.post_type)


class PostImage(Base):
    """Image uploaded to object storage and attached to a post."""

    __tablename__ = "post_image"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    object_key: Mapped[str] = mapped_column(String(1024), nullable=False)
    image_url: Mapped[str] = mapped_column(String(4096), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
