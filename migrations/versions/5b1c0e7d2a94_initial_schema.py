"""initial schema

Revision ID: 5b1c0e7d2a94
Revises:
Create Date: 2026-10-18 09:12:40.518233

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1c0e7d2a94"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create towns, users, posts, comments, likes, blocks and phone codes."""
    op.create_table(
        "town",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("address", sa.String(length=256), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("address"),
    )
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("phone", sa.String(length=13), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("sex", sa.String(length=32), nullable=False),
        sa.Column("town_id", sa.Integer(), nullable=False),
        sa.Column("verification_type", sa.String(length=32), nullable=False),
        sa.Column("verification_photo_url", sa.String(length=4096), nullable=False),
        sa.Column("verification_status", sa.String(length=32), nullable=False),
        sa.Column("picture", sa.String(length=4096), nullable=True),
        sa.Column("bio", sa.String(length=512), nullable=True),
        sa.Column("refresh_token", sa.String(length=4096), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["town_id"], ["town.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phone"),
    )
    op.create_table(
        "phone_authorization",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("phone", sa.String(length=13), nullable=False),
        sa.Column("code", sa.String(length=6), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phone"),
    )
    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("post_type", sa.Integer(), nullable=False),
        sa.Column("town_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("age_range", sa.Integer(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("place", sa.String(length=128), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["author_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["town_id"], ["town.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_town_id_id", "post", ["town_id", "id"])
    op.create_table(
        "post_image",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("object_key", sa.String(length=1024), nullable=False),
        sa.Column("image_url", sa.String(length=4096), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_image_post_id", "post_image", ["post_id"])
    op.create_table(
        "post_comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.String(length=5120), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["user.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_comment_post_id", "post_comment", ["post_id"])
    op.create_table(
        "post_comment_closure",
        sa.Column("parent_comment_id", sa.Integer(), nullable=False),
        sa.Column("child_comment_id", sa.Integer(), nullable=False),
        sa.Column("depth", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["parent_comment_id"], ["post_comment.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["child_comment_id"], ["post_comment.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("parent_comment_id", "child_comment_id"),
    )
    op.create_index(
        "ix_post_comment_closure_child",
        "post_comment_closure",
        ["child_comment_id", "depth"],
    )

    for table, owner, target, target_table in (
        ("user_block", "user_id", "target_id", "user"),
        ("post_block", "user_id", "post_id", "post"),
        ("post_comment_block", "user_id", "comment_id", "post_comment"),
        ("user_like", "issuer_id", "target_id", "user"),
        ("post_like", "user_id", "post_id", "post"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column(owner, sa.Integer(), nullable=False),
            sa.Column(target, sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint([owner], ["user.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint([target], [f"{target_table}.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(owner, target, name=f"uq_{table}_pair"),
        )

    op.create_index("ix_user_block_user_id", "user_block", ["user_id"])
    op.create_index("ix_post_block_user_id", "post_block", ["user_id"])
    op.create_index("ix_post_comment_block_user_id", "post_comment_block", ["user_id"])
    op.create_index("ix_user_like_target_id", "user_like", ["target_id"])
    op.create_index("ix_post_like_post_id", "post_like", ["post_id"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    for table in (
        "post_like",
        "user_like",
        "post_comment_block",
        "post_block",
        "user_block",
        "post_comment_closure",
        "post_comment",
        "post_image",
        "post",
        "phone_authorization",
        "user",
        "town",
    ):
        op.drop_table(table)
