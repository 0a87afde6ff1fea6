"""Create Curio schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Users and sessions, boards with their Atelier columns, memberships,
       invites and cards with their Atelier placement.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JsonArray = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("token", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _timestamp("created_at"),
        _timestamp("expires_at", nullable=True),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "boards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("creator_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(80), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_inbox", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("deleted_at", nullable=True),
        sa.Column("atelier_view_mode", sa.String(20), nullable=True),
        sa.Column("atelier_groups", JsonArray, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("atelier_connectors", JsonArray, nullable=False, server_default=sa.text("'[]'")),
    )
    op.create_index(
        "idx_boards_creator_created_at",
        "boards",
        ["creator_id", "created_at"],
    )

    op.create_table(
        "board_members",
        sa.Column("board_id", sa.String(36), sa.ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "board_invites",
        sa.Column("token", sa.String(64), primary_key=True),
        sa.Column("board_id", sa.String(36), sa.ForeignKey("boards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _timestamp("created_at"),
        _timestamp("expires_at", nullable=True),
        sa.Column("redeemed_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_board_invites_board_id", "board_invites", ["board_id"])

    op.create_table(
        "cards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("board_id", sa.String(36), sa.ForeignKey("boards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("creator_note", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("source_type", sa.String(20), nullable=False, server_default=sa.text("'web'")),
        sa.Column("youtube_video_id", sa.String(64), nullable=True),
        sa.Column("youtube_timestamp", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("deleted_at", nullable=True),
        sa.Column("atelier_x", sa.Float(), nullable=True),
        sa.Column("atelier_y", sa.Float(), nullable=True),
        sa.Column("atelier_z", sa.Integer(), nullable=True),
    )
    op.create_index(
        "idx_cards_board_created_at",
        "cards",
        ["board_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_cards_board_created_at", table_name="cards")
    op.drop_table("cards")
    op.drop_index("ix_board_invites_board_id", table_name="board_invites")
    op.drop_table("board_invites")
    op.drop_table("board_members")
    op.drop_index("idx_boards_creator_created_at", table_name="boards")
    op.drop_table("boards")
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("users")
