"""
Curio Backend — Board Models
=============================

What:  ORM models for `boards`, `board_members` and `board_invites`.

Table Design:
    - slug: globally unique, used in public share URLs (/board/<slug>)
    - is_inbox: marks the one board per user that receives quick saves from
      the browser extension
    - deleted_at: soft delete; NULL means live. Deleting a board stamps its
      live cards with the same timestamp so restore can bring back exactly
      that set.
    - atelier_*: the board-level half of the Atelier layout snapshot. Groups
      and connectors are stored as opaque JSON arrays of sanitized objects.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from curio.database import Base
from curio.models.user import new_id, utcnow

# JSON everywhere, JSONB on PostgreSQL
JsonArray = JSON().with_variant(JSONB(), "postgresql")


class Board(Base):
    """A named, owned collection of cards."""

    __tablename__ = "boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    creator_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    is_inbox: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # ── Atelier ───────────────────────────────────────────────────────────
    atelier_view_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    atelier_groups: Mapped[List[Any]] = mapped_column(JsonArray, nullable=False, default=list)
    atelier_connectors: Mapped[List[Any]] = mapped_column(
        JsonArray, nullable=False, default=list
    )

    __table_args__ = (
        Index("idx_boards_creator_created_at", "creator_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Board(id={self.id}, slug='{self.slug}', deleted_at='{self.deleted_at}')>"


class BoardMember(Base):
    """Read access to a board for a non-owner, granted by redeeming an invite."""

    __tablename__ = "board_members"

    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


class BoardInvite(Base):
    """A shareable token that turns its redeemer into a board member."""

    __tablename__ = "board_invites"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    redeemed_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
