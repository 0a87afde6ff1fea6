"""
Curio Backend — Card Model
===========================

What:  ORM model for the `cards` table: one saved link on one board.

Placement columns (atelier_x / atelier_y / atelier_z) are NULL until the card
is first moved on the Atelier canvas; until then the canvas places it on a
deterministic grid. Soft-deleting a card keeps its placement.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from curio.database import Base
from curio.models.user import new_id, utcnow

SOURCE_WEB = "web"
SOURCE_YOUTUBE = "youtube"


class Card(Base):
    """A saved URL with optional title, note and thumbnail."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    board_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    creator_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 'web' | 'youtube'
    source_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SOURCE_WEB, server_default=text("'web'")
    )
    youtube_video_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    youtube_timestamp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # ── Atelier placement ─────────────────────────────────────────────────
    atelier_x: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    atelier_y: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    atelier_z: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_cards_board_created_at", "board_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Card(id={self.id}, board_id={self.board_id}, source='{self.source_type}')>"
