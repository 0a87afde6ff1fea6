"""
Curio Backend — Card Service
=============================

What:  Card listing, creation with YouTube metadata, edits, soft delete and
       restore.
Who:   Card routes, the board page and the extension capture service.

Creation Flow:
    url ──▶ extract_metadata ──▶ source_type / video id / start offset
                              └─▶ thumbnail (given one, else YouTube's)
    Blank title, note and thumbnail strings are stored as NULL.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.core.youtube import extract_metadata, get_embed_url
from curio.exceptions import DatabaseError, NotFoundError, ValidationError
from curio.models.card import Card
from curio.models.user import utcnow
from curio.schemas.board import CardCreate, CardResponse, CardUpdate
from curio.services.board_service import board_service

logger = logging.getLogger(__name__)


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def card_to_response(card: Card) -> CardResponse:
    response = CardResponse.model_validate(card)
    if card.youtube_video_id:
        response.embed_url = get_embed_url(card.youtube_video_id, card.youtube_timestamp)
    return response


def build_card(
    board_id: str,
    url: str,
    title: Optional[str] = None,
    note: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
) -> Card:
    """
    Build (not add) a Card for `url` with metadata derived from the URL.

    Raises:
        ValidationError: `url` is blank
    """
    url = (url or "").strip()
    if not url:
        raise ValidationError(message="Missing URL", field="url")

    metadata = extract_metadata(url)
    return Card(
        board_id=board_id,
        url=url,
        title=blank_to_none(title),
        creator_note=blank_to_none(note),
        thumbnail_url=blank_to_none(thumbnail_url) or metadata.thumbnail_url,
        source_type=metadata.source_type,
        youtube_video_id=metadata.video_id,
        youtube_timestamp=metadata.start_seconds,
    )


class CardService:

    async def _get_owned_card(
        self, db: AsyncSession, card_id: str, user_id: str, deleted: bool = False
    ) -> Card:
        """
        Fetch a card whose board the caller created.

        `deleted` picks which side of the trash to look on. The board itself
        must be live either way.
        """
        stmt = select(Card).where(Card.id == card_id)
        stmt = stmt.where(Card.deleted_at.is_not(None) if deleted else Card.deleted_at.is_(None))
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Card lookup failed for %s: %s", card_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_card", "card_id": card_id})

        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError(resource="Card", resource_id=card_id)
        await board_service.get_owned_board(
            db, card.board_id, user_id, message="Only the board creator can change its cards."
        )
        return card

    async def list_cards(
        self, db: AsyncSession, board_id: str, user_id: Optional[str], deleted: bool = False
    ) -> List[Card]:
        """
        Active cards newest first (read access), or the board's trash
        (creator only) by deletion time.
        """
        if deleted:
            await board_service.get_owned_board(db, board_id, user_id or "")
            stmt = (
                select(Card)
                .where(Card.board_id == board_id, Card.deleted_at.is_not(None))
                .order_by(Card.deleted_at.desc())
            )
        else:
            await board_service.get_readable_board(db, board_id, user_id)
            stmt = (
                select(Card)
                .where(Card.board_id == board_id, Card.deleted_at.is_(None))
                .order_by(Card.created_at.desc())
            )

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Card listing failed for board %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_cards", "board_id": board_id})
        return list(result.scalars().all())

    async def create_card(self, db: AsyncSession, board_id: str, user_id: str, data: CardCreate) -> Card:
        await board_service.get_owned_board(
            db, board_id, user_id, message="Only the board creator can add cards."
        )
        card = build_card(
            board_id=board_id,
            url=data.url,
            title=data.title,
            note=data.creator_note,
            thumbnail_url=data.thumbnail_url,
        )
        return await self.add_card(db, card)

    async def add_card(self, db: AsyncSession, card: Card) -> Card:
        try:
            db.add(card)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Card insert failed for board %s: %s", card.board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_card", "board_id": card.board_id})
        logger.info("Card %s (%s) added to board %s", card.id, card.source_type, card.board_id)
        return card

    async def update_card(self, db: AsyncSession, card_id: str, user_id: str, data: CardUpdate) -> Card:
        card = await self._get_owned_card(db, card_id, user_id)
        fields = data.model_fields_set
        if "title" in fields:
            card.title = blank_to_none(data.title)
        if "creator_note" in fields:
            card.creator_note = blank_to_none(data.creator_note)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Card update failed for %s: %s", card_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "update_card", "card_id": card_id})
        return card

    async def delete_card(self, db: AsyncSession, card_id: str, user_id: str) -> Card:
        """Soft delete; the card keeps its Atelier placement for a later restore."""
        card = await self._get_owned_card(db, card_id, user_id)
        card.deleted_at = utcnow()
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Card delete failed for %s: %s", card_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "delete_card", "card_id": card_id})
        return card

    async def restore_card(self, db: AsyncSession, card_id: str, user_id: str) -> Card:
        card = await self._get_owned_card(db, card_id, user_id, deleted=True)
        card.deleted_at = None
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Card restore failed for %s: %s", card_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "restore_card", "card_id": card_id})
        return card


card_service = CardService()
