"""
Curio Backend — Extension Capture Service
==========================================

What:  Quick saves from the browser extension, and the board picker it shows.
How:   A save without a board (or with `useInbox`) lands on the caller's
       inbox: a private board created on first use and restored if it was
       trashed. Any other target must be a live board the caller created.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.exceptions import DatabaseError, ValidationError
from curio.models.board import Board
from curio.schemas.account import ExtensionSaveRequest, ExtensionSaveResponse
from curio.schemas.board import BoardCreate
from curio.services.board_service import board_service
from curio.services.card_service import build_card, card_service

logger = logging.getLogger(__name__)

INBOX_TITLE = "Inbox"
INBOX_DESCRIPTION = "Auto-created for quick saves"


class CaptureService:

    async def list_boards(self, db: AsyncSession, user_id: str) -> List[Board]:
        return await board_service.list_boards(db, user_id)

    async def get_or_create_inbox(self, db: AsyncSession, user_id: str) -> Board:
        try:
            result = await db.execute(
                select(Board)
                .where(Board.creator_id == user_id, Board.is_inbox.is_(True))
                .order_by(Board.created_at)
                .limit(1)
            )
            inbox = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Inbox lookup failed for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_inbox"})

        if inbox is None:
            logger.info("Creating inbox board for %s", user_id)
            return await board_service.create_board(
                db,
                user_id,
                BoardCreate(title=INBOX_TITLE, description=INBOX_DESCRIPTION, is_public=False),
                is_inbox=True,
            )
        if inbox.deleted_at is not None:
            return await board_service.restore_board(db, inbox.id, user_id)
        return inbox

    async def save(self, db: AsyncSession, user_id: str, data: ExtensionSaveRequest) -> ExtensionSaveResponse:
        """
        Raises:
            ValidationError: Missing URL, or the target board is not a live
                             board of the caller ("Board is unavailable")
        """
        if not (data.url or "").strip():
            raise ValidationError(message="Missing URL", field="url")

        if data.use_inbox or not data.board_id:
            board = await self.get_or_create_inbox(db, user_id)
        else:
            try:
                board = await db.get(Board, data.board_id)
            except SQLAlchemyError as e:
                logger.error("Capture board lookup failed: %s", str(e), exc_info=True)
                raise DatabaseError(context={"operation": "capture_save"})
            if board is None or board.deleted_at is not None or board.creator_id != user_id:
                raise ValidationError(message="Board is unavailable", field="boardId")

        card = build_card(
            board_id=board.id,
            url=data.url,
            title=data.title,
            note=data.note,
            thumbnail_url=data.thumbnail,
        )
        await card_service.add_card(db, card)
        return ExtensionSaveResponse(ok=True, board_slug=board.slug)


capture_service = CaptureService()
