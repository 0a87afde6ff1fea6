"""
Curio Backend — Atelier Layout Service
=======================================

What:  Builds the layout snapshot for a board and applies partial layout
       patches to it.
Who:   GET/PATCH /api/boards/{board_id}/atelier-layout.

Snapshot (materialized on every read, never stored as such):
    boards.atelier_view_mode   → viewMode   (anything unknown reads as minimal)
    boards.atelier_groups      → groups     (sanitized)
    boards.atelier_connectors  → connectors (sanitized, dangling ones kept)
    cards.atelier_x/y/z        → cards      (active cards, newest first;
                                             missing values read as 0)

Patch Flow:
    ┌──────────┐   ┌──────────┐   ┌──────────────┐   ┌───────────┐   ┌──────────┐
    │ board    │──▶│ creator? │──▶│ validate     │──▶│ card ids  │──▶│ write +  │
    │ live?    │   │          │   │ & sanitize   │   │ on board? │   │ re-read  │
    └──────────┘   └──────────┘   └──────────────┘   └───────────┘   └──────────┘
        404            403              400               400            500

    Every check runs before the first write. All writes go through the
    request's session, so the board row and the whole card batch are
    committed together or rolled back together.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.atelier import rules
from curio.exceptions import DatabaseError, ForbiddenError, NotFoundError, ValidationError
from curio.models.board import Board
from curio.models.card import Card
from curio.services.board_service import board_service

logger = logging.getLogger(__name__)

# Body key → board column, for the board-level half of a patch
_BOARD_FIELDS = {
    "viewMode": "atelier_view_mode",
    "groups": "atelier_groups",
    "connectors": "atelier_connectors",
}


class LayoutService:
    """
    Business logic for the Atelier layout.

    Error Handling Strategy:
        Lookup, permission and validation errors are raised before anything
        is written. Driver errors become DatabaseError; the raw driver message
        is logged, never returned.
    """

    async def _load_board_row(self, db: AsyncSession, board_id: str):
        # Column select so a re-read after UPDATE statements sees fresh values
        stmt = select(
            Board.id,
            Board.creator_id,
            Board.is_public,
            Board.deleted_at,
            Board.atelier_view_mode,
            Board.atelier_groups,
            Board.atelier_connectors,
        ).where(Board.id == board_id)
        result = await db.execute(stmt)
        row = result.first()
        if row is None or row.deleted_at is not None:
            raise NotFoundError(resource="Board", resource_id=board_id)
        return row

    async def _build_snapshot(self, db: AsyncSession, board_row) -> Dict[str, Any]:
        result = await db.execute(
            select(Card.id, Card.atelier_x, Card.atelier_y, Card.atelier_z)
            .where(Card.board_id == board_row.id, Card.deleted_at.is_(None))
            .order_by(Card.created_at.desc(), Card.id)
        )
        return {
            "boardId": board_row.id,
            "viewMode": rules.normalize_view_mode(board_row.atelier_view_mode),
            "groups": rules.sanitize_groups(board_row.atelier_groups),
            "connectors": rules.sanitize_connectors(board_row.atelier_connectors),
            "cards": [
                {
                    "cardId": card.id,
                    "x": rules.to_finite_number(card.atelier_x, 0),
                    "y": rules.to_finite_number(card.atelier_y, 0),
                    "zIndex": rules.to_finite_integer(card.atelier_z, 0),
                }
                for card in result.all()
            ],
        }

    async def get_layout(self, db: AsyncSession, board_id: str, user_id: Optional[str]) -> Dict[str, Any]:
        """
        Snapshot of a board's layout.

        Raises:
            NotFoundError: Board missing or soft-deleted
            ForbiddenError: Private board the caller cannot read
            DatabaseError: Query failed
        """
        try:
            board_row = await self._load_board_row(db, board_id)
            if not await board_service.can_read(db, board_row, user_id):
                raise ForbiddenError(context={"board_id": board_id})
            return await self._build_snapshot(db, board_row)
        except SQLAlchemyError as e:
            logger.error("Layout load failed for board %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_layout", "board_id": board_id})

    async def patch_layout(self, db: AsyncSession, board_id: str, user_id: str, body: Any) -> Dict[str, Any]:
        """
        Apply a partial layout update and return the refreshed snapshot.

        Args:
            db: Request session (committed by the dependency on success)
            board_id: Target board
            user_id: Authenticated caller
            body: Decoded JSON body, or None when it did not parse

        Raises:
            NotFoundError: Board missing or soft-deleted
            ForbiddenError: Caller is not the board creator
            ValidationError: Bad body, bad field types, nothing to update,
                             or card ids that are not live cards of this board
            DatabaseError: A read or write failed (nothing is kept)
        """
        try:
            board_row = await self._load_board_row(db, board_id)
        except SQLAlchemyError as e:
            logger.error("Layout patch lookup failed for board %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "patch_layout", "board_id": board_id})

        if board_row.creator_id != user_id:
            raise ForbiddenError(
                message="Only the board creator can update layout.",
                context={"board_id": board_id},
            )

        board_update, card_patches = self.parse_patch(body)

        try:
            if card_patches:
                missing = await self._missing_card_ids(db, board_id, [p["cardId"] for p in card_patches])
                if missing:
                    raise ValidationError(
                        message="Some cards are missing or not part of this board",
                        field="cards",
                        context={"missing": missing},
                    )

            if board_update:
                await db.execute(
                    update(Board)
                    .where(Board.id == board_id)
                    .values(**board_update)
                    .execution_options(synchronize_session=False)
                )

            for patch in card_patches:
                values = {}
                if "x" in patch:
                    values["atelier_x"] = patch["x"]
                if "y" in patch:
                    values["atelier_y"] = patch["y"]
                if "zIndex" in patch:
                    values["atelier_z"] = patch["zIndex"]
                await db.execute(
                    update(Card)
                    .where(
                        Card.id == patch["cardId"],
                        Card.board_id == board_id,
                        Card.deleted_at.is_(None),
                    )
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )

            await db.flush()
            logger.info(
                "Layout patched for board %s: fields=%s cards=%d",
                board_id, sorted(board_update), len(card_patches),
            )
            return await self._build_snapshot(db, await self._load_board_row(db, board_id))
        except SQLAlchemyError as e:
            logger.error("Layout patch failed for board %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to save the layout. No changes were applied.",
                context={"operation": "patch_layout", "board_id": board_id},
            )

    def parse_patch(self, body: Any):
        """
        Validate a decoded PATCH body.

        Returns:
            (board column values, de-duplicated card patches)

        Raises:
            ValidationError: on the first invalid field, or when nothing
                             survives to be written
        """
        if not isinstance(body, dict):
            raise ValidationError(message="Invalid JSON body")

        board_update: Dict[str, Any] = {}

        if "viewMode" in body:
            view_mode = rules.parse_view_mode(body["viewMode"])
            if view_mode is None:
                raise ValidationError(message="viewMode must be 'minimal' or 'dense'", field="viewMode")
            board_update[_BOARD_FIELDS["viewMode"]] = view_mode

        if "groups" in body:
            if not isinstance(body["groups"], list):
                raise ValidationError(message="groups must be an array", field="groups")
            board_update[_BOARD_FIELDS["groups"]] = rules.sanitize_groups(body["groups"])

        if "connectors" in body:
            if not isinstance(body["connectors"], list):
                raise ValidationError(message="connectors must be an array", field="connectors")
            board_update[_BOARD_FIELDS["connectors"]] = rules.sanitize_connectors(body["connectors"])

        card_patches: List[Dict[str, Any]] = []
        if "cards" in body:
            if not isinstance(body["cards"], list):
                raise ValidationError(message="cards must be an array", field="cards")
            card_patches = rules.dedupe_card_patches(rules.sanitize_card_patches(body["cards"]))

        if not board_update and not card_patches:
            raise ValidationError(message="No valid layout fields to update")

        return board_update, card_patches

    async def _missing_card_ids(self, db: AsyncSession, board_id: str, card_ids: List[str]) -> List[str]:
        result = await db.execute(
            select(Card.id).where(
                Card.board_id == board_id,
                Card.deleted_at.is_(None),
                Card.id.in_(card_ids),
            )
        )
        existing = set(result.scalars().all())
        return [card_id for card_id in card_ids if card_id not in existing]


layout_service = LayoutService()
