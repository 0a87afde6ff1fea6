"""
Curio Backend — Board Service
==============================

What:  Board CRUD, read-access rules, soft delete and restore.
Who:   Board routes, and the card, layout, invite and capture services for
       their board lookups and permission checks.

Access rules:
    read   board is public, OR caller is the creator, OR caller is a member
    write  caller is the creator (members only ever read)

Soft delete:
    Deleting a board stamps the board and its live cards with ONE timestamp.
    Restoring brings back the board and exactly the cards carrying that same
    timestamp, so cards deleted on their own earlier stay in the trash.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.config import settings
from curio.core.slugs import generate_unique_slug
from curio.exceptions import DatabaseError, ForbiddenError, NotFoundError
from curio.models.board import Board, BoardMember
from curio.models.card import Card
from curio.models.user import User, utcnow
from curio.schemas.board import (
    BoardCreate,
    BoardDetailResponse,
    BoardResponse,
    BoardUpdate,
    CreatorProfile,
)

logger = logging.getLogger(__name__)


def share_url(slug: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/board/{slug}"


def board_to_response(board: Board) -> BoardResponse:
    response = BoardResponse.model_validate(board)
    if board.is_public and board.deleted_at is None:
        response.share_url = share_url(board.slug)
    return response


class BoardService:
    """
    Business logic for boards.

    Error Handling Strategy:
        Driver errors are logged with context and re-raised as DatabaseError
        (generic 500). Permission and lookup failures raise ForbiddenError /
        NotFoundError before anything is written.
    """

    # ── Lookups & permissions ─────────────────────────────────────────────

    async def get_board(self, db: AsyncSession, board_id: str, include_deleted: bool = False) -> Board:
        """Fetch a board by id; soft-deleted boards count as missing unless asked for."""
        try:
            board = await db.get(Board, board_id)
        except SQLAlchemyError as e:
            logger.error("Board lookup failed for %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_board", "board_id": board_id})

        if board is None or (board.deleted_at is not None and not include_deleted):
            raise NotFoundError(resource="Board", resource_id=board_id)
        return board

    async def is_member(self, db: AsyncSession, board_id: str, user_id: str) -> bool:
        try:
            membership = await db.get(BoardMember, (board_id, user_id))
        except SQLAlchemyError as e:
            logger.error("Membership lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "is_member", "board_id": board_id})
        return membership is not None

    async def can_read(self, db: AsyncSession, board: Board, user_id: Optional[str]) -> bool:
        if board.is_public:
            return True
        if user_id is None:
            return False
        if board.creator_id == user_id:
            return True
        return await self.is_member(db, board.id, user_id)

    async def get_readable_board(self, db: AsyncSession, board_id: str, user_id: Optional[str]) -> Board:
        board = await self.get_board(db, board_id)
        if not await self.can_read(db, board, user_id):
            raise ForbiddenError(context={"board_id": board_id})
        return board

    async def get_owned_board(
        self,
        db: AsyncSession,
        board_id: str,
        user_id: str,
        include_deleted: bool = False,
        message: str = "Only the board creator can change this board.",
    ) -> Board:
        board = await self.get_board(db, board_id, include_deleted=include_deleted)
        if board.creator_id != user_id:
            raise ForbiddenError(message=message, context={"board_id": board_id})
        return board

    async def slug_exists(self, db: AsyncSession, slug: str) -> bool:
        # Deleted boards keep their slug reserved so restore never collides
        result = await db.execute(select(Board.id).where(Board.slug == slug).limit(1))
        return result.first() is not None

    # ── Commands ──────────────────────────────────────────────────────────

    async def create_board(
        self,
        db: AsyncSession,
        user_id: str,
        data: BoardCreate,
        is_inbox: bool = False,
    ) -> Board:
        """
        Create a board with a unique slug derived from its title.

        Raises:
            ValidationError: Title has nothing to build a slug from
            ConflictError: Slug attempts exhausted
            DatabaseError: Insert failed
        """
        try:
            slug = await generate_unique_slug(data.title, lambda candidate: self.slug_exists(db, candidate))
            board = Board(
                creator_id=user_id,
                title=data.title,
                slug=slug,
                description=(data.description or "").strip() or None,
                is_public=data.is_public,
                is_inbox=is_inbox,
            )
            db.add(board)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Board insert failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_board"})

        logger.info("Board %s created by %s (slug=%s)", board.id, user_id, slug)
        return board

    async def list_boards(self, db: AsyncSession, user_id: str, deleted: bool = False) -> List[Board]:
        """Caller's boards: active newest first, or the trash by deletion time."""
        stmt = select(Board).where(Board.creator_id == user_id)
        if deleted:
            stmt = stmt.where(Board.deleted_at.is_not(None)).order_by(Board.deleted_at.desc())
        else:
            stmt = stmt.where(Board.deleted_at.is_(None)).order_by(Board.created_at.desc())

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Board listing failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_boards"})
        return list(result.scalars().all())

    async def get_board_detail(
        self, db: AsyncSession, slug: str, user_id: Optional[str]
    ) -> BoardDetailResponse:
        """
        The public board page: board, creator profile and active cards.

        Raises:
            NotFoundError: Unknown slug or deleted board
            ForbiddenError: Private board the caller cannot read
        """
        # Imported here to keep board_service importable from card_service
        from curio.services.card_service import card_to_response

        try:
            result = await db.execute(
                select(Board).where(Board.slug == slug, Board.deleted_at.is_(None))
            )
            board = result.scalar_one_or_none()
            if board is None:
                raise NotFoundError(resource="Board", resource_id=slug)
            if not await self.can_read(db, board, user_id):
                raise ForbiddenError(context={"slug": slug})

            creator = await db.get(User, board.creator_id)
            cards = await db.execute(
                select(Card)
                .where(Card.board_id == board.id, Card.deleted_at.is_(None))
                .order_by(Card.created_at.desc())
            )
        except SQLAlchemyError as e:
            logger.error("Board page load failed for '%s': %s", slug, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_board_detail"})

        return BoardDetailResponse(
            board=board_to_response(board),
            creator=CreatorProfile(
                id=board.creator_id,
                full_name=creator.full_name if creator else None,
                avatar_url=creator.avatar_url if creator else None,
            ),
            cards=[card_to_response(card) for card in cards.scalars().all()],
            can_edit=user_id is not None and user_id == board.creator_id,
        )

    async def update_board(self, db: AsyncSession, board_id: str, user_id: str, data: BoardUpdate) -> Board:
        """Apply the fields present in `data`; the slug never changes."""
        board = await self.get_owned_board(db, board_id, user_id)
        fields = data.model_fields_set

        if "title" in fields and data.title is not None:
            board.title = data.title
        if "description" in fields:
            board.description = (data.description or "").strip() or None
        if "is_public" in fields and data.is_public is not None:
            board.is_public = data.is_public

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Board update failed for %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "update_board", "board_id": board_id})
        return board

    async def delete_board(self, db: AsyncSession, board_id: str, user_id: str) -> Board:
        """Soft-delete the board and its live cards under one timestamp."""
        board = await self.get_owned_board(db, board_id, user_id)
        stamp = utcnow()

        try:
            await db.execute(
                update(Card)
                .where(Card.board_id == board.id, Card.deleted_at.is_(None))
                .values(deleted_at=stamp)
                .execution_options(synchronize_session=False)
            )
            board.deleted_at = stamp
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Board delete failed for %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "delete_board", "board_id": board_id})

        logger.info("Board %s moved to trash", board_id)
        return board

    async def restore_board(self, db: AsyncSession, board_id: str, user_id: str) -> Board:
        """Bring back a trashed board and the cards that were trashed with it."""
        board = await self.get_owned_board(db, board_id, user_id, include_deleted=True)
        if board.deleted_at is None:
            return board

        try:
            await db.execute(
                update(Card)
                .where(Card.board_id == board.id, Card.deleted_at == board.deleted_at)
                .values(deleted_at=None)
                .execution_options(synchronize_session=False)
            )
            board.deleted_at = None
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Board restore failed for %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "restore_board", "board_id": board_id})

        logger.info("Board %s restored", board_id)
        return board


board_service = BoardService()
