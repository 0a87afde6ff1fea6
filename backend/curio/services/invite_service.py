"""
Curio Backend — Invite Service
===============================

What:  Issues invite links for private boards and redeems them into
       board memberships.

Invite Flow:
    creator ──POST──▶ token + <PUBLIC_BASE_URL>/invite/<token>
    invitee ──redeem─▶ board_members row (read access) ──▶ board slug

Redeeming is idempotent: a second redeem by the same user, or a redeem by
the creator, changes nothing and still returns the board.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.config import settings
from curio.exceptions import DatabaseError, NotFoundError
from curio.models.board import Board, BoardInvite, BoardMember
from curio.models.user import utcnow
from curio.schemas.account import InviteResponse, RedeemResponse
from curio.services.board_service import board_service

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


def invite_url(token: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/invite/{token}"


class InviteService:

    async def create_invite(self, db: AsyncSession, board_id: str, user_id: str) -> InviteResponse:
        """
        Raises:
            NotFoundError: Board missing or deleted
            ForbiddenError: Caller is not the creator
        """
        board = await board_service.get_owned_board(
            db, board_id, user_id, message="Only the board creator can create invites."
        )

        expires_at = None
        if settings.invite_ttl_hours:
            expires_at = utcnow() + timedelta(hours=settings.invite_ttl_hours)

        invite = BoardInvite(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            board_id=board.id,
            created_by=user_id,
            expires_at=expires_at,
        )
        try:
            db.add(invite)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Invite insert failed for board %s: %s", board_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_invite", "board_id": board_id})

        logger.info("Invite issued for board %s", board_id)
        return InviteResponse(token=invite.token, url=invite_url(invite.token), expires_at=expires_at)

    async def redeem(self, db: AsyncSession, token: str, user_id: str) -> RedeemResponse:
        """
        Turn a valid invite into read access for `user_id`.

        Raises:
            NotFoundError: Unknown or expired token, or the board is gone
        """
        try:
            result = await db.execute(
                select(BoardInvite).where(
                    BoardInvite.token == token,
                    or_(BoardInvite.expires_at.is_(None), BoardInvite.expires_at > utcnow()),
                )
            )
            invite = result.scalar_one_or_none()
            if invite is None:
                raise NotFoundError(resource="Invite")

            board = await db.get(Board, invite.board_id)
            if board is None or board.deleted_at is not None:
                raise NotFoundError(resource="Invite")

            if board.creator_id != user_id:
                membership = await db.get(BoardMember, (board.id, user_id))
                if membership is None:
                    db.add(BoardMember(board_id=board.id, user_id=user_id))
                    invite.redeemed_count += 1
                    logger.info("User %s joined board %s via invite", user_id, board.id)
                await db.flush()
        except SQLAlchemyError as e:
            logger.error("Invite redeem failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "redeem_invite"})

        return RedeemResponse(board_id=board.id, board_slug=board.slug)


invite_service = InviteService()
