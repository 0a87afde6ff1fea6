"""
Curio Backend — Invite Route Handlers
======================================

    POST /api/boards/{board_id}/invites   creator issues a link (201)
    POST /api/invites/{token}/redeem      signed-in user joins the board
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import require_user_id
from curio.schemas.account import InviteResponse, RedeemResponse
from curio.schemas.common import ErrorResponse
from curio.services.invite_service import invite_service

router = APIRouter(prefix="/api", tags=["Invites"])


@router.post(
    "/boards/{board_id}/invites",
    status_code=201,
    response_model=InviteResponse,
    responses={
        401: {"description": "Not signed in", "model": ErrorResponse},
        403: {"description": "Not the board creator", "model": ErrorResponse},
        404: {"description": "Board not found or deleted", "model": ErrorResponse},
    },
    summary="Create an invite link",
)
async def create_invite(
    board_id: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> InviteResponse:
    return await invite_service.create_invite(db, board_id, user_id)


@router.post(
    "/invites/{token}/redeem",
    response_model=RedeemResponse,
    responses={
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "Invite invalid or expired", "model": ErrorResponse},
    },
    summary="Redeem an invite link",
)
async def redeem_invite(
    token: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RedeemResponse:
    return await invite_service.redeem(db, token, user_id)
