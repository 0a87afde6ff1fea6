"""
Curio Backend — Card Route Handlers
====================================

Endpoints:
    GET    /api/boards/{board_id}/cards?deleted=  list (read access) or trash (creator)
    POST   /api/boards/{board_id}/cards           add a link (201)
    PATCH  /api/cards/{card_id}                   edit title / note
    DELETE /api/cards/{card_id}                   move to trash
    POST   /api/cards/{card_id}/restore           bring back from trash
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import get_current_user_id, require_user_id
from curio.exceptions import AuthenticationError
from curio.schemas.board import CardCreate, CardListResponse, CardResponse, CardUpdate
from curio.schemas.common import ErrorResponse
from curio.services.card_service import card_service, card_to_response

router = APIRouter(prefix="/api", tags=["Cards"])

_OWNER_ERRORS = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the board creator", "model": ErrorResponse},
    404: {"description": "Card or board not found", "model": ErrorResponse},
}


@router.get(
    "/boards/{board_id}/cards",
    response_model=CardListResponse,
    responses={
        403: {"description": "No read access", "model": ErrorResponse},
        404: {"description": "Board not found or deleted", "model": ErrorResponse},
    },
    summary="List a board's cards",
    description="Active cards newest first, including their Atelier placement.",
)
async def list_cards(
    board_id: str,
    deleted: bool = Query(default=False, description="List trashed cards (creator only)"),
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CardListResponse:
    if deleted and user_id is None:
        raise AuthenticationError()
    cards = await card_service.list_cards(db, board_id, user_id, deleted=deleted)
    return CardListResponse(cards=[card_to_response(card) for card in cards])


@router.post(
    "/boards/{board_id}/cards",
    status_code=201,
    response_model=CardResponse,
    responses={400: {"description": "Missing URL", "model": ErrorResponse}, **_OWNER_ERRORS},
    summary="Add a card to a board",
)
async def create_card(
    board_id: str,
    data: CardCreate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CardResponse:
    card = await card_service.create_card(db, board_id, user_id, data)
    return card_to_response(card)


@router.patch("/cards/{card_id}", response_model=CardResponse, responses=_OWNER_ERRORS, summary="Edit a card")
async def update_card(
    card_id: str,
    data: CardUpdate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CardResponse:
    card = await card_service.update_card(db, card_id, user_id, data)
    return card_to_response(card)


@router.delete(
    "/cards/{card_id}", response_model=CardResponse, responses=_OWNER_ERRORS, summary="Move a card to the trash"
)
async def delete_card(
    card_id: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CardResponse:
    card = await card_service.delete_card(db, card_id, user_id)
    return card_to_response(card)


@router.post(
    "/cards/{card_id}/restore", response_model=CardResponse, responses=_OWNER_ERRORS, summary="Restore a card"
)
async def restore_card(
    card_id: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CardResponse:
    card = await card_service.restore_card(db, card_id, user_id)
    return card_to_response(card)
