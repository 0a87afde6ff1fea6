"""
Curio Backend — Board Route Handlers
=====================================

What:  Board CRUD for the dashboard and the public board page.
Who:   The web client (dashboard, board page, trash view).

Endpoints:
    POST   /api/boards                     create (201)
    GET    /api/boards?deleted=            my boards, or my trash
    GET    /api/boards/by-slug/{slug}      board page (anonymous allowed)
    PATCH  /api/boards/{board_id}          title / description / visibility
    DELETE /api/boards/{board_id}          move to trash (with its cards)
    POST   /api/boards/{board_id}/restore  bring back from trash
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import get_current_user_id, require_user_id
from curio.schemas.board import (
    BoardCreate,
    BoardDetailResponse,
    BoardListResponse,
    BoardResponse,
    BoardUpdate,
)
from curio.schemas.common import ErrorResponse
from curio.services.board_service import board_service, board_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Boards"])

_OWNER_ERRORS = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the board creator", "model": ErrorResponse},
    404: {"description": "Board not found or deleted", "model": ErrorResponse},
}


@router.post(
    "/boards",
    status_code=201,
    response_model=BoardResponse,
    responses={
        400: {"description": "Invalid title", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        409: {"description": "No free slug for this title", "model": ErrorResponse},
    },
    summary="Create a board",
)
async def create_board(
    data: BoardCreate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.create_board(db, user_id, data)
    return board_to_response(board)


@router.get(
    "/boards",
    response_model=BoardListResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="List my boards",
    description="Active boards newest first, or with `deleted=true` the trash by deletion time.",
)
async def list_boards(
    deleted: bool = Query(default=False, description="List trashed boards instead"),
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardListResponse:
    boards = await board_service.list_boards(db, user_id, deleted=deleted)
    return BoardListResponse(boards=[board_to_response(board) for board in boards])


@router.get(
    "/boards/by-slug/{slug}",
    response_model=BoardDetailResponse,
    responses={
        403: {"description": "Private board", "model": ErrorResponse},
        404: {"description": "Board not found or deleted", "model": ErrorResponse},
    },
    summary="Board page",
)
async def get_board_by_slug(
    slug: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardDetailResponse:
    return await board_service.get_board_detail(db, slug, user_id)


@router.patch(
    "/boards/{board_id}",
    response_model=BoardResponse,
    responses=_OWNER_ERRORS,
    summary="Update a board",
)
async def update_board(
    board_id: str,
    data: BoardUpdate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.update_board(db, board_id, user_id, data)
    return board_to_response(board)


@router.delete(
    "/boards/{board_id}",
    response_model=BoardResponse,
    responses=_OWNER_ERRORS,
    summary="Move a board to the trash",
)
async def delete_board(
    board_id: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.delete_board(db, board_id, user_id)
    return board_to_response(board)


@router.post(
    "/boards/{board_id}/restore",
    response_model=BoardResponse,
    responses=_OWNER_ERRORS,
    summary="Restore a board from the trash",
)
async def restore_board(
    board_id: str,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.restore_board(db, board_id, user_id)
    return board_to_response(board)
