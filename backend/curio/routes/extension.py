"""
Curio Backend — Browser Extension Route Handlers
=================================================

What:  The two calls the extension popup makes.
How:   Requests come from chrome-extension:// origins with the session
       cookie; CORSMiddleware (see main.py) admits those origins by regex
       with credentials.

    GET  /api/extension/boards   board picker
    POST /api/extension/save     quick save → {"ok": true, "boardSlug": ...}
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import require_user_id
from curio.schemas.account import (
    ExtensionBoard,
    ExtensionBoardsResponse,
    ExtensionSaveRequest,
    ExtensionSaveResponse,
)
from curio.schemas.common import ErrorResponse
from curio.services.capture_service import capture_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extension", tags=["Extension"])


@router.get(
    "/boards",
    response_model=ExtensionBoardsResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Boards for the extension picker",
)
async def list_boards(
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ExtensionBoardsResponse:
    boards = await capture_service.list_boards(db, user_id)
    return ExtensionBoardsResponse(boards=[ExtensionBoard.model_validate(board) for board in boards])


@router.post(
    "/save",
    response_model=ExtensionSaveResponse,
    responses={
        400: {"description": "Missing URL or board unavailable", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Quick-save a link",
)
async def save(
    data: ExtensionSaveRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ExtensionSaveResponse:
    result = await capture_service.save(db, user_id, data)
    logger.info("Extension save by %s to board '%s'", user_id, result.board_slug)
    return result
