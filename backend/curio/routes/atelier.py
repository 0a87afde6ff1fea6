"""
Curio Backend — Atelier Layout Route Handlers
==============================================

What:  GET and PATCH for a board's canvas layout.
Who:   The canvas client (`curio.atelier.autosave.LayoutApiClient`).

    GET   /api/boards/{board_id}/atelier-layout  → {"layout": snapshot}
    PATCH /api/boards/{board_id}/atelier-layout  → {"layout": refreshed snapshot}

The PATCH body is read as raw JSON rather than bound to a model: an
undecodable or non-object body is a 400 "Invalid JSON body", and malformed
group or connector elements are dropped instead of failing the request.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import get_current_user_id, require_user_id
from curio.schemas.atelier import LayoutPatchRequest, LayoutResponse
from curio.schemas.common import ErrorResponse
from curio.services.layout_service import layout_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Atelier"])


@router.get(
    "/boards/{board_id}/atelier-layout",
    response_model=LayoutResponse,
    responses={
        403: {"description": "No read access", "model": ErrorResponse},
        404: {"description": "Board not found or deleted", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Get a board's canvas layout",
)
async def get_layout(
    board_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LayoutResponse:
    layout = await layout_service.get_layout(db, board_id, user_id)
    return LayoutResponse.model_validate({"layout": layout})


@router.patch(
    "/boards/{board_id}/atelier-layout",
    response_model=LayoutResponse,
    responses={
        400: {"description": "Invalid body, nothing to update, or unknown card ids", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        403: {"description": "Not the board creator", "model": ErrorResponse},
        404: {"description": "Board not found or deleted", "model": ErrorResponse},
        500: {"description": "Storage error, nothing applied", "model": ErrorResponse},
    },
    summary="Partially update a board's canvas layout",
    description=(
        "Applies any of viewMode, groups, connectors and cards. Absent keys are left "
        "untouched. The board row and every card placement are written in one "
        "transaction and the refreshed snapshot is returned."
    ),
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": LayoutPatchRequest.model_json_schema(by_alias=True)}}
        }
    },
)
async def patch_layout(
    board_id: str,
    request: Request,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LayoutResponse:
    try:
        body = await request.json()
    except ValueError:
        body = None

    layout = await layout_service.patch_layout(db, board_id, user_id, body)
    return LayoutResponse.model_validate({"layout": layout})
