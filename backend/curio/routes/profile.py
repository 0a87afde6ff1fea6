"""
Curio Backend — Profile Route Handlers
=======================================

    GET   /api/profile   own profile and public boards
    PATCH /api/profile   update full name (required) and avatar
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curio.database import get_db_session
from curio.dependencies import require_user_id
from curio.schemas.account import ProfileResponse, ProfileUpdate
from curio.schemas.common import ErrorResponse
from curio.services.profile_service import profile_service

router = APIRouter(prefix="/api", tags=["Profile"])


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Get my profile",
)
async def get_profile(
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.get_profile(db, user_id)


@router.patch(
    "/profile",
    response_model=ProfileResponse,
    responses={
        400: {"description": "Full name missing", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Update my profile",
)
async def update_profile(
    data: ProfileUpdate,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.update_profile(db, user_id, data)
