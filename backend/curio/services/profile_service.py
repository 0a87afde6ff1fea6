"""
Curio Backend — Profile Service
================================

What:  The caller's own profile (name, avatar) and their public boards.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.exceptions import DatabaseError, NotFoundError, ValidationError
from curio.models.board import Board
from curio.models.user import User
from curio.schemas.account import ProfileResponse, ProfileUpdate
from curio.services.board_service import board_to_response

logger = logging.getLogger(__name__)


class ProfileService:

    async def _get_user(self, db: AsyncSession, user_id: str) -> User:
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("User lookup failed for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_user"})
        if user is None:
            raise NotFoundError(resource="Profile", resource_id=user_id)
        return user

    async def get_profile(self, db: AsyncSession, user_id: str) -> ProfileResponse:
        user = await self._get_user(db, user_id)
        try:
            result = await db.execute(
                select(Board)
                .where(
                    Board.creator_id == user_id,
                    Board.is_public.is_(True),
                    Board.deleted_at.is_(None),
                )
                .order_by(Board.created_at.desc())
            )
        except SQLAlchemyError as e:
            logger.error("Profile boards query failed for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "get_profile"})

        return ProfileResponse(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
            public_boards=[board_to_response(board) for board in result.scalars().all()],
        )

    async def update_profile(self, db: AsyncSession, user_id: str, data: ProfileUpdate) -> ProfileResponse:
        """
        Raises:
            ValidationError: Full name missing or blank
        """
        full_name = (data.full_name or "").strip()
        if not full_name:
            raise ValidationError(message="Please add your full name", field="fullName")

        user = await self._get_user(db, user_id)
        user.full_name = full_name
        if "avatar_url" in data.model_fields_set:
            user.avatar_url = (data.avatar_url or "").strip() or None

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Profile update failed for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "update_profile"})

        return await self.get_profile(db, user_id)


profile_service = ProfileService()
