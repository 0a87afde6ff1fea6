"""
Curio Backend — Auth Service
=============================

What:  Resolves a session cookie value to a user id.
Who:   `curio.dependencies`; nothing else reads `auth_sessions`.
When:  Once per request that carries the session cookie.

Sign-up, login and OAuth callbacks belong to the identity provider; it
writes `auth_sessions` rows and this service only reads them.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curio.exceptions import DatabaseError
from curio.models.user import AuthSession, utcnow

logger = logging.getLogger(__name__)


class AuthService:
    async def resolve_user_id(self, db: AsyncSession, token: Optional[str]) -> Optional[str]:
        """
        Return the user id for a live session token, else None.

        Expired and unknown tokens are treated the same way: anonymous.
        """
        if not token:
            return None

        stmt = select(AuthSession.user_id).where(
            AuthSession.token == token,
            or_(AuthSession.expires_at.is_(None), AuthSession.expires_at > utcnow()),
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Session lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "resolve_session"})

        return result.scalar_one_or_none()


auth_service = AuthService()
