"""
Curio Backend — Request Dependencies
=====================================

What:  FastAPI dependencies for the caller's identity.
How:   The session token travels in the `settings.session_cookie_name`
       cookie. `get_current_user_id` is optional (public boards are readable
       anonymously); `require_user_id` turns a missing identity into 401.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from curio.config import settings
from curio.database import get_db_session
from curio.exceptions import AuthenticationError
from curio.services.auth_service import auth_service


async def get_current_user_id(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name)
    return await auth_service.resolve_user_id(db, token)


async def require_user_id(
    user_id: Optional[str] = Depends(get_current_user_id),
) -> str:
    if user_id is None:
        raise AuthenticationError()
    return user_id
