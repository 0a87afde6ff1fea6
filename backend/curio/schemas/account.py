"""
Curio Backend — Profile, Invite & Extension Schemas
====================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from curio.schemas.board import BoardResponse
from curio.schemas.common import CamelModel


class ProfileResponse(CamelModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    public_boards: List[BoardResponse] = Field(default_factory=list)


class ProfileUpdate(CamelModel):
    # Blank names are rejected with a friendly message by the service
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = Field(default=None, max_length=4000)


class InviteResponse(CamelModel):
    token: str
    url: str
    expires_at: Optional[datetime] = None


class RedeemResponse(CamelModel):
    board_id: str
    board_slug: str


class ExtensionBoard(CamelModel):
    id: str
    title: str
    slug: str
    is_public: bool


class ExtensionBoardsResponse(CamelModel):
    boards: List[ExtensionBoard]


class ExtensionSaveRequest(CamelModel):
    """
    What:  A quick save from the browser extension popup.
    How:   `use_inbox` (or no board id) routes the card to the caller's inbox.
    """
    url: Optional[str] = Field(default=None, max_length=4000)
    title: Optional[str] = Field(default=None, max_length=500)
    thumbnail: Optional[str] = Field(default=None, max_length=4000)
    note: Optional[str] = Field(default=None, max_length=5000)
    board_id: Optional[str] = None
    use_inbox: bool = False


class ExtensionSaveResponse(CamelModel):
    ok: bool = True
    board_slug: str
