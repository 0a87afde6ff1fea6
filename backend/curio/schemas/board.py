"""
Curio Backend — Board & Card Schemas
=====================================

What:  Request and response models for boards and the cards on them.
Who:   Board and card routes, the public board page and the profile page.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from curio.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class BoardCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_public: bool = True

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Board title is required")
        return stripped


class BoardUpdate(CamelModel):
    """Only the fields present in the body are changed."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_public: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Board title cannot be blank")
        return stripped


class CardCreate(CamelModel):
    url: str = Field(max_length=4000)
    title: Optional[str] = Field(default=None, max_length=500)
    creator_note: Optional[str] = Field(default=None, max_length=5000)
    thumbnail_url: Optional[str] = Field(default=None, max_length=4000)


class CardUpdate(CamelModel):
    title: Optional[str] = Field(default=None, max_length=500)
    creator_note: Optional[str] = Field(default=None, max_length=5000)


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class BoardResponse(CamelModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    is_public: bool
    is_inbox: bool = False
    created_at: datetime
    deleted_at: Optional[datetime] = None
    share_url: Optional[str] = Field(
        default=None, description="Public link, set only for public boards"
    )


class BoardListResponse(CamelModel):
    boards: List[BoardResponse]


class CardResponse(CamelModel):
    id: str
    board_id: str
    url: str
    title: Optional[str] = None
    creator_note: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source_type: str
    youtube_video_id: Optional[str] = None
    youtube_timestamp: Optional[int] = None
    embed_url: Optional[str] = Field(default=None, description="youtube-nocookie player URL")
    created_at: datetime
    deleted_at: Optional[datetime] = None
    atelier_x: Optional[float] = None
    atelier_y: Optional[float] = None
    atelier_z: Optional[int] = None


class CardListResponse(CamelModel):
    cards: List[CardResponse]


class CreatorProfile(CamelModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class BoardDetailResponse(CamelModel):
    """
    What:  A board page: the board, who curated it and its active cards.
    Who:   Returned by GET /api/boards/by-slug/{slug}.
    """
    board: BoardResponse
    creator: CreatorProfile
    cards: List[CardResponse]
    can_edit: bool = Field(description="True when the caller is the board creator")
