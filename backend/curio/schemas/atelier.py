"""
Curio Backend — Atelier Layout Schemas
=======================================

What:  Response models for the layout snapshot and the documented shape of
       the PATCH body.
Note:  The PATCH route reads the raw JSON itself (malformed group and
       connector elements are dropped, not rejected), so `LayoutPatchRequest`
       only documents the body in OpenAPI.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from curio.schemas.common import CamelModel


class AtelierGroup(CamelModel):
    id: str
    card_ids: List[str] = Field(default_factory=list)
    label: Optional[str] = None
    color: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class AtelierConnector(CamelModel):
    id: str
    from_card_id: str
    to_card_id: str
    label: Optional[str] = None
    style: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class CardPlacement(CamelModel):
    card_id: str
    x: float = Field(description="Canvas x coordinate (0 when never placed)")
    y: float = Field(description="Canvas y coordinate (0 when never placed)")
    z_index: int = Field(description="Stacking order, higher is in front")


class CardPlacementPatch(CamelModel):
    card_id: str
    x: Optional[float] = None
    y: Optional[float] = None
    z_index: Optional[float] = Field(default=None, description="Truncated toward zero")


class LayoutSnapshot(CamelModel):
    """
    What:  Everything the canvas needs to render a board.
    How:   Materialized on read from the board's atelier_* columns plus the
           placement of each active card (newest first).
    """
    board_id: str
    view_mode: str = Field(description="'minimal' or 'dense'")
    groups: List[AtelierGroup]
    connectors: List[AtelierConnector]
    cards: List[CardPlacement]


class LayoutResponse(CamelModel):
    layout: LayoutSnapshot


class LayoutPatchRequest(CamelModel):
    """Every key is optional; absent keys leave the stored value untouched."""
    view_mode: Optional[str] = Field(default=None, description="'minimal' or 'dense'")
    groups: Optional[List[AtelierGroup]] = None
    connectors: Optional[List[AtelierConnector]] = None
    cards: Optional[List[CardPlacementPatch]] = None
