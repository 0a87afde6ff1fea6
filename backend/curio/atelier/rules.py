"""
Curio — Atelier Layout Rules
=============================

What:  Shape checks and coercions for Atelier layout data, shared by the
       layout endpoint (server) and the canvas session (client).
How:   Every function takes already-decoded JSON (dicts, lists, scalars) and
       returns clean plain-Python structures. Nothing here raises on bad
       input: malformed entries are dropped and bad numbers fall back.

Leniency:
    Groups and connectors are presentational, so a malformed element is
    silently dropped. Card patches address rows, so a patch only survives
    with a usable card id and at least one finite coordinate; the endpoint
    then rejects the whole request if any surviving id is not on the board.
"""

import math
from typing import Any, Dict, List, Optional

VIEW_MODE_MINIMAL = "minimal"
VIEW_MODE_DENSE = "dense"
VIEW_MODES = (VIEW_MODE_MINIMAL, VIEW_MODE_DENSE)

# Default grid for cards that have never been placed
GRID_COLUMNS = 4
GRID_COLUMN_WIDTH = 380
GRID_ROW_HEIGHT = 350


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are not coordinates
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int literal too large for a float
        return False


def to_finite_number(value: Any, fallback: float = 0) -> float:
    """Return `value` when it is a finite number, else `fallback`."""
    if not is_finite_number(value):
        return fallback
    return value


def to_finite_integer(value: Any, fallback: int = 0) -> int:
    """Like `to_finite_number`, truncated toward zero."""
    return math.trunc(to_finite_number(value, fallback))


def _optional_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _optional_meta(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def normalize_view_mode(value: Any, fallback: str = VIEW_MODE_MINIMAL) -> str:
    """Stored view modes are read leniently: anything unknown becomes `fallback`."""
    if isinstance(value, str) and value in VIEW_MODES:
        return value
    return fallback


def parse_view_mode(value: Any) -> Optional[str]:
    """Strict variant for writes: None unless `value` is exactly a known mode."""
    if isinstance(value, str) and value in VIEW_MODES:
        return value
    return None


def sanitize_groups(value: Any) -> List[Dict[str, Any]]:
    """
    Keep groups that have a non-empty string id.

    Card ids are trimmed and blanks dropped; label, color and meta default to None.
    """
    if not isinstance(value, list):
        return []

    groups = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        group_id = _optional_string(entry.get("id"))
        if not group_id:
            continue

        raw_card_ids = entry.get("cardIds")
        if not isinstance(raw_card_ids, list):
            raw_card_ids = []
        card_ids = [
            card_id.strip()
            for card_id in raw_card_ids
            if isinstance(card_id, str) and card_id.strip()
        ]

        groups.append({
            "id": group_id,
            "cardIds": card_ids,
            "label": _optional_string(entry.get("label")),
            "color": _optional_string(entry.get("color")),
            "meta": _optional_meta(entry.get("meta")),
        })

    return groups


def sanitize_connectors(value: Any) -> List[Dict[str, Any]]:
    """Keep connectors whose id and both endpoints are non-empty strings."""
    if not isinstance(value, list):
        return []

    connectors = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        connector_id = _optional_string(entry.get("id"))
        from_card_id = _optional_string(entry.get("fromCardId"))
        to_card_id = _optional_string(entry.get("toCardId"))
        if not connector_id or not from_card_id or not to_card_id:
            continue

        connectors.append({
            "id": connector_id,
            "fromCardId": from_card_id,
            "toCardId": to_card_id,
            "label": _optional_string(entry.get("label")),
            "style": _optional_string(entry.get("style")),
            "meta": _optional_meta(entry.get("meta")),
        })

    return connectors


def sanitize_card_patches(value: Any) -> List[Dict[str, Any]]:
    """
    Keep card placement patches that carry something to write.

    Each surviving patch has `cardId` plus only the finite members of
    x / y / zIndex; zIndex is truncated toward zero.
    """
    if not isinstance(value, list):
        return []

    patches = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        card_id = _optional_string(entry.get("cardId"))
        if not card_id:
            continue

        patch: Dict[str, Any] = {"cardId": card_id}
        if is_finite_number(entry.get("x")):
            patch["x"] = entry["x"]
        if is_finite_number(entry.get("y")):
            patch["y"] = entry["y"]
        if is_finite_number(entry.get("zIndex")):
            patch["zIndex"] = math.trunc(entry["zIndex"])

        if len(patch) == 1:
            continue
        patches.append(patch)

    return patches


def dedupe_card_patches(patches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One patch per card id; the last occurrence wins, first-seen order kept."""
    by_card: Dict[str, Dict[str, Any]] = {}
    for patch in patches:
        by_card[patch["cardId"]] = patch
    return list(by_card.values())


def default_card_position(index: int) -> Dict[str, float]:
    """
    Grid position for the index-th card (newest first) with no stored placement.

    The jitter is a fixed function of the index so every render agrees.
    """
    jitter_x = (index * 37) % 80 - 40
    jitter_y = (index * 53) % 70 - 35
    return {
        "x": (index % GRID_COLUMNS) * GRID_COLUMN_WIDTH + jitter_x,
        "y": (index // GRID_COLUMNS) * GRID_ROW_HEIGHT + jitter_y,
    }
