"""
Curio — Atelier Canvas Session
===============================

What:  The client-side state machine behind one open Atelier canvas: camera,
       card placements, stacking order, connectors, view mode, selection and
       the in-flight pointer gestures.
How:   One `CanvasSession` per open board. Input arrives as plain method
       calls (pointer down/move/up, wheel, toolbar actions) so any front end
       can drive it. Every change that should reach the server marks the
       affected fields dirty and notifies `on_change`; `drain_changes()`
       turns the dirty set into a layout PATCH body.
Who:   Driven by a UI layer; persisted by `curio.atelier.autosave`.

Gestures (keyed by pointer id, one per pointer):

    pointer_down on empty canvas ──▶ Panning   camera = origin + screen delta
    pointer_down on a card       ──▶ Dragging  z raised to max + 1 at once,
                                               position = origin + delta / scale
    pointer_up / pointer_cancel  ──▶ Idle      a drag that never moved more
                                               than 2 canvas px selects the card

Connect mode replaces dragging: first card = pending source, a different
second card = new connector, the same card again = cancel.

A drag counts as moved from the first sample past the threshold onward, even
if the pointer later returns to where it started.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from curio.atelier import rules

logger = logging.getLogger(__name__)

INITIAL_CAMERA = (260.0, 140.0, 1.0)
MIN_SCALE = 0.55
MAX_SCALE = 1.8
ZOOM_STEP = 0.1
DRAG_THRESHOLD = 2.0
COMPACT_BREAKPOINT = 900
DEFAULT_CONNECTOR_STYLE = "curved-dash"

# Card footprint per view mode (width, height), used for connector anchors
CARD_SIZES = {
    rules.VIEW_MODE_MINIMAL: (340, 304),
    rules.VIEW_MODE_DENSE: (260, 244),
}

STATUS_VIEW_MODE = {
    rules.VIEW_MODE_MINIMAL: "Minimal board view",
    rules.VIEW_MODE_DENSE: "Dense board view",
}


@dataclass
class Camera:
    x: float = INITIAL_CAMERA[0]
    y: float = INITIAL_CAMERA[1]
    scale: float = INITIAL_CAMERA[2]


@dataclass(frozen=True)
class CardPosition:
    x: float
    y: float


@dataclass
class PanGesture:
    pointer_id: int
    start_x: float
    start_y: float
    origin_x: float
    origin_y: float


@dataclass
class DragGesture:
    pointer_id: int
    card_id: str
    start_x: float
    start_y: float
    origin_x: float
    origin_y: float
    moved: bool = False


@dataclass
class Baseline:
    """Last values known to be stored on the server."""

    positions: Dict[str, CardPosition] = field(default_factory=dict)
    z_indices: Dict[str, int] = field(default_factory=dict)
    view_mode: str = rules.VIEW_MODE_MINIMAL
    connectors: List[Dict[str, Any]] = field(default_factory=list)
    # save sequence that last confirmed each field: "viewMode", "connectors", (card_id, field)
    confirmed: Dict[Any, int] = field(default_factory=dict)


def _next_z(z_indices: Mapping[str, int]) -> int:
    if not z_indices:
        return 1
    return max(z_indices.values()) + 1


def _fmt(value: float) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else repr(number)


def _stored_position(card: Mapping[str, Any]) -> Optional[CardPosition]:
    x = card.get("atelierX")
    y = card.get("atelierY")
    if rules.is_finite_number(x) and rules.is_finite_number(y):
        return CardPosition(x, y)
    return None


class CanvasSession:
    """
    State for one board's canvas.

    Args:
        board_id: The board being arranged
        cards: Active cards, newest first. Each mapping needs "id" and may carry
               the stored placement as "atelierX" / "atelierY" / "atelierZ"
               (the card listing shape). Cards without a stored placement get
               the default grid position for their index.
        layout: Optional layout snapshot (GET /atelier-layout body's "layout")
        on_change: Called after every change that should be persisted
    """

    def __init__(
        self,
        board_id: str,
        cards: Iterable[Mapping[str, Any]] = (),
        layout: Optional[Mapping[str, Any]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.board_id = board_id
        self.on_change = on_change

        self.camera = Camera()
        self.card_ids: List[str] = []
        self.positions: Dict[str, CardPosition] = {}
        self.z_indices: Dict[str, int] = {}
        self.next_z = 1
        self.view_mode = rules.VIEW_MODE_MINIMAL
        self.groups: List[Dict[str, Any]] = []
        self.connectors: List[Dict[str, Any]] = []

        self.connect_mode = False
        self.connector_start: Optional[str] = None
        self.selected_card_id: Optional[str] = None
        self.status_note: Optional[str] = None
        self.compact = False

        self._gestures: Dict[int, Any] = {}
        self._connector_counter = 0
        self._baseline = Baseline()
        self._dirty_cards: Dict[str, Set[str]] = {}
        self._view_mode_dirty = False
        self._connectors_dirty = False

        self.hydrate(cards, layout)

    # ── Loading ───────────────────────────────────────────────────────────

    def hydrate(
        self,
        cards: Iterable[Mapping[str, Any]],
        layout: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Replace all state with freshly loaded data.

        Never notifies `on_change`: data that was just loaded is not written back.
        """
        cards = list(cards)
        layout = layout or {}
        layout_z = {
            entry.get("cardId"): entry.get("zIndex")
            for entry in layout.get("cards") or []
            if isinstance(entry, Mapping)
        }

        baseline = Baseline(
            view_mode=rules.normalize_view_mode(layout.get("viewMode")),
            connectors=rules.sanitize_connectors(layout.get("connectors")),
        )
        for index, card in enumerate(cards):
            card_id = card["id"]
            position = _stored_position(card)
            if position is None:
                position = CardPosition(**rules.default_card_position(index))
            baseline.positions[card_id] = position

            z = layout_z.get(card_id, card.get("atelierZ"))
            baseline.z_indices[card_id] = rules.to_finite_integer(z, 0)

        self.card_ids = [card["id"] for card in cards]
        self.groups = rules.sanitize_groups(layout.get("groups"))
        self._baseline = baseline
        self.view_mode = baseline.view_mode
        self.connectors = [dict(connector) for connector in baseline.connectors]
        self.positions = dict(baseline.positions)
        self.z_indices = dict(baseline.z_indices)
        self.next_z = _next_z(self.z_indices)
        self.connector_start = None
        self._gestures.clear()
        self._clear_dirty()

    def sync_cards(self, cards: Iterable[Mapping[str, Any]]) -> None:
        """
        Follow a changed card list (card added, deleted or restored).

        Cards already on the canvas keep their current placement; new ones take
        their stored placement or a grid slot. Does not notify.
        """
        cards = list(cards)
        positions: Dict[str, CardPosition] = {}
        z_indices: Dict[str, int] = {}
        for index, card in enumerate(cards):
            card_id = card["id"]
            stored = _stored_position(card)
            if card_id not in self._baseline.positions:
                self._baseline.positions[card_id] = (
                    stored or CardPosition(**rules.default_card_position(index))
                )
                self._baseline.z_indices[card_id] = rules.to_finite_integer(card.get("atelierZ"), 0)
            positions[card_id] = self.positions.get(card_id, self._baseline.positions[card_id])
            z_indices[card_id] = self.z_indices.get(card_id, self._baseline.z_indices[card_id])

        self.card_ids = [card["id"] for card in cards]
        self.positions = positions
        self.z_indices = z_indices
        self.next_z = _next_z(z_indices)
        if self.selected_card_id not in positions:
            self.selected_card_id = None

    # ── Derived values ────────────────────────────────────────────────────

    @property
    def card_size(self) -> Tuple[int, int]:
        return CARD_SIZES[self.view_mode]

    def connector_paths(self) -> List[Tuple[str, str]]:
        """
        SVG path data for every drawable connector, as (connector id, d).

        Connectors whose endpoints are not on the canvas are skipped but kept.
        """
        if self.compact:
            return []

        width, height = self.card_size
        paths = []
        for connector in self.connectors:
            start = self.positions.get(connector["fromCardId"])
            end = self.positions.get(connector["toCardId"])
            if start is None or end is None:
                continue
            start_x = start.x + width / 2
            start_y = start.y + height / 2
            end_x = end.x + width / 2
            end_y = end.y + height / 2
            control_x = (start_x + end_x) / 2
            paths.append((
                connector["id"],
                f"M {_fmt(start_x)} {_fmt(start_y)} C {_fmt(control_x)} {_fmt(start_y)}, "
                f"{_fmt(control_x)} {_fmt(end_y)}, {_fmt(end_x)} {_fmt(end_y)}",
            ))
        return paths

    def snapshot(self) -> Dict[str, Any]:
        """The full current layout in the API's snapshot shape."""
        return {
            "boardId": self.board_id,
            "viewMode": self.view_mode,
            "groups": [dict(group) for group in self.groups],
            "connectors": [dict(connector) for connector in self.connectors],
            "cards": [
                {
                    "cardId": card_id,
                    "x": self.positions[card_id].x,
                    "y": self.positions[card_id].y,
                    "zIndex": self.z_indices.get(card_id, 0),
                }
                for card_id in self.card_ids
            ],
        }

    # ── Viewport ──────────────────────────────────────────────────────────

    def set_viewport_width(self, width: float) -> None:
        """Switch to the one-dimensional list at or below the breakpoint."""
        compact = width <= COMPACT_BREAKPOINT
        if compact and not self.compact:
            self._gestures.clear()
            self.connector_start = None
        self.compact = compact

    # ── Pointer gestures ──────────────────────────────────────────────────

    def pointer_down(
        self,
        pointer_id: int,
        screen_x: float,
        screen_y: float,
        card_id: Optional[str] = None,
    ) -> None:
        """
        Start a gesture. `card_id` is the card under the pointer, None for
        empty canvas.
        """
        if self.compact:
            if card_id is not None:
                self.select_card(card_id)
            return

        if card_id is None:
            self._gestures[pointer_id] = PanGesture(
                pointer_id=pointer_id,
                start_x=screen_x,
                start_y=screen_y,
                origin_x=self.camera.x,
                origin_y=self.camera.y,
            )
            return

        if card_id not in self.positions:
            logger.debug("Pointer down on unknown card %s ignored", card_id)
            return

        if self.connect_mode:
            self._connect(card_id)
            return

        self.z_indices[card_id] = self.next_z
        self.next_z += 1
        self._mark_card(card_id, "zIndex")

        origin = self.positions[card_id]
        self._gestures[pointer_id] = DragGesture(
            pointer_id=pointer_id,
            card_id=card_id,
            start_x=screen_x,
            start_y=screen_y,
            origin_x=origin.x,
            origin_y=origin.y,
        )
        self._changed()

    def pointer_move(self, pointer_id: int, screen_x: float, screen_y: float) -> None:
        gesture = self._gestures.get(pointer_id)
        if gesture is None:
            return

        if isinstance(gesture, PanGesture):
            self.camera.x = gesture.origin_x + (screen_x - gesture.start_x)
            self.camera.y = gesture.origin_y + (screen_y - gesture.start_y)
            return

        dx = (screen_x - gesture.start_x) / self.camera.scale
        dy = (screen_y - gesture.start_y) / self.camera.scale
        if not gesture.moved and math.hypot(dx, dy) > DRAG_THRESHOLD:
            gesture.moved = True

        self.positions[gesture.card_id] = CardPosition(gesture.origin_x + dx, gesture.origin_y + dy)
        self._mark_card(gesture.card_id, "x", "y")
        self._changed()

    def pointer_up(self, pointer_id: int) -> None:
        """End a gesture; an unmoved drag opens the card."""
        gesture = self._gestures.pop(pointer_id, None)
        if isinstance(gesture, DragGesture) and not gesture.moved:
            self.select_card(gesture.card_id)

    def pointer_cancel(self, pointer_id: int) -> None:
        self._gestures.pop(pointer_id, None)

    def gesture_state(self, pointer_id: int) -> str:
        """Returns "idle", "panning" or "dragging" for the given pointer."""
        gesture = self._gestures.get(pointer_id)
        if isinstance(gesture, PanGesture):
            return "panning"
        if isinstance(gesture, DragGesture):
            return "dragging"
        return "idle"

    def wheel(self, delta_y: float) -> None:
        """Zoom one step per wheel event; positive delta zooms out."""
        if self.compact:
            return
        direction = -1 if delta_y > 0 else 1
        scale = self.camera.scale + direction * ZOOM_STEP
        self.camera.scale = min(MAX_SCALE, max(MIN_SCALE, round(scale, 4)))

    # ── Toolbar actions ───────────────────────────────────────────────────

    def select_card(self, card_id: Optional[str]) -> None:
        self.selected_card_id = card_id

    def toggle_connect_mode(self) -> None:
        if self.compact:
            return
        self.connect_mode = not self.connect_mode
        self.connector_start = None
        self.status_note = "Connector mode on." if self.connect_mode else "Connector mode off."

    def set_view_mode(self, mode: str) -> None:
        parsed = rules.parse_view_mode(mode)
        if parsed is None:
            raise ValueError(f"Unknown view mode '{mode}'")
        self.status_note = STATUS_VIEW_MODE[parsed]
        if parsed == self.view_mode:
            return
        self.view_mode = parsed
        self._view_mode_dirty = True
        self._changed()

    def clear_connectors(self) -> None:
        had_connectors = bool(self.connectors)
        self.connectors = []
        self.connector_start = None
        self.status_note = "Connectors cleared."
        if had_connectors:
            self._connectors_dirty = True
            self._changed()

    def reset(self) -> None:
        """
        Camera back to its default; every card back to its last persisted
        placement (grid slot when it was never persisted).
        """
        self.camera = Camera()
        self._gestures.clear()

        reverted = False
        for card_id in self.card_ids:
            position = self._baseline.positions[card_id]
            z = self._baseline.z_indices.get(card_id, 0)
            if self.positions.get(card_id) != position:
                self.positions[card_id] = position
                self._mark_card(card_id, "x", "y")
                reverted = True
            if self.z_indices.get(card_id) != z:
                self.z_indices[card_id] = z
                self._mark_card(card_id, "zIndex")
                reverted = True

        self.next_z = _next_z(self.z_indices)
        self.status_note = "Canvas reset."
        if reverted:
            self._changed()

    # ── Persistence bookkeeping ───────────────────────────────────────────

    @property
    def has_changes(self) -> bool:
        return bool(self._dirty_cards) or self._view_mode_dirty or self._connectors_dirty

    def drain_changes(self) -> Optional[Dict[str, Any]]:
        """
        Build a PATCH body from everything changed since the last drain and
        clear the dirty set. Returns None when nothing changed.

        Card entries carry only the fields that changed, with current values.
        """
        if not self.has_changes:
            return None

        payload: Dict[str, Any] = {}
        if self._view_mode_dirty:
            payload["viewMode"] = self.view_mode
        if self._connectors_dirty:
            payload["connectors"] = [dict(connector) for connector in self.connectors]

        cards = []
        for card_id, fields in self._dirty_cards.items():
            if card_id not in self.positions:
                continue
            entry: Dict[str, Any] = {"cardId": card_id}
            position = self.positions[card_id]
            if "x" in fields:
                entry["x"] = position.x
            if "y" in fields:
                entry["y"] = position.y
            if "zIndex" in fields:
                entry["zIndex"] = self.z_indices.get(card_id, 0)
            cards.append(entry)
        if cards:
            payload["cards"] = cards

        self._clear_dirty()
        return payload or None

    def requeue(self, payload: Mapping[str, Any]) -> None:
        """
        Mark the fields of an unsaved payload dirty again so they ride along
        with the next save. Does not notify.
        """
        if "viewMode" in payload:
            self._view_mode_dirty = True
        if "connectors" in payload:
            self._connectors_dirty = True
        for entry in payload.get("cards") or []:
            fields = [name for name in ("x", "y", "zIndex") if name in entry]
            self._mark_card(entry["cardId"], *fields)

    def mark_persisted(self, payload: Mapping[str, Any], sequence: Optional[int] = None) -> None:
        """
        Record a confirmed PATCH body as the new baseline for `reset()`.

        With a save `sequence`, a field already confirmed by a later save
        keeps that later value; responses can arrive out of order.
        """
        baseline = self._baseline

        def newer(key: Any) -> bool:
            if sequence is None:
                return True
            if baseline.confirmed.get(key, 0) > sequence:
                return False
            baseline.confirmed[key] = sequence
            return True

        if "viewMode" in payload and newer("viewMode"):
            baseline.view_mode = rules.normalize_view_mode(payload["viewMode"])
        if "connectors" in payload and newer("connectors"):
            baseline.connectors = rules.sanitize_connectors(payload["connectors"])
        for entry in rules.sanitize_card_patches(payload.get("cards")):
            card_id = entry["cardId"]
            previous = baseline.positions.get(card_id, CardPosition(0, 0))
            x = entry["x"] if "x" in entry and newer((card_id, "x")) else previous.x
            y = entry["y"] if "y" in entry and newer((card_id, "y")) else previous.y
            baseline.positions[card_id] = CardPosition(x, y)
            if "zIndex" in entry and newer((card_id, "zIndex")):
                baseline.z_indices[card_id] = entry["zIndex"]

    # ── Internals ─────────────────────────────────────────────────────────

    def _connect(self, card_id: str) -> None:
        if self.connector_start is None:
            self.connector_start = card_id
            self.status_note = "Select a second card to create a connector."
            return

        if self.connector_start == card_id:
            self.connector_start = None
            self.status_note = "Connector start cleared."
            return

        self._connector_counter += 1
        self.connectors.append({
            "id": f"{self.connector_start}-{card_id}-{self._connector_counter}",
            "fromCardId": self.connector_start,
            "toCardId": card_id,
            "label": None,
            "style": DEFAULT_CONNECTOR_STYLE,
            "meta": None,
        })
        self.connector_start = None
        self.status_note = "Connector added."
        self._connectors_dirty = True
        self._changed()

    def _mark_card(self, card_id: str, *fields: str) -> None:
        self._dirty_cards.setdefault(card_id, set()).update(fields)

    def _clear_dirty(self) -> None:
        self._dirty_cards = {}
        self._view_mode_dirty = False
        self._connectors_dirty = False

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
