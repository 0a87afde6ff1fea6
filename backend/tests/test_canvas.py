"""
Curio — Atelier Canvas Session Unit Tests
==========================================

What:  The client-side canvas state machine: hydration, gestures, zoom,
       connect mode, compact mode, reset and the dirty-set payloads.
How:   Plain synchronous calls; `on_change` is a MagicMock.
"""

from unittest.mock import MagicMock

import pytest

from curio.atelier import rules
from curio.atelier.canvas import CanvasSession, CardPosition


def _cards(*ids, **stored):
    """Card listing entries, newest first; stored={"a": (x, y)} adds a placement."""
    cards = []
    for card_id in ids:
        card = {"id": card_id}
        if card_id in stored:
            card["atelierX"], card["atelierY"] = stored[card_id]
        cards.append(card)
    return cards


class TestHydration:

    def test_hydration_never_notifies(self):
        on_change = MagicMock()
        session = CanvasSession("board-1", _cards("a", "b"), on_change=on_change)
        session.hydrate(_cards("a", "b", "c"))
        on_change.assert_not_called()
        assert not session.has_changes

    def test_unplaced_cards_use_the_grid(self):
        session = CanvasSession("board-1", _cards("a", "b"))
        assert session.positions["a"] == CardPosition(**rules.default_card_position(0))
        assert session.positions["b"] == CardPosition(**rules.default_card_position(1))

    def test_stored_placement_wins(self):
        session = CanvasSession("board-1", _cards("a", a=(10, 20)))
        assert session.positions["a"] == CardPosition(10, 20)

    def test_layout_supplies_z_view_mode_and_connectors(self):
        layout = {
            "viewMode": "dense",
            "connectors": [{"id": "c1", "fromCardId": "a", "toCardId": "b"}],
            "cards": [{"cardId": "a", "x": 0, "y": 0, "zIndex": 7}],
        }
        session = CanvasSession("board-1", _cards("a", "b"), layout=layout)
        assert session.view_mode == "dense"
        assert session.z_indices == {"a": 7, "b": 0}
        assert session.next_z == 8
        assert [c["id"] for c in session.connectors] == ["c1"]


class TestDragging:

    def setup_method(self):
        self.on_change = MagicMock()
        self.session = CanvasSession("board-1", _cards("a", "b", a=(0, 0), b=(400, 0)), on_change=self.on_change)

    def test_pointer_down_raises_card_immediately(self):
        self.session.pointer_down(1, 100, 100, card_id="a")
        assert self.session.gesture_state(1) == "dragging"
        assert self.session.z_indices["a"] == 1
        self.on_change.assert_called_once()

    def test_drag_moves_by_screen_delta(self):
        self.session.pointer_down(1, 100, 100, card_id="a")
        self.session.pointer_move(1, 150, 130)
        self.session.pointer_up(1)
        assert self.session.positions["a"] == CardPosition(50, 30)
        assert self.session.selected_card_id is None
        assert self.session.gesture_state(1) == "idle"

    def test_drag_delta_is_divided_by_scale(self):
        self.session.camera.scale = 2
        self.session.pointer_down(1, 0, 0, card_id="a")
        self.session.pointer_move(1, 100, -40)
        assert self.session.positions["a"] == CardPosition(50, -20)

    def test_tiny_drag_is_a_select(self):
        self.session.pointer_down(1, 100, 100, card_id="b")
        self.session.pointer_move(1, 101, 101)
        self.session.pointer_up(1)
        assert self.session.selected_card_id == "b"

    def test_moved_is_sticky(self):
        self.session.pointer_down(1, 100, 100, card_id="a")
        self.session.pointer_move(1, 120, 100)
        self.session.pointer_move(1, 100, 100)
        self.session.pointer_up(1)
        assert self.session.selected_card_id is None

    def test_z_strictly_increases_across_drags(self):
        seen = []
        for card_id in ("a", "b", "a", "b"):
            self.session.pointer_down(1, 0, 0, card_id=card_id)
            self.session.pointer_up(1)
            seen.append(self.session.z_indices[card_id])
        assert seen == [1, 2, 3, 4]
        assert self.session.z_indices["a"] < self.session.z_indices["b"]

    def test_unknown_card_is_ignored(self):
        self.session.pointer_down(1, 0, 0, card_id="zzz")
        assert self.session.gesture_state(1) == "idle"
        self.on_change.assert_not_called()


class TestPanAndZoom:

    def setup_method(self):
        self.session = CanvasSession("board-1", _cards("a"))

    def test_pan_moves_camera_without_persisting(self):
        self.session.pointer_down(1, 10, 10)
        assert self.session.gesture_state(1) == "panning"
        self.session.pointer_move(1, 40, -10)
        assert (self.session.camera.x, self.session.camera.y) == (290, 120)
        assert not self.session.has_changes

    def test_wheel_steps_and_clamps(self):
        self.session.wheel(-100)
        assert self.session.camera.scale == pytest.approx(1.1)
        for _ in range(20):
            self.session.wheel(-100)
        assert self.session.camera.scale == 1.8
        for _ in range(30):
            self.session.wheel(100)
        assert self.session.camera.scale == 0.55


class TestConnectMode:

    def setup_method(self):
        self.on_change = MagicMock()
        self.session = CanvasSession("board-1", _cards("a", "b"), on_change=self.on_change)
        self.session.toggle_connect_mode()

    def test_two_cards_make_a_connector(self):
        self.session.pointer_down(1, 0, 0, card_id="a")
        assert self.session.status_note == "Select a second card to create a connector."
        self.session.pointer_down(1, 0, 0, card_id="b")

        assert self.session.connectors == [{
            "id": "a-b-1",
            "fromCardId": "a",
            "toCardId": "b",
            "label": None,
            "style": "curved-dash",
            "meta": None,
        }]
        assert self.session.status_note == "Connector added."
        self.on_change.assert_called_once()

    def test_same_card_twice_cancels(self):
        self.session.pointer_down(1, 0, 0, card_id="a")
        self.session.pointer_down(1, 0, 0, card_id="a")
        assert self.session.connector_start is None
        assert self.session.connectors == []
        assert self.session.status_note == "Connector start cleared."

    def test_no_dragging_in_connect_mode(self):
        self.session.pointer_down(1, 0, 0, card_id="a")
        assert self.session.gesture_state(1) == "idle"
        assert self.session.z_indices["a"] == 0

    def test_clear_connectors(self):
        self.session.pointer_down(1, 0, 0, card_id="a")
        self.session.pointer_down(1, 0, 0, card_id="b")
        self.session.drain_changes()
        self.session.clear_connectors()
        assert self.session.drain_changes() == {"connectors": []}


class TestCompactMode:

    def setup_method(self):
        self.session = CanvasSession(
            "board-1",
            _cards("a", "b"),
            layout={"connectors": [{"id": "c1", "fromCardId": "a", "toCardId": "b"}]},
        )
        self.session.set_viewport_width(900)

    def test_tap_selects_without_gesture(self):
        self.session.pointer_down(1, 0, 0, card_id="a")
        assert self.session.selected_card_id == "a"
        assert self.session.gesture_state(1) == "idle"
        assert not self.session.has_changes

    def test_no_zoom_or_connectors(self):
        self.session.wheel(-100)
        assert self.session.camera.scale == 1
        assert self.session.connector_paths() == []

    def test_wide_viewport_leaves_compact_mode(self):
        self.session.set_viewport_width(1200)
        assert not self.session.compact
        assert len(self.session.connector_paths()) == 1


class TestConnectorPaths:

    def test_cubic_path_between_centres(self):
        session = CanvasSession(
            "board-1",
            _cards("a", "b", a=(0, 0), b=(400, 100)),
            layout={"connectors": [{"id": "c1", "fromCardId": "a", "toCardId": "b"}]},
        )
        assert session.connector_paths() == [("c1", "M 170 152 C 370 152, 370 252, 570 252")]

    def test_dense_cards_are_smaller(self):
        session = CanvasSession(
            "board-1",
            _cards("a", "b", a=(0, 0), b=(400, 100)),
            layout={"viewMode": "dense", "connectors": [{"id": "c1", "fromCardId": "a", "toCardId": "b"}]},
        )
        assert session.connector_paths() == [("c1", "M 130 122 C 330 122, 330 222, 530 222")]

    def test_dangling_connectors_are_kept_but_not_drawn(self):
        session = CanvasSession(
            "board-1",
            _cards("a"),
            layout={"connectors": [{"id": "c1", "fromCardId": "a", "toCardId": "gone"}]},
        )
        assert session.connector_paths() == []
        assert len(session.connectors) == 1


class TestPersistenceBookkeeping:

    def setup_method(self):
        self.on_change = MagicMock()
        self.session = CanvasSession("board-1", _cards("a", "b", a=(0, 0), b=(400, 0)), on_change=self.on_change)

    def _drag(self, card_id, dx, dy):
        self.session.pointer_down(1, 0, 0, card_id=card_id)
        self.session.pointer_move(1, dx, dy)
        self.session.pointer_up(1)

    def test_drain_carries_only_dirty_fields(self):
        self._drag("a", 30, 40)
        assert self.session.drain_changes() == {"cards": [{"cardId": "a", "x": 30, "y": 40, "zIndex": 1}]}
        assert self.session.drain_changes() is None

    def test_view_mode(self):
        self.session.set_view_mode("minimal")
        self.on_change.assert_not_called()
        assert self.session.status_note == "Minimal board view"

        self.session.set_view_mode("dense")
        self.on_change.assert_called_once()
        assert self.session.drain_changes() == {"viewMode": "dense"}

        with pytest.raises(ValueError):
            self.session.set_view_mode("huge")

    def test_reset_reverts_to_persisted_values(self):
        self._drag("a", 30, 40)
        payload = self.session.drain_changes()
        self.session.mark_persisted(payload)

        self._drag("a", 100, 100)
        self.session.drain_changes()
        self.session.camera.scale = 1.5
        self.on_change.reset_mock()

        self.session.reset()
        assert self.session.positions["a"] == CardPosition(30, 40)
        assert self.session.z_indices["a"] == 1
        assert (self.session.camera.x, self.session.camera.y, self.session.camera.scale) == (260, 140, 1)
        assert self.session.status_note == "Canvas reset."
        self.on_change.assert_called_once()
        assert self.session.drain_changes() == {"cards": [{"cardId": "a", "x": 30, "y": 40, "zIndex": 1}]}

    def test_reset_without_changes_does_not_persist(self):
        self.session.reset()
        self.on_change.assert_not_called()
        assert not self.session.has_changes

    def test_requeue_restores_dirty_fields(self):
        self._drag("b", 10, 0)
        payload = self.session.drain_changes()
        self.session.requeue(payload)
        assert self.session.drain_changes() == payload

    def test_sync_cards_keeps_current_placement(self):
        self._drag("a", 30, 40)
        self.session.sync_cards(_cards("new", "a", "b"))
        assert self.session.positions["a"] == CardPosition(30, 40)
        assert self.session.positions["new"] == CardPosition(**rules.default_card_position(0))
        assert self.session.card_ids == ["new", "a", "b"]
