"""
Curio — Atelier Layout Rules Unit Tests
========================================

What:  Sanitization shared by the layout endpoint and the canvas, plus the
       default grid.
"""

import math

import pytest

from curio.atelier import rules


class TestNumbers:

    def test_booleans_are_not_numbers(self):
        assert not rules.is_finite_number(True)
        assert rules.to_finite_number(False, 7) == 7

    def test_non_finite_falls_back(self):
        assert rules.to_finite_number(math.inf) == 0
        assert rules.to_finite_number(math.nan, 3) == 3
        assert rules.to_finite_number("12") == 0

    def test_int_too_large_for_a_float_is_not_finite(self):
        huge = 10 ** 400
        assert not rules.is_finite_number(huge)
        assert rules.to_finite_number(huge, 5) == 5
        assert rules.sanitize_card_patches([{"cardId": "a", "x": huge}]) == []

    def test_integer_truncates_toward_zero(self):
        assert rules.to_finite_integer(4.9) == 4
        assert rules.to_finite_integer(-4.9) == -4
        assert rules.to_finite_integer(None, 2) == 2


class TestViewMode:

    def test_normalize_is_lenient(self):
        assert rules.normalize_view_mode("dense") == "dense"
        assert rules.normalize_view_mode("huge") == "minimal"
        assert rules.normalize_view_mode(None) == "minimal"

    def test_parse_is_strict(self):
        assert rules.parse_view_mode("minimal") == "minimal"
        assert rules.parse_view_mode("Dense") is None
        assert rules.parse_view_mode(1) is None


class TestGroupsAndConnectors:

    def test_groups(self):
        groups = rules.sanitize_groups([
            {"id": " g1 ", "cardIds": [" a ", "", 3, "b"], "label": "Intro", "meta": {"k": 1}},
            {"id": "", "cardIds": ["a"]},
            {"cardIds": ["a"]},
            "garbage",
            {"id": "g2", "cardIds": "a", "meta": ["not", "a", "dict"], "color": 5},
        ])
        assert groups == [
            {"id": "g1", "cardIds": ["a", "b"], "label": "Intro", "color": None, "meta": {"k": 1}},
            {"id": "g2", "cardIds": [], "label": None, "color": None, "meta": None},
        ]

    def test_groups_not_a_list(self):
        assert rules.sanitize_groups({"id": "g"}) == []

    def test_connectors_need_both_endpoints(self):
        connectors = rules.sanitize_connectors([
            {"id": "c1", "fromCardId": "a", "toCardId": "b", "style": "curved-dash"},
            {"id": "c2", "fromCardId": "a"},
            {"id": "c3", "fromCardId": "a", "toCardId": "  "},
        ])
        assert connectors == [
            {"id": "c1", "fromCardId": "a", "toCardId": "b", "label": None, "style": "curved-dash", "meta": None},
        ]


class TestCardPatches:

    def test_only_finite_fields_survive(self):
        patches = rules.sanitize_card_patches([
            {"cardId": "a", "x": 10, "y": "20", "zIndex": 3.7},
            {"cardId": "b", "x": math.nan},
            {"cardId": "c", "zIndex": -2.5},
            {"cardId": "", "x": 1},
            {"x": 1},
            {"cardId": "d", "x": True},
        ])
        assert patches == [
            {"cardId": "a", "x": 10, "zIndex": 3},
            {"cardId": "c", "zIndex": -2},
        ]

    def test_dedupe_keeps_last_occurrence(self):
        patches = rules.dedupe_card_patches([
            {"cardId": "a", "x": 1},
            {"cardId": "b", "x": 2},
            {"cardId": "a", "y": 9},
        ])
        assert patches == [{"cardId": "a", "y": 9}, {"cardId": "b", "x": 2}]


@pytest.mark.parametrize("index, expected", [
    (0, {"x": -40, "y": -35}),
    (1, {"x": 377, "y": 18}),
    (4, {"x": 28, "y": 317}),
    (5, {"x": 365, "y": 370}),
])
def test_default_grid(index, expected):
    assert rules.default_card_position(index) == expected
