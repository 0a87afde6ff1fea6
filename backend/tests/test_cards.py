"""
Curio Backend — Card Endpoint Tests
====================================

What:  Card creation with YouTube metadata, listing with placements, edits,
       soft delete and restore, and who may do each.
"""

import pytest


class TestCreateCard:

    @pytest.mark.asyncio
    async def test_youtube_card_gets_metadata(self, make_board, alice):
        board = await make_board()
        response = await alice.post(f"/api/boards/{board.id}/cards", json={
            "url": "https://youtu.be/dQw4w9WgXcQ?t=1m5s",
            "title": "  Classic  ",
            "creatorNote": "   ",
        })
        assert response.status_code == 201
        card = response.json()
        assert card["sourceType"] == "youtube"
        assert card["youtubeVideoId"] == "dQw4w9WgXcQ"
        assert card["youtubeTimestamp"] == 65
        assert card["thumbnailUrl"] == "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
        assert card["embedUrl"] == "https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ?start=65&rel=0"
        assert card["title"] == "Classic"
        assert card["creatorNote"] is None
        assert card["atelierX"] is None

    @pytest.mark.asyncio
    async def test_unreadable_youtube_time_is_dropped(self, make_board, alice):
        board = await make_board()
        response = await alice.post(f"/api/boards/{board.id}/cards", json={
            "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=%C2%B2",
        })
        assert response.status_code == 201
        card = response.json()
        assert card["youtubeVideoId"] == "dQw4w9WgXcQ"
        assert card["youtubeTimestamp"] is None

    @pytest.mark.asyncio
    async def test_given_thumbnail_wins_for_web_links(self, make_board, alice):
        board = await make_board()
        response = await alice.post(f"/api/boards/{board.id}/cards", json={
            "url": "https://example.com/essay",
            "thumbnailUrl": "https://example.com/cover.png",
        })
        card = response.json()
        assert card["sourceType"] == "web"
        assert card["youtubeVideoId"] is None
        assert card["embedUrl"] is None
        assert card["thumbnailUrl"] == "https://example.com/cover.png"

    @pytest.mark.asyncio
    async def test_blank_url_is_400(self, make_board, alice):
        board = await make_board()
        response = await alice.post(f"/api/boards/{board.id}/cards", json={"url": "  "})
        assert response.status_code == 400
        assert response.json()["message"] == "Missing URL"
        assert response.json()["details"]["field"] == "url"

    @pytest.mark.asyncio
    async def test_absent_url_is_400(self, make_board, alice):
        board = await make_board()
        response = await alice.post(f"/api/boards/{board.id}/cards", json={"title": "No link"})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "url"

    @pytest.mark.asyncio
    async def test_member_cannot_add(self, make_board, bob):
        board = await make_board(members=["bob"])
        response = await bob.post(f"/api/boards/{board.id}/cards", json={"url": "https://example.com"})
        assert response.status_code == 403


class TestListCards:

    @pytest.mark.asyncio
    async def test_listing_includes_placement(self, make_board, alice, anon):
        board = await make_board(cards=2)
        a = board.card_ids[0]
        await alice.patch(f"/api/boards/{board.id}/atelier-layout", json={
            "cards": [{"cardId": a, "x": 12, "y": 34, "zIndex": 5}],
        })

        cards = (await anon.get(f"/api/boards/{board.id}/cards")).json()["cards"]
        by_id = {c["id"]: c for c in cards}
        assert [c["id"] for c in cards] == list(reversed(board.card_ids))
        assert (by_id[a]["atelierX"], by_id[a]["atelierY"], by_id[a]["atelierZ"]) == (12, 34, 5)
        assert by_id[board.card_ids[1]]["atelierX"] is None

    @pytest.mark.asyncio
    async def test_trash_needs_creator(self, make_board, anon, bob):
        board = await make_board(cards=1, members=["bob"])
        assert (await anon.get(f"/api/boards/{board.id}/cards", params={"deleted": "true"})).status_code == 401
        assert (await bob.get(f"/api/boards/{board.id}/cards", params={"deleted": "true"})).status_code == 403


class TestEditDeleteRestore:

    @pytest.mark.asyncio
    async def test_update_only_sent_fields(self, make_board, alice):
        board = await make_board(cards=1)
        card_id = board.card_ids[0]

        response = await alice.patch(f"/api/cards/{card_id}", json={"creatorNote": "Watch at 2x"})
        assert response.status_code == 200
        card = response.json()
        assert card["creatorNote"] == "Watch at 2x"
        assert card["title"] == "Card 0"

    @pytest.mark.asyncio
    async def test_delete_keeps_placement_for_restore(self, make_board, alice):
        board = await make_board(cards=1)
        card_id = board.card_ids[0]
        await alice.patch(f"/api/boards/{board.id}/atelier-layout", json={
            "cards": [{"cardId": card_id, "x": 70, "y": 80}],
        })

        assert (await alice.delete(f"/api/cards/{card_id}")).json()["deletedAt"] is not None
        assert (await alice.get(f"/api/boards/{board.id}/cards")).json()["cards"] == []
        assert (await alice.delete(f"/api/cards/{card_id}")).status_code == 404

        restored = await alice.post(f"/api/cards/{card_id}/restore")
        assert restored.status_code == 200
        assert (restored.json()["atelierX"], restored.json()["atelierY"]) == (70, 80)

    @pytest.mark.asyncio
    async def test_stranger_cannot_edit(self, make_board, carol):
        board = await make_board(cards=1)
        response = await carol.patch(f"/api/cards/{board.card_ids[0]}", json={"title": "Hijacked"})
        assert response.status_code == 403
