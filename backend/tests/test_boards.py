"""
Curio Backend — Board Endpoint Tests
=====================================

What:  Board creation (slugs), listing, the board page, updates, and the
       soft delete / restore pair.
"""

import pytest


async def create(client, title="Deep Work Talks", **extra):
    response = await client.post("/api/boards", json={"title": title, **extra})
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateBoard:

    @pytest.mark.asyncio
    async def test_create_public_board(self, alice):
        board = await create(alice, description="  Talks worth rewatching  ")
        assert board["slug"] == "deep-work-talks"
        assert board["isPublic"] is True
        assert board["isInbox"] is False
        assert board["description"] == "Talks worth rewatching"
        assert board["shareUrl"] == "https://curio.test/board/deep-work-talks"

    @pytest.mark.asyncio
    async def test_private_board_has_no_share_url(self, alice):
        board = await create(alice, isPublic=False)
        assert board["shareUrl"] is None

    @pytest.mark.asyncio
    async def test_duplicate_title_gets_suffixed_slug(self, alice, bob):
        first = await create(alice)
        second = await create(bob)
        assert first["slug"] == "deep-work-talks"
        assert second["slug"].startswith("deep-work-talks-")
        assert second["slug"] != first["slug"]

    @pytest.mark.asyncio
    async def test_blank_title_is_400(self, alice):
        response = await alice.post("/api/boards", json={"title": "   "})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "title"

    @pytest.mark.asyncio
    async def test_title_without_letters_is_400(self, alice):
        response = await alice.post("/api/boards", json={"title": "!!!"})
        assert response.status_code == 400
        assert response.json()["message"] == "Board title must contain at least one letter or digit."

    @pytest.mark.asyncio
    async def test_requires_session(self, users, anon):
        response = await anon.post("/api/boards", json={"title": "Nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_session_is_anonymous(self, session_factory, users, client_for):
        from datetime import datetime, timezone

        from curio.models import AuthSession

        async with session_factory() as session:
            session.add(AuthSession(
                token="token-expired",
                user_id=users["alice"].id,
                expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc),
            ))
            await session.commit()

        client = client_for(None)
        client.cookies.set("curio_session", "token-expired")
        response = await client.post("/api/boards", json={"title": "Nope"})
        assert response.status_code == 401


class TestListBoards:

    @pytest.mark.asyncio
    async def test_active_newest_first_then_trash(self, alice, bob):
        first = await create(alice, title="First")
        second = await create(alice, title="Second")
        await create(bob, title="Not mine")

        listing = (await alice.get("/api/boards")).json()["boards"]
        assert [b["id"] for b in listing] == [second["id"], first["id"]]

        await alice.delete(f"/api/boards/{first['id']}")
        active = (await alice.get("/api/boards")).json()["boards"]
        trash = (await alice.get("/api/boards", params={"deleted": "true"})).json()["boards"]
        assert [b["id"] for b in active] == [second["id"]]
        assert [b["id"] for b in trash] == [first["id"]]
        assert trash[0]["deletedAt"] is not None


class TestBoardPage:

    @pytest.mark.asyncio
    async def test_public_page_for_anonymous(self, make_board, anon):
        board = await make_board(cards=2)
        response = await anon.get(f"/api/boards/by-slug/{board.slug}")
        assert response.status_code == 200
        page = response.json()
        assert page["board"]["id"] == board.id
        assert page["creator"]["fullName"] == "Alice"
        assert [c["id"] for c in page["cards"]] == list(reversed(board.card_ids))
        assert page["canEdit"] is False

    @pytest.mark.asyncio
    async def test_private_page(self, make_board, client_for):
        board = await make_board(is_public=False, members=["bob"])
        url = f"/api/boards/by-slug/{board.slug}"
        assert (await client_for(None).get(url)).status_code == 403
        assert (await client_for("carol").get(url)).status_code == 403
        assert (await client_for("bob").get(url)).json()["canEdit"] is False
        assert (await client_for("alice").get(url)).json()["canEdit"] is True

    @pytest.mark.asyncio
    async def test_unknown_slug(self, users, anon):
        assert (await anon.get("/api/boards/by-slug/nothing-here")).status_code == 404


class TestUpdateBoard:

    @pytest.mark.asyncio
    async def test_update_fields_keeps_slug(self, alice):
        board = await create(alice)
        response = await alice.patch(f"/api/boards/{board['id']}", json={"title": "Renamed", "isPublic": False})
        assert response.status_code == 200
        updated = response.json()
        assert updated["title"] == "Renamed"
        assert updated["slug"] == board["slug"]
        assert updated["isPublic"] is False
        assert updated["description"] is None

    @pytest.mark.asyncio
    async def test_only_creator_updates(self, make_board, bob):
        board = await make_board(members=["bob"])
        response = await bob.patch(f"/api/boards/{board.id}", json={"title": "Mine now"})
        assert response.status_code == 403


class TestDeleteAndRestore:

    @pytest.mark.asyncio
    async def test_restore_brings_back_cards_deleted_with_board(self, make_board, alice):
        board = await make_board(cards=3)
        earlier = board.card_ids[0]
        assert (await alice.delete(f"/api/cards/{earlier}")).status_code == 200

        deleted = await alice.delete(f"/api/boards/{board.id}")
        assert deleted.status_code == 200
        assert deleted.json()["shareUrl"] is None
        assert (await alice.get(f"/api/boards/{board.id}/cards")).status_code == 404

        restored = await alice.post(f"/api/boards/{board.id}/restore")
        assert restored.status_code == 200
        assert restored.json()["deletedAt"] is None

        cards = (await alice.get(f"/api/boards/{board.id}/cards")).json()["cards"]
        assert sorted(c["id"] for c in cards) == sorted(board.card_ids[1:])
        trash = (await alice.get(f"/api/boards/{board.id}/cards", params={"deleted": "true"})).json()["cards"]
        assert [c["id"] for c in trash] == [earlier]

    @pytest.mark.asyncio
    async def test_only_creator_deletes(self, make_board, carol):
        board = await make_board()
        assert (await carol.delete(f"/api/boards/{board.id}")).status_code == 403
