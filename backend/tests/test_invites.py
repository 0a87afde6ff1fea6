"""
Curio Backend — Invite Endpoint Tests
======================================

What:  Invite links for private boards and redeeming them into read access.
"""

from datetime import datetime, timezone

import pytest

from curio.models import BoardInvite


class TestInvites:

    @pytest.mark.asyncio
    async def test_invite_grants_read_access(self, make_board, alice, bob):
        board = await make_board(cards=1, is_public=False)
        layout_url = f"/api/boards/{board.id}/atelier-layout"
        assert (await bob.get(layout_url)).status_code == 403

        response = await alice.post(f"/api/boards/{board.id}/invites")
        assert response.status_code == 201
        invite = response.json()
        assert invite["url"] == f"https://curio.test/invite/{invite['token']}"
        assert invite["expiresAt"] is None

        redeemed = await bob.post(f"/api/invites/{invite['token']}/redeem")
        assert redeemed.status_code == 200
        assert redeemed.json() == {"boardId": board.id, "boardSlug": board.slug}
        assert (await bob.get(layout_url)).status_code == 200

    @pytest.mark.asyncio
    async def test_redeem_is_idempotent(self, make_board, session_factory, alice, bob):
        board = await make_board(is_public=False)
        token = (await alice.post(f"/api/boards/{board.id}/invites")).json()["token"]

        for _ in range(2):
            assert (await bob.post(f"/api/invites/{token}/redeem")).status_code == 200
        assert (await alice.post(f"/api/invites/{token}/redeem")).status_code == 200

        async with session_factory() as session:
            invite = await session.get(BoardInvite, token)
            assert invite.redeemed_count == 1

    @pytest.mark.asyncio
    async def test_only_creator_invites(self, make_board, bob):
        board = await make_board(is_public=False, members=["bob"])
        response = await bob.post(f"/api/boards/{board.id}/invites")
        assert response.status_code == 403
        assert response.json()["message"] == "Only the board creator can create invites."

    @pytest.mark.asyncio
    async def test_unknown_token_is_404(self, users, bob):
        assert (await bob.post("/api/invites/not-a-token/redeem")).status_code == 404

    @pytest.mark.asyncio
    async def test_expired_token_is_404(self, make_board, session_factory, users, bob):
        board = await make_board(is_public=False)
        async with session_factory() as session:
            session.add(BoardInvite(
                token="old-token",
                board_id=board.id,
                created_by=users["alice"].id,
                expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc),
            ))
            await session.commit()
        assert (await bob.post("/api/invites/old-token/redeem")).status_code == 404

    @pytest.mark.asyncio
    async def test_deleted_board_invite_is_404(self, make_board, alice, bob):
        board = await make_board(is_public=False)
        token = (await alice.post(f"/api/boards/{board.id}/invites")).json()["token"]
        await alice.delete(f"/api/boards/{board.id}")
        assert (await bob.post(f"/api/invites/{token}/redeem")).status_code == 404

    @pytest.mark.asyncio
    async def test_redeem_requires_session(self, users, anon):
        assert (await anon.post("/api/invites/anything/redeem")).status_code == 401
