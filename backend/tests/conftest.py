"""
Curio Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (aiosqlite) with the full
       schema, a fresh app whose DB dependency points at it, and three seeded
       users with real session rows:

           alice  creator of the boards the tests build
           bob    joins alice's boards as a member where a test needs one
           carol  a stranger

Fixture Hierarchy:
    session_factory ─┬─ users ──── make_board
                     └─ app ────── client_for ── alice / bob / carol / anon
"""

import os
import tempfile

# Settings are read at import time, so the environment is set before any
# curio import below.
_TEST_DIR = tempfile.mkdtemp(prefix="curio_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/default.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["PUBLIC_BASE_URL"] = "https://curio.test"

from dataclasses import dataclass, field  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from curio.config import settings  # noqa: E402
from curio.database import Base, get_db_session  # noqa: E402
from curio.models import AuthSession, Board, BoardMember, Card, User  # noqa: E402


@dataclass
class SeededUser:
    id: str
    email: str
    token: str


@dataclass
class SeededBoard:
    id: str
    slug: str
    # Creation order (oldest first); the API lists newest first
    card_ids: List[str] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A throwaway database with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/curio.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def users(session_factory) -> Dict[str, SeededUser]:
    seeded = {
        name: SeededUser(id=f"user-{name}", email=f"{name}@example.com", token=f"token-{name}")
        for name in ("alice", "bob", "carol")
    }
    async with session_factory() as session:
        for name, user in seeded.items():
            session.add(User(id=user.id, email=user.email, full_name=name.title()))
        await session.flush()
        for user in seeded.values():
            session.add(AuthSession(token=user.token, user_id=user.id))
        await session.commit()
    return seeded


@pytest_asyncio.fixture
async def make_board(session_factory, users):
    """
    Insert a board straight into the database.

    Usage:
        board = await make_board(cards=3, is_public=False, members=["bob"])
    """
    counter = {"n": 0}

    async def _make(
        cards: int = 0,
        is_public: bool = True,
        owner: str = "alice",
        members: Optional[List[str]] = None,
        title: Optional[str] = None,
    ) -> SeededBoard:
        counter["n"] += 1
        n = counter["n"]
        slug = f"seeded-board-{n}"
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        async with session_factory() as session:
            board = Board(
                creator_id=users[owner].id,
                title=title or f"Seeded board {n}",
                slug=slug,
                is_public=is_public,
                created_at=created,
            )
            session.add(board)
            await session.flush()

            seeded = SeededBoard(id=board.id, slug=slug)
            for i in range(cards):
                card = Card(
                    board_id=board.id,
                    url=f"https://example.com/{n}/{i}",
                    title=f"Card {i}",
                    created_at=created + timedelta(minutes=i),
                )
                session.add(card)
                await session.flush()
                seeded.card_ids.append(card.id)

            for member in members or []:
                session.add(BoardMember(board_id=board.id, user_id=users[member].id))
            await session.commit()
        return seeded

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Application & Clients
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory):
    """A fresh app per test (fresh rate-limit state) bound to the test database."""
    from curio.main import create_app

    application = create_app()

    async def _get_test_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = _get_test_session
    return application


@pytest_asyncio.fixture
async def client_for(app, users):
    """
    Factory for HTTPX clients talking to the app through ASGITransport,
    signed in as the named seeded user (None for anonymous).
    """
    clients: List[AsyncClient] = []

    def _client(name: Optional[str] = None) -> AsyncClient:
        cookies = {settings.session_cookie_name: users[name].token} if name else None
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
        )
        clients.append(client)
        return client

    yield _client

    for client in clients:
        await client.aclose()


@pytest.fixture
def alice(client_for) -> AsyncClient:
    return client_for("alice")


@pytest.fixture
def bob(client_for) -> AsyncClient:
    return client_for("bob")


@pytest.fixture
def carol(client_for) -> AsyncClient:
    return client_for("carol")


@pytest.fixture
def anon(client_for) -> AsyncClient:
    return client_for(None)
