"""Tests for deck API endpoints."""

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commanderforge.api import decks as decks_module
from commanderforge.api.decks import get_resolver
from commanderforge.db import get_cached_plan
from commanderforge.db.database import get_session
from commanderforge.main import app
from commanderforge.models.card import Card
from commanderforge.models.db import Base
from commanderforge.services.card_database import CardDatabase

SPELL_TRIGGER = "Whenever you cast an instant or sorcery spell, scry 1."


def _card(name: str, type_line: str, identity: str, cmc: float, text: str | None = None) -> Card:
    return Card(
        id=f"oracle-{name.lower().replace(' ', '-')}",
        name=name,
        cmc=cmc,
        colors=frozenset(identity),
        color_identity=frozenset(identity),
        type_line=type_line,
        oracle_text=text,
        legalities={"commander": "legal"},
    )


@pytest.fixture
def card_database() -> CardDatabase:
    cards = [
        _card("Bland Captain", "Legendary Creature — Human Warrior", "G", 4),
        _card("Kess, Dissident Mage", "Legendary Creature — Human Wizard", "UBR", 4, SPELL_TRIGGER),
        _card("Counterspell", "Instant", "U", 2, "Counter target spell."),
        _card("Prodigy Spell", "Instant", "U", 2, SPELL_TRIGGER),
        _card("Lightning Bolt", "Instant", "R", 1, "Lightning Bolt deals 3 damage to any target."),
        _card("Red Thing", "Creature — Goblin", "R", 1),
        *(_card(f"Green Beast {i}", "Creature — Beast", "G", (i % 5) + 1) for i in range(70)),
    ]
    return CardDatabase({c.name.lower(): c for c in cards})


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory, card_database: CardDatabase):
    """Provide an async test client with overridden database session and card data."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_resolver] = lambda: card_database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _beasts(count: int = 70) -> list[dict]:
    return [{"name": f"Green Beast {i}"} for i in range(count)]


class TestBuildDeckEndpoint:
    async def test_builds_full_deck(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/build",
            json={"commander": "Bland Captain", "owned": _beasts(), "seed": 0},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_cards"] == 99
        assert data["commander"]["name"] == "Bland Captain"
        assert data["commander"]["color_identity"] == ["G"]
        assert data["stats"]["short_by"] is None
        assert data["legality_enforced"] is True
        assert all(e["reason"] for e in data["main"])
        assert {e["name"] for e in data["lands"]} == {"Forest"}

    async def test_seeded_builds_are_reproducible(self, client: AsyncClient) -> None:
        body = {"commander": "Bland Captain", "owned": _beasts(), "seed": 11}

        first = await client.post("/decks/build", json=body)
        second = await client.post("/decks/build", json=body)

        assert first.json()["main"] == second.json()["main"]

    async def test_plan_is_cached(self, client: AsyncClient, session_factory) -> None:
        await client.post(
            "/decks/build",
            json={"commander": "Bland Captain", "owned": _beasts(), "seed": 0},
        )

        async with session_factory() as session:
            cached = await get_cached_plan(session, "oracle-bland-captain")

        assert cached is not None
        assert cached.commander_name == "Bland Captain"

    async def test_options_accepted(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/build",
            json={
                "commander": "Bland Captain",
                "owned": _beasts(),
                "options": {"archetype": "tribal", "enforce_legality": False},
                "seed": 0,
            },
        )

        assert response.status_code == 200
        assert response.json()["legality_enforced"] is False

    async def test_missing_card_data(self, client: AsyncClient) -> None:
        """Unknown owned names fail the build with a 422 envelope."""
        response = await client.post(
            "/decks/build",
            json={"commander": "Bland Captain", "owned": [{"name": "Mystery Card"}]},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["outcome"] == "known_failure"
        assert data["failure"]["kind"] == "missing_card_data"
        assert "Mystery Card" in data["failure"]["message"]

    async def test_unknown_commander(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/build",
            json={"commander": "Nobody", "owned": _beasts(5)},
        )

        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"

    async def test_empty_collection(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/build",
            json={"commander": "Bland Captain", "owned": []},
        )

        assert response.status_code == 400
        assert response.json()["failure"]["kind"] == "empty_result"

    async def test_no_compatible_candidates(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/build",
            json={"commander": "Bland Captain", "owned": [{"name": "Red Thing"}]},
        )

        assert response.status_code == 400
        assert "color identity" in response.json()["failure"]["message"]

    async def test_missing_commander_field_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/decks/build", json={"owned": _beasts(1)})
        assert response.status_code == 422


class TestUpgradeSuggestionsEndpoint:
    async def test_ranks_owned_cards(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/upgrade-suggestions",
            json={
                "commander": "Kess, Dissident Mage",
                "owned": [
                    {"name": "Counterspell"},
                    {"name": "Prodigy Spell"},
                    {"name": "Lightning Bolt"},
                    {"name": "Unknown Card"},
                ],
                "main": ["Counterspell"],
                "limit": 5,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["commander"] == "Kess, Dissident Mage"
        names = [s["name"] for s in data["suggestions"]]
        assert "Counterspell" not in names
        assert set(names) == {"Prodigy Spell", "Lightning Bolt"}
        impacts = [s["impact_score"] for s in data["suggestions"]]
        assert impacts == sorted(impacts, reverse=True)

    async def test_unknown_commander(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/upgrade-suggestions",
            json={"commander": "Nobody", "owned": [{"name": "Counterspell"}]},
        )
        assert response.status_code == 404

    async def test_limit_bounds(self, client: AsyncClient) -> None:
        response = await client.post(
            "/decks/upgrade-suggestions",
            json={"commander": "Kess, Dissident Mage", "limit": 2},
        )
        assert response.status_code == 422


class TestGetResolver:
    def test_missing_card_data_is_503(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def missing() -> CardDatabase:
            raise FileNotFoundError("Card database not found")

        monkeypatch.setattr(decks_module, "get_card_database", missing)

        with pytest.raises(HTTPException) as exc_info:
            get_resolver()

        assert exc_info.value.status_code == 503
