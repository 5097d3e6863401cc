from collections.abc import Callable

import pytest

from commanderforge.models.card import Card


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Factory for Card records with Commander-legal defaults."""

    def factory(
        name: str,
        type_line: str = "Creature — Beast",
        identity: str = "",
        cmc: float = 2,
        text: str | None = None,
        legality: str = "legal",
    ) -> Card:
        return Card(
            id=name.lower().replace(" ", "-"),
            name=name,
            cmc=cmc,
            colors=frozenset(identity),
            color_identity=frozenset(identity),
            type_line=type_line,
            oracle_text=text,
            legalities={"commander": legality},
        )

    return factory


@pytest.fixture
def sample_scryfall_cards() -> list[dict]:
    """Oracle-cards style records, including a double-faced card and a token."""
    return [
        {
            "object": "card",
            "id": "print-1",
            "oracle_id": "oracle-sol-ring",
            "name": "Sol Ring",
            "layout": "normal",
            "mana_cost": "{1}",
            "cmc": 1.0,
            "type_line": "Artifact",
            "oracle_text": "{T}: Add {C}{C}.",
            "colors": [],
            "color_identity": [],
            "legalities": {"commander": "legal", "standard": "not_legal"},
            "image_uris": {"normal": "https://img.example/sol-ring.jpg"},
        },
        {
            "object": "card",
            "id": "print-2",
            "oracle_id": "oracle-kaalia",
            "name": "Kaalia of the Vast",
            "layout": "normal",
            "mana_cost": "{1}{R}{W}{B}",
            "cmc": 4.0,
            "type_line": "Legendary Creature — Human Cleric",
            "oracle_text": (
                "Flying\nWhenever Kaalia of the Vast attacks an opponent, you may put an "
                "Angel, Demon, or Dragon creature card from your hand onto the battlefield "
                "tapped and attacking that opponent."
            ),
            "colors": ["W", "B", "R"],
            "color_identity": ["B", "R", "W"],
            "legalities": {"commander": "legal"},
            "image_uris": {"normal": "https://img.example/kaalia.jpg"},
        },
        {
            "object": "card",
            "id": "print-3",
            "oracle_id": "oracle-delver",
            "name": "Delver of Secrets // Insectile Aberration",
            "layout": "transform",
            "cmc": 1.0,
            "color_identity": ["U"],
            "legalities": {"commander": "legal"},
            "card_faces": [
                {
                    "name": "Delver of Secrets",
                    "mana_cost": "{U}",
                    "type_line": "Creature — Human Wizard",
                    "oracle_text": "At the beginning of your upkeep, look at the top card "
                    "of your library.",
                    "colors": ["U"],
                    "image_uris": {"normal": "https://img.example/delver.jpg"},
                },
                {
                    "name": "Insectile Aberration",
                    "mana_cost": "",
                    "type_line": "Creature — Human Insect",
                    "oracle_text": "Flying",
                    "colors": ["U"],
                },
            ],
        },
        {
            "object": "card",
            "id": "print-4",
            "oracle_id": "oracle-soldier-token",
            "name": "Soldier",
            "layout": "token",
            "cmc": 0.0,
            "type_line": "Token Creature — Soldier",
            "color_identity": ["W"],
            "legalities": {},
        },
        {
            "object": "card",
            "id": "print-5",
            "oracle_id": "oracle-primeval-titan",
            "name": "Primeval Titan",
            "layout": "normal",
            "mana_cost": "{4}{G}{G}",
            "cmc": 6.0,
            "type_line": "Creature — Giant",
            "oracle_text": "Trample\nWhenever Primeval Titan enters or attacks, you may "
            "search your library for up to two land cards, put them onto the battlefield "
            "tapped, then shuffle.",
            "colors": ["G"],
            "color_identity": ["G"],
            "legalities": {"commander": "banned"},
        },
    ]
