"""
Card database service.

Loads Scryfall oracle-cards bulk data and resolves card names to Card records.
"""

import json
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

import httpx

from commanderforge.config import settings
from commanderforge.models.card import WUBRG, Card

SCRYFALL_BULK_API = "https://api.scryfall.com/bulk-data"
BULK_TYPE = "oracle_cards"

# Layouts that are never real deck cards
SKIPPED_LAYOUTS = frozenset({"token", "double_faced_token", "emblem", "art_series", "vanguard"})


class CardResolver(Protocol):
    """Resolves names to card records."""

    def resolve_cards(self, names: Iterable[str]) -> dict[str, Card]:
        """Map of lowercased name -> Card for every name that resolves."""
        ...

    def resolve_commander(self, name: str) -> Card | None: ...


async def download_card_database(output_path: Path | None = None) -> Path:
    """
    Download latest Scryfall oracle-cards bulk data.

    Args:
        output_path: Where to save the file. Defaults to settings.card_database_path

    Returns:
        Path to downloaded file.

    Raises:
        ValueError: If bulk data URL not found
        httpx.HTTPError: If download fails
    """
    if output_path is None:
        output_path = settings.card_database_path

    output_path.parent.mkdir(parents=True, exist_ok=True)

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(SCRYFALL_BULK_API)
        response.raise_for_status()
        data = response.json()

        download_url = None
        for item in data["data"]:
            if item["type"] == BULK_TYPE:
                download_url = item["download_uri"]
                break

        if not download_url:
            raise ValueError(f"Could not find {BULK_TYPE} bulk data URL")

        # Stream download (file is ~150MB)
        async with client.stream("GET", download_url, timeout=300.0) as response:
            response.raise_for_status()
            with open(output_path, "wb") as f:
                async for chunk in response.aiter_bytes(8192):
                    f.write(chunk)

    return output_path


def _front_face(data: dict[str, Any]) -> dict[str, Any]:
    faces = data.get("card_faces") or []
    return faces[0] if faces else {}


def card_from_scryfall(data: dict[str, Any]) -> Card:
    """
    Build a Card from one Scryfall card object.

    Double-faced and split cards carry their text and images per face; when the
    top-level fields are missing the front face is used.
    """
    front = _front_face(data)

    oracle_text = data.get("oracle_text")
    if oracle_text is None:
        oracle_text = front.get("oracle_text")

    mana_cost = data.get("mana_cost") or front.get("mana_cost")
    type_line = data.get("type_line") or front.get("type_line") or ""

    images = data.get("image_uris") or front.get("image_uris") or {}

    identity = frozenset(c for c in data.get("color_identity", []) if c in WUBRG)
    colors = data.get("colors")
    if colors is None:
        colors = front.get("colors", [])

    return Card(
        id=data.get("oracle_id") or data.get("id") or data["name"].lower(),
        name=data["name"],
        cmc=float(data.get("cmc") or 0.0),
        colors=frozenset(c for c in colors if c in WUBRG),
        color_identity=identity,
        type_line=type_line,
        oracle_text=oracle_text,
        mana_cost=mana_cost or None,
        legalities=dict(data.get("legalities") or {}),
        image_url=images.get("normal"),
    )


def load_card_database(path: Path | None = None) -> dict[str, Card]:
    """
    Load card database from file.

    Args:
        path: Path to JSON file. Defaults to settings.card_database_path

    Returns:
        Dict mapping lowercased card names to Card records.

    Raises:
        FileNotFoundError: If database file doesn't exist
    """
    if path is None:
        path = settings.card_database_path

    if not path.exists():
        raise FileNotFoundError(
            f"Card database not found at {path}. "
            "Run `python -m commanderforge.jobs.download_cards` first."
        )

    with open(path, encoding="utf-8") as f:
        raw_cards = json.load(f)

    db: dict[str, Card] = {}
    for raw in raw_cards:
        name = raw.get("name")
        if not name or raw.get("layout") in SKIPPED_LAYOUTS:
            continue
        key = name.lower()
        if key not in db:
            db[key] = card_from_scryfall(raw)

    return db


class CardDatabase:
    """
    In-memory CardResolver over loaded bulk data.

    Names are matched case-insensitively. Split and double-faced cards also
    resolve by their front face name ("Fire" for "Fire // Ice").
    """

    def __init__(self, cards: dict[str, Card]) -> None:
        self._cards = dict(cards)
        self._faces: dict[str, Card] = {}
        for key, card in cards.items():
            if " // " in key:
                self._faces.setdefault(key.split(" // ")[0], card)

    @classmethod
    def from_file(cls, path: Path | None = None) -> "CardDatabase":
        return cls(load_card_database(path))

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def get(self, name: str) -> Card | None:
        key = name.strip().lower()
        return self._cards.get(key) or self._faces.get(key)

    def resolve_cards(self, names: Iterable[str]) -> dict[str, Card]:
        resolved: dict[str, Card] = {}
        for name in names:
            card = self.get(name)
            if card is not None:
                resolved[name.strip().lower()] = card
        return resolved

    def resolve_commander(self, name: str) -> Card | None:
        return self.get(name)

    def commander_candidates(self) -> list[Card]:
        """Legendary creatures, plus cards whose text lets them be your commander."""
        return [
            card
            for card in self._cards.values()
            if "legendary" in card.types
            and ("creature" in card.types or "can be your commander" in card.text)
            and card.commander_legality() != "not_legal"
        ]


@lru_cache(maxsize=1)
def get_card_database() -> CardDatabase:
    """
    Get cached card database.

    Raises:
        FileNotFoundError: If database file doesn't exist
    """
    return CardDatabase.from_file()
