import json
from pathlib import Path

import httpx
import pytest
import respx

from commanderforge.services.card_database import (
    BULK_TYPE,
    SCRYFALL_BULK_API,
    CardDatabase,
    card_from_scryfall,
    download_card_database,
    load_card_database,
)


@pytest.fixture
def card_db_file(sample_scryfall_cards: list[dict], tmp_path: Path) -> Path:
    """Create a temporary card database file."""
    db_path = tmp_path / "oracle-cards.json"
    db_path.write_text(json.dumps(sample_scryfall_cards), encoding="utf-8")
    return db_path


class TestCardFromScryfall:
    def test_normal_card(self, sample_scryfall_cards: list[dict]) -> None:
        card = card_from_scryfall(sample_scryfall_cards[0])

        assert card.id == "oracle-sol-ring"
        assert card.name == "Sol Ring"
        assert card.cmc == 1.0
        assert card.color_identity == frozenset()
        assert card.oracle_text == "{T}: Add {C}{C}."
        assert card.image_url == "https://img.example/sol-ring.jpg"
        assert card.commander_legality() == "legal"

    def test_double_faced_card_uses_front_face(self, sample_scryfall_cards: list[dict]) -> None:
        card = card_from_scryfall(sample_scryfall_cards[2])

        assert card.name == "Delver of Secrets // Insectile Aberration"
        assert card.type_line == "Creature — Human Wizard"
        assert card.oracle_text.startswith("At the beginning of your upkeep")
        assert card.mana_cost == "{U}"
        assert card.colors == frozenset("U")
        assert card.image_url == "https://img.example/delver.jpg"

    def test_id_falls_back_to_name(self) -> None:
        card = card_from_scryfall({"name": "Homebrew Thing"})
        assert card.id == "homebrew thing"
        assert card.type_line == ""
        assert card.oracle_text is None


class TestLoadCardDatabase:
    def test_loads_cards_by_lowercased_name(self, card_db_file: Path) -> None:
        db = load_card_database(card_db_file)

        assert "sol ring" in db
        assert "kaalia of the vast" in db
        assert db["kaalia of the vast"].color_identity == frozenset("WBR")

    def test_tokens_skipped(self, card_db_file: Path) -> None:
        db = load_card_database(card_db_file)
        assert "soldier" not in db

    def test_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="download_cards"):
            load_card_database(tmp_path / "missing.json")

    def test_corrupted_json_raises_value_error(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            load_card_database(bad)

    def test_first_record_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "dupes.json"
        path.write_text(
            json.dumps(
                [
                    {"name": "Opt", "oracle_id": "first", "type_line": "Instant"},
                    {"name": "Opt", "oracle_id": "second", "type_line": "Instant"},
                ]
            ),
            encoding="utf-8",
        )

        assert load_card_database(path)["opt"].id == "first"


class TestCardDatabase:
    def test_resolves_case_insensitively(self, card_db_file: Path) -> None:
        db = CardDatabase.from_file(card_db_file)

        resolved = db.resolve_cards(["SOL RING", "Not A Card"])

        assert list(resolved) == ["sol ring"]
        assert resolved["sol ring"].name == "Sol Ring"

    def test_resolves_front_face_name(self, card_db_file: Path) -> None:
        db = CardDatabase.from_file(card_db_file)

        assert db.get("Delver of Secrets") is not None
        assert "delver of secrets" in db

    def test_resolve_commander(self, card_db_file: Path) -> None:
        db = CardDatabase.from_file(card_db_file)

        assert db.resolve_commander(" kaalia of the vast ").name == "Kaalia of the Vast"
        assert db.resolve_commander("Nobody") is None

    def test_commander_candidates(self, card_db_file: Path) -> None:
        db = CardDatabase.from_file(card_db_file)
        assert [c.name for c in db.commander_candidates()] == ["Kaalia of the Vast"]

    def test_len(self, card_db_file: Path) -> None:
        assert len(CardDatabase.from_file(card_db_file)) == 4


class TestDownloadCardDatabase:
    @pytest.mark.asyncio
    @respx.mock
    async def test_downloads_oracle_cards(self, tmp_path: Path) -> None:
        """The oracle-cards entry of the bulk index is streamed to disk."""
        download_url = "https://data.example/oracle-cards.json"
        respx.get(SCRYFALL_BULK_API).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"type": "default_cards", "download_uri": "https://data.example/x"},
                        {"type": BULK_TYPE, "download_uri": download_url},
                    ]
                },
            )
        )
        respx.get(download_url).mock(return_value=httpx.Response(200, content=b"[]"))

        output = tmp_path / "data" / "oracle-cards.json"
        result = await download_card_database(output)

        assert result == output
        assert output.read_bytes() == b"[]"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_bulk_entry_raises(self, tmp_path: Path) -> None:
        respx.get(SCRYFALL_BULK_API).mock(return_value=httpx.Response(200, json={"data": []}))

        with pytest.raises(ValueError, match=BULK_TYPE):
            await download_card_database(tmp_path / "cards.json")

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_propagates(self, tmp_path: Path) -> None:
        respx.get(SCRYFALL_BULK_API).mock(return_value=httpx.Response(503))

        with pytest.raises(httpx.HTTPStatusError):
            await download_card_database(tmp_path / "cards.json")
