from dataclasses import dataclass, field

WUBRG = ("W", "U", "B", "R", "G")

BASIC_LAND_NAMES = frozenset(
    {
        "plains",
        "island",
        "swamp",
        "mountain",
        "forest",
        "wastes",
        "snow-covered plains",
        "snow-covered island",
        "snow-covered swamp",
        "snow-covered mountain",
        "snow-covered forest",
        "snow-covered wastes",
    }
)


def is_basic_land_name(name: str) -> bool:
    """True for basic land names (unlimited copies allowed)."""
    return name.strip().lower() in BASIC_LAND_NAMES


@dataclass(frozen=True, slots=True)
class Card:
    """
    A resolved card record.

    Attributes:
        id: Stable card identifier (Scryfall oracle id when available)
        name: Card name
        cmc: Mana value
        colors: Colors of the card itself
        color_identity: Color identity, a subset of WUBRG
        type_line: Full type line (e.g., "Legendary Creature — Angel")
        oracle_text: Rules text, None for vanilla cards
        mana_cost: Mana cost string (e.g., "{3}{W}{B}{R}")
        legalities: Format name -> legality ("legal", "banned", "not_legal", ...)
        image_url: Card image reference
    """

    id: str
    name: str
    cmc: float = 0.0
    colors: frozenset[str] = frozenset()
    color_identity: frozenset[str] = frozenset()
    type_line: str = ""
    oracle_text: str | None = None
    mana_cost: str | None = None
    legalities: dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    image_url: str | None = None

    def __post_init__(self) -> None:
        unknown = set(self.color_identity) - set(WUBRG)
        if unknown:
            raise ValueError(f"Invalid color identity for {self.name}: {sorted(unknown)}")

    @property
    def text(self) -> str:
        """Lowercased oracle text ('' for vanilla cards)."""
        return (self.oracle_text or "").lower()

    @property
    def types(self) -> str:
        """Lowercased type line."""
        return self.type_line.lower()

    @property
    def is_land(self) -> bool:
        return "land" in self.types

    @property
    def is_creature(self) -> bool:
        return "creature" in self.types

    def has_type(self, card_type: str) -> bool:
        return card_type in self.types

    def commander_legality(self) -> str | None:
        return self.legalities.get("commander")


@dataclass(frozen=True, slots=True)
class OwnedCard:
    """
    A card the player owns.

    Quantity only means "available"; the engine never needs more than one
    copy of a nonbasic card.
    """

    name: str
    quantity: int = 1
    set_code: str | None = None
    collector_number: str | None = None


@dataclass(frozen=True, slots=True)
class CommanderChoice:
    """Light reference to the chosen commander."""

    name: str
    color_identity: frozenset[str] = frozenset()
    id: str | None = None
    image_url: str | None = None
    type_line: str | None = None
