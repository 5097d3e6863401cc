from dataclasses import dataclass, field

from commanderforge.models.card import Card, CommanderChoice, OwnedCard
from commanderforge.models.roles import CardRole


@dataclass(frozen=True, slots=True)
class CandidateEntry:
    """
    A card the engine may place in the deck.

    The role is assigned once when the entry is created and never changes.
    """

    card: Card
    owned: OwnedCard
    role: CardRole

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def cmc(self) -> float:
        return self.card.cmc


@dataclass(frozen=True, slots=True)
class DeckEntry:
    """A card placed in the finished deck."""

    name: str
    role: CardRole
    cmc: float = 0.0
    quantity: int = 1
    type_line: str | None = None
    image_url: str | None = None
    reason: str | None = None


@dataclass
class DeckStats:
    """Summary statistics for a built deck."""

    total_nonlands: int
    total_lands: int
    by_role: dict[str, int] = field(default_factory=dict)
    by_role_family: dict[str, int] = field(default_factory=dict)
    color_identity: list[str] = field(default_factory=list)
    short_by: int | None = None
    strategy_explanation: str | None = None


@dataclass
class DeckList:
    """
    A finished Commander deck.

    Invariants:
        - `main` never repeats a name
        - `lands` repeats only basic lands
        - len(main) + len(lands) + (stats.short_by or 0) == 99
    """

    commander: CommanderChoice
    main: list[DeckEntry]
    lands: list[DeckEntry]
    stats: DeckStats
    legality_enforced: bool = True

    @property
    def total_cards(self) -> int:
        return len(self.main) + len(self.lands)

    def names(self) -> list[str]:
        return [e.name for e in self.main] + [e.name for e in self.lands]
