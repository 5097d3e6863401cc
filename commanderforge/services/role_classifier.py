"""
Card role classifier.

Maps a card to exactly one CardRole using an ordered rule table. Rules are
evaluated top to bottom and the first match wins, so a card whose text reads
as both draw and removal gets whichever rule appears earlier.

The land rule is always first. Cards matching nothing fall back to `synergy`
(creatures and planeswalkers) or `utility` (everything else).
"""

import re
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from commanderforge.models.card import Card
from commanderforge.models.roles import CardRole, RoleFamily

# (normalized oracle text, lowercased type line) -> matched?
Predicate = Callable[[str, str], bool]


def _text(*patterns: str) -> Predicate:
    regex = re.compile("|".join(f"(?:{p})" for p in patterns))

    def predicate(text: str, _type_line: str) -> bool:
        return regex.search(text) is not None

    return predicate


def _typed(types: tuple[str, ...], inner: Predicate) -> Predicate:
    def predicate(text: str, type_line: str) -> bool:
        return any(t in type_line for t in types) and inner(text, type_line)

    return predicate


def _both(first: Predicate, second: Predicate) -> Predicate:
    def predicate(text: str, type_line: str) -> bool:
        return first(text, type_line) and second(text, type_line)

    return predicate


def _without(inner: Predicate, excluded: Predicate) -> Predicate:
    def predicate(text: str, type_line: str) -> bool:
        return inner(text, type_line) and not excluded(text, type_line)

    return predicate


def _is_land(_text: str, type_line: str) -> bool:
    return "land" in type_line


PERMANENT_TYPES = ("artifact", "creature", "enchantment", "planeswalker", "battle")
SPELL_TYPES = ("instant", "sorcery")
BODY_TYPES = ("creature", "planeswalker")

_SWEEP = _text(
    r"destroy all", r"exile all", r"each creature", r"each nonland", r"all creatures get -"
)
_SAC_COST = _text(r"\bsacrifice\b", r"as an additional cost")
_SAC_PAYOFF = _text(r"\bwhenever\b", r"\bdies\b", r"\bsacrificed\b", r"lose life", r"gain life")
_LIFE_SWING = _text(r"\b(?:lose|loses|gain|gains)\b[^.]*\blife\b", r"\bdamage\b")


@dataclass(frozen=True)
class RoleRule:
    """One row of the classification table."""

    role: CardRole
    matches: Predicate


ROLE_RULES: tuple[RoleRule, ...] = (
    RoleRule(CardRole.LAND, _is_land),
    # Ramp
    RoleRule(
        CardRole.RAMP_LAND,
        _text(
            r"search your library for (?:up to \w+ )?(?:a |an )?(?:basic )?"
            r"(?:land|forest|plains|island|swamp|mountain)",
            r"put (?:a|up to \w+) land cards? [^.]*onto the battlefield",
            r"play an additional land",
        ),
    ),
    RoleRule(
        CardRole.RAMP_PERMANENT,
        _typed(
            PERMANENT_TYPES,
            _text(
                r"\badd \{", r"\badd (?:one|two|three|x) mana", r"additional mana", r"mana of any"
            ),
        ),
    ),
    RoleRule(
        CardRole.RAMP_RITUAL,
        _text(r"\britual\b", r"\badd \{[^.]*\}", r"\badd (?:one|two|three|x) mana"),
    ),
    RoleRule(CardRole.RAMP_BURST, _both(_text(r"\badd\b"), _text(r"\bmana\b(?! value| cost)"))),
    # Draw
    RoleRule(
        CardRole.DRAW_ENGINE,
        _text(r"(?:whenever|at the beginning of)[^.]*\bdraws? (?:a|an additional|\w+) cards?"),
    ),
    RoleRule(
        CardRole.DRAW_BURST,
        _text(r"\bdraws? (?:a|two|three|four|five|x|\d+) cards?", r"\bdraw cards\b"),
    ),
    RoleRule(CardRole.DRAW_CONDITIONAL, _both(_text(r"\bdraw"), _text(r"\bcards?\b"))),
    # Removal and sweepers
    RoleRule(CardRole.SWEEPER, _both(_SWEEP, _text(r"\bdestroy", r"\bexile", r"\bdamage\b"))),
    RoleRule(CardRole.REMOVAL_WIPE, _SWEEP),
    RoleRule(
        CardRole.REMOVAL_SINGLE,
        _text(
            r"destroy target",
            r"exile target",
            r"deals? (?:\d+|x) damage to (?:any target|target)",
            r"deal damage to target",
        ),
    ),
    RoleRule(CardRole.REMOVAL_FLEXIBLE, _text(r"\bdestroy\b", r"\bexile\b", r"deals? damage")),
    # Interaction
    RoleRule(
        CardRole.INTERACTION,
        _text(r"counter target", r"counter that spell", r"counter spell"),
    ),
    RoleRule(
        CardRole.PROTECTION,
        _text(
            r"\bhexproof\b", r"\bindestructible\b", r"\bward\b", r"can't be targeted", r"\bshroud\b"
        ),
    ),
    # Tutors and recursion
    RoleRule(CardRole.TUTOR, _text(r"search your library", r"search your deck")),
    RoleRule(
        CardRole.RECURSION,
        _text(r"\breturn\b[^.]*\bgraveyard\b", r"from your graveyard", r"\bflashback\b"),
    ),
    # Sacrifice and token engines
    RoleRule(CardRole.ENABLER, _without(_SAC_COST, _SAC_PAYOFF)),
    RoleRule(CardRole.PAYOFF, _both(_SAC_PAYOFF, _LIFE_SWING)),
    RoleRule(CardRole.ENABLER, _text(r"\bcreate\b[^.]*\btokens?\b", r"\bpopulate\b")),
    # Closers
    RoleRule(
        CardRole.FINISHER,
        _typed(
            BODY_TYPES,
            _text(
                r"\btrample\b", r"\bflying\b", r"\bhaste\b", r"double strike", r"whenever ~ attacks"
            ),
        ),
    ),
    RoleRule(CardRole.WINCON, _text(r"win the game", r"\byou win\b")),
    # Fixing
    RoleRule(CardRole.FIXING, _text(r"mana of any color", r"any color of mana")),
)


def normalize_text(card: Card) -> str:
    """Lowercased oracle text with the card's own name replaced by '~'."""
    text = card.text
    if not text:
        return ""
    name = card.name.lower()
    text = text.replace(name, "~")
    # Legendary cards refer to themselves by their short name
    short = name.split(",")[0].strip()
    if short and short != name:
        text = text.replace(short, "~")
    return text


@lru_cache(maxsize=16384)
def assign_role(card: Card) -> CardRole:
    """
    Assign the single role for a card.

    Pure, deterministic and total: every card gets a role.
    """
    text = normalize_text(card)
    type_line = card.types

    for rule in ROLE_RULES:
        if rule.matches(text, type_line):
            return rule.role

    if any(t in type_line for t in BODY_TYPES):
        return CardRole.SYNERGY
    return CardRole.UTILITY


ROLE_TO_FAMILY: dict[CardRole, RoleFamily] = {
    CardRole.LAND: RoleFamily.LAND,
    CardRole.RAMP_LAND: RoleFamily.RAMP,
    CardRole.RAMP_PERMANENT: RoleFamily.RAMP,
    CardRole.RAMP_RITUAL: RoleFamily.RAMP,
    CardRole.RAMP_BURST: RoleFamily.RAMP,
    CardRole.DRAW_ENGINE: RoleFamily.DRAW,
    CardRole.DRAW_BURST: RoleFamily.DRAW,
    CardRole.DRAW_CONDITIONAL: RoleFamily.DRAW,
    CardRole.SWEEPER: RoleFamily.SWEEPER,
    CardRole.REMOVAL_WIPE: RoleFamily.REMOVAL,
    CardRole.REMOVAL_SINGLE: RoleFamily.REMOVAL,
    CardRole.REMOVAL_FLEXIBLE: RoleFamily.REMOVAL,
    CardRole.INTERACTION: RoleFamily.INTERACTION,
    CardRole.PROTECTION: RoleFamily.PROTECTION,
    CardRole.TUTOR: RoleFamily.TUTOR,
    CardRole.RECURSION: RoleFamily.RECURSION,
    CardRole.ENABLER: RoleFamily.ENABLER,
    CardRole.PAYOFF: RoleFamily.PAYOFF,
    CardRole.FINISHER: RoleFamily.FINISHER,
    CardRole.WINCON: RoleFamily.FINISHER,
    CardRole.FIXING: RoleFamily.FIXING,
    CardRole.SYNERGY: RoleFamily.SYNERGY,
    CardRole.UTILITY: RoleFamily.UTILITY,
    CardRole.OTHER: RoleFamily.OTHER,
}


def role_to_family(role: CardRole | str | None) -> RoleFamily:
    """Aggregate a fine role into its family. Unknown roles map to `other`."""
    if role is None:
        return RoleFamily.OTHER
    try:
        return ROLE_TO_FAMILY[CardRole(role)]
    except ValueError:
        return RoleFamily.OTHER


class HasRole(Protocol):
    @property
    def role(self) -> CardRole: ...


def count_by_role_family(entries: Iterable[HasRole]) -> Counter[RoleFamily]:
    """Count deck entries per role family."""
    return Counter(role_to_family(e.role) for e in entries)
