"""
Commander theme detection and synergy scoring.

Each theme says how to spot it in a commander's rules text and which cards
support it. A card earns +2.0 per active theme its text supports, or +1.5 if
only its type line does. Cards supporting several themes get a small
multiplier on top.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache

from commanderforge.models.card import Card
from commanderforge.models.plan import ThemeId

TEXT_MATCH_SCORE = 2.0
TYPE_MATCH_SCORE = 1.5
MULTI_THEME_STEP = 0.12


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class ThemeDefinition:
    """How to detect a theme on a commander and score cards that support it."""

    theme: ThemeId
    commander_patterns: tuple[re.Pattern[str], ...]
    card_patterns: tuple[re.Pattern[str], ...]
    card_types: tuple[str, ...] = field(default=())

    def detected_in(self, text: str) -> bool:
        return any(p.search(text) for p in self.commander_patterns)

    def text_supports(self, text: str) -> bool:
        return any(p.search(text) for p in self.card_patterns)

    def type_supports(self, type_line: str) -> bool:
        return any(t in type_line for t in self.card_types)


THEME_DEFINITIONS: tuple[ThemeDefinition, ...] = (
    ThemeDefinition(
        ThemeId.SPELLSLINGER,
        _compile(
            r"whenever\s+you\s+cast\s+(an?\s+)?(instant|sorcery)",
            r"instant\s+or\s+sorcery",
            r"(you\s+may\s+)?cast\s+(an?\s+)?(instant|sorcery)\s+spell",
            r"whenever\s+(an?\s+)?(instant|sorcery)\s+you\s+cast",
            r"(instant|sorcery)\s+(spells?\s+)?(you\s+cast|cost)",
            r"copy\s+(target\s+)?(instant|sorcery)",
        ),
        _compile(
            r"draw\s+.*\s+card",
            r"copy\s+target\s+spell",
            r"cast\s+(an?\s+)?(instant|sorcery)",
            r"whenever\s+you\s+cast",
        ),
        ("instant", "sorcery"),
    ),
    ThemeDefinition(
        ThemeId.TOKENS,
        _compile(
            r"create\s+(a|\d+)\s+.*\s+token",
            r"create\s+that\s+many",
            r"token(s)?\s+(with|enters|you\s+control)",
            r"double\s+the\s+number\s+of\s+tokens",
            r"whenever\s+.*\s+token\s+enters",
        ),
        _compile(
            r"create\s+(a|\d+|\w+)\s+.*\s+token",
            r"create\s+that\s+many",
            r"token(s)?\s+(with|enters|you\s+control)",
            r"populate",
            r"double\s+token",
        ),
    ),
    ThemeDefinition(
        ThemeId.COUNTERS,
        _compile(
            r"\+1/\+1\s+counter",
            r"counter(s)?\s+on\s+",
            r"proliferate",
            r"put\s+.*\s+counter",
            r"whenever\s+.*\s+counter\s+is\s+put",
            r"counters?\s+of\s+any\s+kind",
        ),
        _compile(
            r"\+1/\+1\s+counter",
            r"proliferate",
            r"put\s+.*\s+counter",
            r"counter(s)?\s+on\s+",
            r"doubles?\s+counters",
            r"whenever\s+.*\s+counter\s+is\s+put",
        ),
    ),
    ThemeDefinition(
        ThemeId.SACRIFICE,
        _compile(
            r"sacrifice\s+(a\s+)?\w+",
            r"whenever\s+you\s+sacrifice",
            r"whenever\s+.*\s+is\s+sacrificed",
            r"sacrifice\s+.*\s+:",
        ),
        _compile(
            r"sacrifice\s+(a\s+)?\w+",
            r"whenever\s+.*\s+sacrifice",
            r"whenever\s+.*\s+is\s+sacrificed",
            r"sacrifice\s+.*\s+:",
            r"as\s+an\s+additional\s+cost.*sacrifice",
        ),
    ),
    ThemeDefinition(
        ThemeId.ARTIFACTS,
        _compile(
            r"artifact(s)?\s+(you\s+control|enters|creature)",
            r"artifact\s+creature",
            r"whenever\s+.*\s+artifact\s+enters",
            r"artifact(s)?\s+cost\s+less",
            r"\bartifact(s)?\b.*\b(tap|untap|mana|cast)\b",
            r"tap\s+.*\s+artifact",
        ),
        _compile(
            r"artifact(s)?\s+(you\s+control|enters|creature)",
            r"artifact\s+creature",
            r"whenever\s+.*\s+artifact\s+enters",
        ),
        ("artifact",),
    ),
    ThemeDefinition(
        ThemeId.ENCHANTMENTS,
        _compile(
            r"enchantment(s)?\s+(you\s+control|enters)",
            r"whenever\s+.*\s+enchantment\s+enters",
            r"enchantment(s)?\s+cost\s+less",
            r"aura\s+spell",
        ),
        _compile(
            r"enchantment(s)?\s+(you\s+control|enters)",
            r"whenever\s+.*\s+enchantment\s+enters",
        ),
        ("enchantment", "aura"),
    ),
    ThemeDefinition(
        ThemeId.LANDFALL,
        _compile(
            r"landfall",
            r"whenever\s+(a\s+)?land\s+enters",
            r"play\s+additional\s+land",
            r"whenever\s+.*\s+land\s+enters\s+the\s+battlefield",
            r"land(s)?\s+(you\s+control|enters|fall)",
            r"draw\s+.*\s+land\s+enters",
        ),
        _compile(
            r"landfall",
            r"whenever\s+(a\s+)?land\s+enters",
            r"search\s+your\s+library\s+for\s+(a\s+)?land",
            r"put\s+(a\s+)?land\s+(card\s+)?onto",
            r"play\s+additional\s+land",
        ),
    ),
    ThemeDefinition(
        ThemeId.GRAVEYARD,
        _compile(
            r"graveyard",
            r"from\s+your\s+graveyard",
            r"whenever\s+.*\s+(die|dies|put\s+into\s+graveyard)",
            r"discard\s+.*\s+draw",
            r"mill\s+\d+",
            r"flashback",
            r"escape\s+—",
            r"jump-start",
        ),
        _compile(
            r"graveyard",
            r"from\s+your\s+graveyard",
            r"flashback",
            r"escape\s+—",
            r"jump-start",
            r"unearth",
            r"return\s+.*\s+from\s+(your\s+)?graveyard",
            r"mill\s+\d+",
            r"discard\s+.*\s+draw",
        ),
    ),
    ThemeDefinition(
        ThemeId.ATTACK,
        _compile(
            r"whenever\s+.*\s+attacks?",
            r"attacking\s+creature",
            r"combat\s+damage",
            r"whenever\s+.*\s+deal\s+combat\s+damage",
            r"each\s+combat",
        ),
        _compile(
            r"whenever\s+.*\s+attacks?",
            r"attacking\s+creature",
            r"haste",
            r"double\s+strike",
            r"first\s+strike",
            r"extra\s+combat",
            r"each\s+combat",
        ),
    ),
    ThemeDefinition(
        ThemeId.FLYING,
        _compile(
            r"flying",
            r"creatures?\s+with\s+flying",
            r"whenever\s+.*\s+flying\s+creature",
        ),
        _compile(r"flying", r"creatures?\s+with\s+flying"),
    ),
    ThemeDefinition(
        ThemeId.LIFEGAIN,
        _compile(
            r"gain\s+life",
            r"life\s+total",
            r"whenever\s+you\s+gain\s+life",
            r"lifelink",
        ),
        _compile(
            r"gain\s+life",
            r"whenever\s+you\s+gain\s+life",
            r"lifelink",
            r"life\s+total",
        ),
    ),
    ThemeDefinition(
        ThemeId.DRAW,
        _compile(
            r"draw\s+.*\s+card",
            r"whenever\s+you\s+draw",
            r"draw\s+cards?\s+equal",
        ),
        _compile(
            r"draw\s+.*\s+card",
            r"whenever\s+you\s+draw",
            r"draw\s+cards?\s+equal",
        ),
    ),
    ThemeDefinition(
        ThemeId.VOLTRON,
        _compile(
            r"equipped\s+creature",
            r"enchant(ed)?\s+creature",
            r"\+1/\+1\s+for\s+each\s+(equipment|aura)",
            r"commander\s+damage",
            r"\bequip\s+\{",
            r"aura\s+spell|aura\s+—",
        ),
        _compile(
            r"equipped\s+creature",
            r"enchant(ed)?\s+creature",
            r"equip\s+\{",
            r"aura\s+—",
        ),
        ("equipment", "aura"),
    ),
    ThemeDefinition(
        ThemeId.ETB,
        _compile(
            r"whenever\s+.*\s+enters\s+the\s+battlefield",
            r"enters\s+the\s+battlefield\s+with",
            r"when\s+.*\s+enters\s+the\s+battlefield",
        ),
        _compile(
            r"whenever\s+.*\s+enters\s+the\s+battlefield",
            r"enters\s+the\s+battlefield\s+with",
            r"when\s+.*\s+enters\s+the\s+battlefield",
            r"blink|flicker",
        ),
    ),
    ThemeDefinition(
        ThemeId.DEATH,
        _compile(
            r"whenever\s+.*\s+(die|dies)",
            r"when\s+.*\s+(die|dies)",
            r"leaves\s+the\s+battlefield",
        ),
        _compile(
            r"whenever\s+.*\s+(die|dies)",
            r"when\s+.*\s+(die|dies)",
            r"leaves\s+the\s+battlefield",
            r"whenever\s+.*\s+is\s+put\s+into\s+(a\s+)?graveyard",
        ),
    ),
    ThemeDefinition(
        ThemeId.TAP_UNTAP,
        _compile(
            r"tap\s+(target\s+)?\w+",
            r"untap\s+(target\s+)?\w+",
            r"whenever\s+.*\s+(tap|untap)",
            r"vigilance",
        ),
        _compile(
            r"tap\s+(target\s+)?\w+",
            r"untap\s+(target\s+)?\w+",
            r"whenever\s+.*\s+(tap|untap)",
            r"vigilance",
        ),
    ),
    ThemeDefinition(
        ThemeId.TOP_OF_LIBRARY,
        _compile(
            r"top\s+of\s+(your\s+)?library",
            r"scry\s+\d+",
            r"look\s+at\s+the\s+top\s+",
        ),
        _compile(
            r"top\s+of\s+(your\s+)?library",
            r"scry\s+\d+",
            r"look\s+at\s+the\s+top\s+",
            r"reveal\s+the\s+top\s+",
        ),
    ),
    ThemeDefinition(
        ThemeId.COPY,
        _compile(
            r"copy\s+(target\s+)?(instant|sorcery|spell|creature)",
            r"whenever\s+you\s+copy",
        ),
        _compile(
            r"copy\s+(target\s+)?(instant|sorcery|spell|creature)",
            r"whenever\s+you\s+copy",
        ),
    ),
    ThemeDefinition(
        ThemeId.COMMANDER_DAMAGE,
        _compile(r"commander\s+damage", r"deal\s+combat\s+damage.*player"),
        _compile(r"trample", r"double\s+strike", r"haste", r"commander\s+damage"),
        ("equipment", "aura"),
    ),
)

THEMES_BY_ID: dict[ThemeId, ThemeDefinition] = {d.theme: d for d in THEME_DEFINITIONS}


def get_commander_themes(commander: Card) -> list[ThemeId]:
    """
    Themes the commander's rules text cares about, in definition order.

    A commander with no rules text has no themes.
    """
    text = commander.text
    if not text.strip():
        return []
    return [d.theme for d in THEME_DEFINITIONS if d.detected_in(text)]


def count_theme_matches(card: Card, themes: tuple[ThemeId, ...]) -> tuple[float, int]:
    """Raw (score, matched theme count) for a card against active themes."""
    text = card.text
    type_line = card.types
    score = 0.0
    matches = 0
    for theme in themes:
        definition = THEMES_BY_ID.get(theme)
        if definition is None:
            continue
        if definition.text_supports(text):
            score += TEXT_MATCH_SCORE
            matches += 1
        elif definition.type_supports(type_line):
            score += TYPE_MATCH_SCORE
            matches += 1
    return score, matches


@lru_cache(maxsize=65536)
def _cached_synergy(card: Card, themes: tuple[ThemeId, ...]) -> float:
    score, matches = count_theme_matches(card, themes)
    if matches >= 2:
        score *= 1 + MULTI_THEME_STEP * (matches - 1)
    return score


def commander_synergy_score(card: Card, themes: list[ThemeId] | tuple[ThemeId, ...]) -> float:
    """How well a card supports the commander's themes (0 = no synergy)."""
    if not themes:
        return 0.0
    return _cached_synergy(card, tuple(themes))
