"""
Commander plan builder.

Reads the commander's card and infers how the deck wants to win: themes,
tribes, win conditions, tempo and curve, plus the numeric adjustments those
imply (role target bumps, package minimums, win-condition payoff counts).

Every step is a pure function of the commander's text and type line, so the
resulting plan can be cached by commander id.
"""

import logging
import re
from typing import Any

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.card import Card
from commanderforge.models.plan import (
    CommanderPlan,
    CurveShape,
    KeyResource,
    PackageId,
    PipIntensity,
    Tempo,
    ThemeId,
    WinCondition,
    WinConditionTargets,
)
from commanderforge.models.profile import TargetOverrides
from commanderforge.services.commander_themes import get_commander_themes
from commanderforge.services.plan_cache import PlanCache

logger = logging.getLogger(__name__)

# fmt: off
CREATURE_SUBTYPES: tuple[str, ...] = (
    "angel", "demon", "dragon", "vampire", "elf", "goblin", "wizard", "zombie",
    "soldier", "warrior", "rogue", "cleric", "knight", "sliver", "spirit", "human",
    "cat", "dinosaur", "beast", "elemental", "hydra", "bird", "devil", "horror",
    "nightmare", "phyrexian", "eldrazi", "myr", "construct", "artificer", "pirate",
    "ninja", "samurai", "scout", "shaman", "druid", "merfolk", "kraken", "serpent",
    "leviathan", "sphinx", "naga", "ally", "ooze", "plant", "fungus", "insect",
    "spider", "djinn", "efreet", "vedalken", "pilot", "rat", "wolf", "bear",
    "turtle", "crab", "dwarf", "faerie", "giant", "minotaur", "snake",
)
# fmt: on

_SUBTYPE_PATTERNS: dict[str, re.Pattern[str]] = {
    s: re.compile(rf"\b{s}s?\b") for s in CREATURE_SUBTYPES
}

WIN_CONDITION_PATTERNS: tuple[tuple[WinCondition, re.Pattern[str]], ...] = (
    (
        WinCondition.COMMANDER_DAMAGE,
        re.compile(
            r"commander\s+damage|combat\s+damage.*player|trample|double\s+strike"
            r"|equipped\s+creature|enchant\s+creature"
        ),
    ),
    (
        WinCondition.DRAIN,
        re.compile(r"whenever.*(die|dies)|sacrifice|drain|lose\s+life|gain\s+life|life\s+total"),
    ),
    (
        WinCondition.TOKENS_WIDE,
        re.compile(r"create\s+.*token|token(s)?\s+enters|populate|double\s+token"),
    ),
    (
        WinCondition.COMBO,
        re.compile(r"combo|infinite|whenever\s+you\s+cast.*copy|copy\s+target\s+spell"),
    ),
    (WinCondition.MILL, re.compile(r"\bmill|put\s+.*into\s+graveyard|draw\s+.*card.*lose")),
    (WinCondition.ALT_WIN, re.compile(r"win\s+the\s+game|lose\s+the\s+game")),
)

CHEATS_CREATURES = (
    re.compile(r"put\s+(a|an|target)\s+.*onto the battlefield"),
    re.compile(r"put.*onto the battlefield.*(creature|angel|demon|dragon|card)"),
)
REDUCES_COST = (
    re.compile(r"costs?\s+\{?\d+\}?\s+less"),
    re.compile(r"cost\s+less"),
    re.compile(r"\d+\s+less\s+to\s+cast"),
)

# Role target bumps per active theme, added on top of the engine defaults.
THEME_ROLE_BUMPS: dict[ThemeId, dict[str, int]] = {
    ThemeId.SPELLSLINGER: {"target_draw": 3, "target_theme_synergy": 5},
    ThemeId.VOLTRON: {"target_finisher": 2, "target_theme_synergy": 3, "target_interaction": 2},
    ThemeId.TOKENS: {"target_theme_synergy": 3},
    ThemeId.SACRIFICE: {"target_theme_synergy": 4},
    ThemeId.GRAVEYARD: {"target_theme_synergy": 3},
    ThemeId.LANDFALL: {"target_ramp": 3},
    ThemeId.ARTIFACTS: {"target_theme_synergy": 2},
    ThemeId.ENCHANTMENTS: {"target_theme_synergy": 2},
    ThemeId.COUNTERS: {"target_theme_synergy": 2},
    ThemeId.DRAW: {"target_draw": 2},
}

WIN_CONDITION_ROLE_BUMPS: dict[WinCondition, dict[str, int]] = {
    WinCondition.COMBO: {"target_interaction": 3, "min_interaction_total": 3},
    WinCondition.COMMANDER_DAMAGE: {"target_finisher": 1},
    WinCondition.MILL: {"target_draw": 1},
}

# Theme -> package minimums that replace the engine defaults
THEME_PACKAGE_MINIMUMS: dict[ThemeId, dict[PackageId, int]] = {
    ThemeId.SACRIFICE: {PackageId.SAC_OUTLETS: 4, PackageId.SAC_PAYOFFS: 5},
    ThemeId.TOKENS: {PackageId.TOKEN_MAKERS: 8},
    ThemeId.SPELLSLINGER: {PackageId.SPELL_PAYOFFS: 8},
    ThemeId.VOLTRON: {PackageId.EQUIPMENT_AURAS: 12, PackageId.VOLTRON_PROTECTION: 5},
    ThemeId.GRAVEYARD: {PackageId.REANIMATE_EFFECTS: 5},
}


def get_tribes_from_type_line(type_line: str | None) -> list[str]:
    """Creature subtypes named after the dash of a type line."""
    line = (type_line or "").lower()
    _, dash, subtypes = line.partition("—")
    part = subtypes if dash else line
    return [s for s in CREATURE_SUBTYPES if _SUBTYPE_PATTERNS[s].search(part)]


def get_preferred_tribes(commander: Card) -> list[str]:
    """
    Tribes the commander cares about.

    Only the rules text is scanned so a Human Wizard commander is not
    mistaken for a Human deck. The type line is used only when the text
    names no tribe.
    """
    text = commander.text
    if text.strip():
        # Mask the commander's own name so it never reads as a tribe
        masked = text.replace(commander.name.lower(), "~")
        found = [s for s in CREATURE_SUBTYPES if _SUBTYPE_PATTERNS[s].search(masked)]
        if found:
            return found
    return get_tribes_from_type_line(commander.type_line)


def detect_win_conditions(commander: Card) -> list[WinCondition]:
    """Win conditions signalled by the text. Defaults to combat."""
    text = commander.text
    found = [wc for wc, pattern in WIN_CONDITION_PATTERNS if pattern.search(text)]
    return found or [WinCondition.COMBAT]


def detect_key_resources(commander: Card, themes: list[ThemeId]) -> list[KeyResource]:
    text = commander.text
    found: list[KeyResource] = []
    if ThemeId.GRAVEYARD in themes or re.search(r"graveyard|dies|discard|mill", text):
        found.append(KeyResource.GRAVEYARD)
    if ThemeId.TOKENS in themes or "token" in text:
        found.append(KeyResource.TOKENS)
    if ThemeId.ARTIFACTS in themes or "artifact" in text:
        found.append(KeyResource.ARTIFACTS)
    if ThemeId.ENCHANTMENTS in themes or re.search(r"enchantment|aura", text):
        found.append(KeyResource.ENCHANTMENTS)
    if ThemeId.SPELLSLINGER in themes or re.search(r"instant|sorcery", text):
        found.append(KeyResource.SPELL_COUNT)
    if ThemeId.COUNTERS in themes:
        found.append(KeyResource.COUNTERS)
    if re.search(r"creatures? you control (?:have|gain) .*\{t\}: add", text):
        found.append(KeyResource.MANA_DORKS)
    if re.search(r"enters\s+the\s+battlefield|when.*enters", text):
        found.append(KeyResource.PERMANENT_DENSITY)
    return found


def detect_required_packages(themes: list[ThemeId]) -> list[PackageId]:
    packages: list[PackageId] = []
    if ThemeId.SACRIFICE in themes:
        packages += [PackageId.SAC_OUTLETS, PackageId.SAC_FODDER, PackageId.SAC_PAYOFFS]
    if ThemeId.TOKENS in themes:
        packages += [PackageId.TOKEN_MAKERS, PackageId.TOKEN_PAYOFFS]
    if ThemeId.GRAVEYARD in themes:
        packages += [
            PackageId.REANIMATE_TARGETS,
            PackageId.REANIMATE_EFFECTS,
            PackageId.DISCARD_OUTLETS,
        ]
    if ThemeId.SPELLSLINGER in themes:
        packages += [PackageId.CHEAP_SPELLS, PackageId.SPELL_PAYOFFS]
    if ThemeId.VOLTRON in themes or ThemeId.COMMANDER_DAMAGE in themes:
        packages += [PackageId.EQUIPMENT_AURAS, PackageId.VOLTRON_PROTECTION]
    packages += [PackageId.RAMP_DENSITY, PackageId.DRAW_ENGINES]
    return list(dict.fromkeys(packages))


def detect_tempo(
    commander: Card, themes: list[ThemeId], win_conditions: list[WinCondition]
) -> Tempo:
    text = commander.text
    if ThemeId.VOLTRON in themes or re.search(r"haste|commander\s+damage", text):
        return Tempo.FAST
    if ThemeId.SPELLSLINGER in themes and re.search(r"copy|storm", text):
        return Tempo.FAST
    if WinCondition.COMBO in win_conditions:
        return Tempo.VARIABLE
    if ThemeId.SACRIFICE in themes or ThemeId.GRAVEYARD in themes:
        return Tempo.MEDIUM
    if ThemeId.COUNTERS in themes or "proliferate" in text:
        return Tempo.SLOW
    return Tempo.MEDIUM


def detect_curve_shape(commander: Card, themes: list[ThemeId]) -> CurveShape:
    text = commander.text
    if ThemeId.SPELLSLINGER in themes:
        return CurveShape.LOW
    if ThemeId.VOLTRON in themes:
        return CurveShape.MID
    if ThemeId.LANDFALL in themes:
        # Cheap land drops early, big payoffs late
        return CurveShape.BIMODAL
    if re.search(r"put.*onto the battlefield|costs?\s+less|cheat", text):
        return CurveShape.HIGH
    return CurveShape.MID


def detect_must_have_mechanics(commander: Card, themes: list[ThemeId]) -> list[str]:
    text = commander.text
    mechanics: list[str] = []
    if ThemeId.GRAVEYARD in themes and re.search(r"permanent|card types", text):
        mechanics.append("permanent_density")
    if re.search(r"\bmill|dredge|whenever.*put.*graveyard", text):
        mechanics.append("self_mill")
    if ThemeId.VOLTRON in themes:
        mechanics += ["protection", "evasion"]
    return mechanics


def commander_cheats_creatures(commander: Card) -> bool:
    return any(p.search(commander.text) for p in CHEATS_CREATURES)


def commander_reduces_cost(commander: Card) -> bool:
    return any(p.search(commander.text) for p in REDUCES_COST)


def detect_pip_intensity(commander: Card) -> PipIntensity:
    size = len(commander.color_identity)
    if size >= 4:
        return PipIntensity.HIGH
    if size == 3:
        return PipIntensity.MEDIUM
    return PipIntensity.LOW


def derive_role_overrides(
    themes: list[ThemeId],
    win_conditions: list[WinCondition],
    curve_shape: CurveShape,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> TargetOverrides:
    """
    Role target overrides implied by the plan.

    Bumps are summed onto the engine defaults; only touched fields are set.
    """
    bumps: dict[str, int] = {}
    for theme in themes:
        for key, amount in THEME_ROLE_BUMPS.get(theme, {}).items():
            bumps[key] = bumps.get(key, 0) + amount
    for wc in win_conditions:
        for key, amount in WIN_CONDITION_ROLE_BUMPS.get(wc, {}).items():
            bumps[key] = bumps.get(key, 0) + amount

    values: dict[str, Any] = {key: getattr(config, key) + amount for key, amount in bumps.items()}

    if curve_shape == CurveShape.LOW:
        values["target_lands_max"] = config.target_lands_max - 2
    if ThemeId.LANDFALL in themes:
        values["target_lands_min"] = config.target_lands_min + 3

    return TargetOverrides(**values)


def derive_package_minimums(
    themes: list[ThemeId],
    required: list[PackageId],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> dict[PackageId, int]:
    """Minimum counts for each required package, adjusted per theme."""
    minimums = {p: config.package_minimums.get(p.value, 0) for p in required}
    for theme in themes:
        for package, count in THEME_PACKAGE_MINIMUMS.get(theme, {}).items():
            if package in minimums:
                minimums[package] = max(minimums[package], count)
    return minimums


def derive_win_condition_targets(
    win_conditions: list[WinCondition],
    key_resources: list[KeyResource],
) -> WinConditionTargets:
    values: dict[str, int] = {}
    if WinCondition.DRAIN in win_conditions:
        values["drain_payoffs"] = 6
    if WinCondition.TOKENS_WIDE in win_conditions:
        values["token_makers"] = 8
        values["token_payoffs"] = 5
    if WinCondition.MILL in win_conditions or KeyResource.GRAVEYARD in key_resources:
        values["reanimate_targets"] = 6
        values["reanimate_effects"] = 5
    if WinCondition.COMBO in win_conditions:
        values["combo_interaction"] = 8
    return WinConditionTargets(**values)


def get_commander_plan(
    commander: Card,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> CommanderPlan:
    """Build the full plan for a commander."""
    themes = get_commander_themes(commander)
    win_conditions = detect_win_conditions(commander)
    key_resources = detect_key_resources(commander, themes)
    required = detect_required_packages(themes)
    curve_shape = detect_curve_shape(commander, themes)

    overrides = derive_role_overrides(themes, win_conditions, curve_shape, config)
    targets = derive_win_condition_targets(win_conditions, key_resources)
    combo_floor = targets.combo_interaction
    if combo_floor and (overrides.target_interaction or 0) < combo_floor:
        overrides = overrides.model_copy(update={"target_interaction": targets.combo_interaction})

    return CommanderPlan(
        commander_name=commander.name,
        primary_themes=themes,
        preferred_tribes=get_preferred_tribes(commander),
        win_conditions=win_conditions,
        key_resources=key_resources,
        required_packages=required,
        tempo=detect_tempo(commander, themes, win_conditions),
        curve_shape=curve_shape,
        target_avg_cmc=config.curve_target_cmc[curve_shape.value],
        must_have_mechanics=detect_must_have_mechanics(commander, themes),
        commander_cheats_creatures=commander_cheats_creatures(commander),
        commander_reduces_cost=commander_reduces_cost(commander),
        pip_intensity=detect_pip_intensity(commander),
        role_target_overrides=overrides,
        package_minimums=derive_package_minimums(themes, required, config),
        win_condition_targets=targets,
    )


def get_commander_plan_with_cache(
    commander: Card,
    cache: PlanCache | None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> CommanderPlan:
    """
    Plan for a commander, consulting an optional cache keyed by commander id.

    A cache miss is not an error; the plan is computed and stored.
    """
    if cache is None:
        return get_commander_plan(commander, config)

    cached = cache.get(commander.id)
    if cached is not None:
        logger.debug("commander_plan_cache_hit", extra={"commander": commander.name})
        return cached

    plan = get_commander_plan(commander, config)
    cache.set(commander.id, plan)
    logger.debug("commander_plan_cache_miss", extra={"commander": commander.name})
    return plan
