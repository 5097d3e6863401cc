"""
Strategy package matcher.

A package is a named sub-strategy (sacrifice outlets, token payoffs, cheap
spells, ...) that a themed deck wants a minimum number of. Matching is plain
text and type-line pattern matching against a single card, so a card can
fill several packages at once.
"""

import re
from collections.abc import Callable, Sequence
from functools import lru_cache

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.card import Card
from commanderforge.models.plan import CommanderPlan, PackageId


def _pattern(*patterns: str) -> re.Pattern[str]:
    return re.compile("|".join(f"(?:{p})" for p in patterns))


SAC_OUTLETS = _pattern(
    r"sacrifice (?:a|another|target|x) (?:creature|permanent|artifact)",
    r"sacrifice another",
    r"sacrifice [^.]*:",
    r"as an additional cost to cast",
    r"you may sacrifice",
)
SAC_FODDER_TEXT = _pattern(r"\bcreate\b", r"\btokens?\b", r"enters the battlefield")
SAC_PAYOFFS = _pattern(
    r"whenever a creature (?:you control )?dies",
    r"whenever another creature (?:you control )?dies",
    r"whenever you sacrifice",
    r"whenever something dies",
    r"\blose (?:\d+ )?life",
    r"\bloses (?:\d+ )?life",
    r"\bgain (?:\d+ )?life",
    r"deals? (?:\d+ |x )?damage",
    r"draw a card",
    r"whenever a creature leaves",
)
TOKEN_MAKERS = _pattern(
    r"\bcreate (?:a|an|x|\w+) ", r"create that many", r"\btokens?\b", r"\bpopulate\b"
)
TOKEN_PAYOFFS = _pattern(
    r"whenever a token",
    r"tokens you control",
    r"for each token",
    r"number of tokens",
    r"creatures you control",
)
REANIMATE_TARGET_TEXT = _pattern(r"enters the battlefield", r"\bwhen ", r"\bdies\b", r"\battack")
REANIMATE_EFFECTS = _pattern(
    r"\breturn\b[^.]*\bgraveyard\b",
    r"from your graveyard",
    r"from a graveyard",
    r"onto the battlefield from",
    r"\breanimate\b",
    r"\bflashback\b",
)
DISCARD_OUTLETS = _pattern(
    r"discard a card",
    r"discard your hand",
    r"discard (?:x|two|three) cards",
    r"\bcycling\b",
    r"\bloot",
    r"\brummage",
)
SPELL_PAYOFF_TEXT = _pattern(
    r"whenever you cast",
    r"instant or sorcery",
    r"\bcopy\b",
    r"\bdraw\b",
    r"deals? (?:\d+ |x )?damage",
)
VOLTRON_PROTECTION = _pattern(
    r"\bhexproof\b",
    r"\bindestructible\b",
    r"\bward\b",
    r"can't be targeted",
    r"\bshroud\b",
    r"protection from",
)
RAMP_DENSITY = _pattern(
    r"\badd \{",
    r"\badd (?:one|two|three|x) mana",
    r"search your library for (?:up to \w+ )?(?:a |an )?(?:basic )?land",
    r"put a land",
    r"\btreasure\b",
)
DRAW_ENGINES = _pattern(
    r"draw a card",
    r"draw two",
    r"draw x",
    r"whenever you [^.]*draw",
    r"at the beginning of your [^.]*draw",
)


def _is_spell(card: Card) -> bool:
    return card.has_type("instant") or card.has_type("sorcery")


PACKAGE_MATCHERS: dict[PackageId, Callable[[Card], bool]] = {
    PackageId.SAC_OUTLETS: lambda c: bool(SAC_OUTLETS.search(c.text)),
    PackageId.SAC_FODDER: lambda c: c.is_creature
    and (bool(SAC_FODDER_TEXT.search(c.text)) or c.cmc <= 3),
    PackageId.SAC_PAYOFFS: lambda c: bool(SAC_PAYOFFS.search(c.text)),
    PackageId.TOKEN_MAKERS: lambda c: bool(TOKEN_MAKERS.search(c.text)),
    PackageId.TOKEN_PAYOFFS: lambda c: bool(TOKEN_PAYOFFS.search(c.text)),
    PackageId.REANIMATE_TARGETS: lambda c: c.is_creature
    and c.cmc >= 5
    and bool(REANIMATE_TARGET_TEXT.search(c.text)),
    PackageId.REANIMATE_EFFECTS: lambda c: bool(REANIMATE_EFFECTS.search(c.text)),
    PackageId.DISCARD_OUTLETS: lambda c: bool(DISCARD_OUTLETS.search(c.text)),
    PackageId.CHEAP_SPELLS: lambda c: _is_spell(c) and c.cmc <= 2,
    PackageId.SPELL_PAYOFFS: lambda c: _is_spell(c) and bool(SPELL_PAYOFF_TEXT.search(c.text)),
    PackageId.EQUIPMENT_AURAS: lambda c: c.has_type("equipment") or c.has_type("aura"),
    PackageId.VOLTRON_PROTECTION: lambda c: bool(VOLTRON_PROTECTION.search(c.text)),
    PackageId.RAMP_DENSITY: lambda c: bool(RAMP_DENSITY.search(c.text)),
    PackageId.DRAW_ENGINES: lambda c: bool(DRAW_ENGINES.search(c.text)),
}


def card_fills_package(card: Card, package_id: PackageId) -> bool:
    """True if the card fills the given package."""
    return package_id in get_packages_filled_by_card(card)


@lru_cache(maxsize=16384)
def get_packages_filled_by_card(card: Card) -> frozenset[PackageId]:
    """Every package the card fills (possibly none)."""
    return frozenset(pid for pid, matcher in PACKAGE_MATCHERS.items() if matcher(card))


# Win-condition target -> packages that advance it
WIN_CONDITION_PACKAGES: dict[str, tuple[PackageId, ...]] = {
    "drain_payoffs": (PackageId.SAC_PAYOFFS,),
    "token_makers": (PackageId.TOKEN_MAKERS,),
    "token_payoffs": (PackageId.TOKEN_PAYOFFS,),
    "reanimate_targets": (PackageId.REANIMATE_TARGETS,),
    "reanimate_effects": (PackageId.REANIMATE_EFFECTS,),
    # Interaction is role based, not a package
    "combo_interaction": (),
}


def get_package_targets(
    plan: CommanderPlan,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> dict[PackageId, int]:
    """
    Minimum counts for the plan's required packages.

    Explicit plan minimums win; otherwise the engine defaults apply.
    Packages with a zero minimum are omitted.
    """
    targets: dict[PackageId, int] = {}
    for package in plan.required_packages:
        explicit = plan.package_minimums.get(package)
        if explicit:
            targets[package] = explicit
            continue
        default = config.package_minimums.get(package.value, 0)
        if default > 0:
            targets[package] = default
    return targets


def count_package(cards: Sequence[Card], package_id: PackageId) -> int:
    return sum(1 for c in cards if package_id in get_packages_filled_by_card(c))


def _win_condition_boost(card: Card, main_cards: Sequence[Card], plan: CommanderPlan) -> float:
    filled = get_packages_filled_by_card(card)
    if not filled:
        return 0.0

    boost = 0.0
    for key, target in plan.win_condition_targets.model_dump().items():
        packages = WIN_CONDITION_PACKAGES.get(key, ())
        if not target or not packages:
            continue
        current = sum(count_package(main_cards, p) for p in packages)
        if current >= target:
            continue
        if filled.intersection(packages):
            boost += 0.25
    return boost


def package_completion_score(
    card: Card,
    main_cards: Sequence[Card],
    plan: CommanderPlan,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> float:
    """
    Marginal value of the card for completing required packages.

    +0.4 per missing card (at most two counted) for every required package the
    card fills while that package is short; -0.15 once a package is
    oversaturated (minimum + 2). Win-condition packages that are still short
    add a flat +0.25 each.
    """
    targets = get_package_targets(plan, config)
    score = 0.0

    for package in get_packages_filled_by_card(card):
        target = targets.get(package)
        if target is None:
            continue
        current = count_package(main_cards, package)
        if current < target:
            score += 0.4 * min(target - current, 2)
        elif current >= target + 2:
            score -= 0.15

    return score + _win_condition_boost(card, main_cards, plan)
