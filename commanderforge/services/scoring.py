"""
Scoring functions for deck assembly.

Every function is pure in (card, current partial main deck, targets), so any
candidate can be scored at any point of assembly or local search. The main
deck is passed as a sequence of slots (anything with `name`, `role` and
`cmc`); package scoring additionally needs the Card records of those slots.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.card import Card
from commanderforge.models.plan import CommanderPlan, ThemeId
from commanderforge.models.profile import Archetype, ProfileTargets
from commanderforge.models.roles import INTERACTION_FAMILIES, CardRole
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.packages import package_completion_score
from commanderforge.services.profile_targets import RoleTargets
from commanderforge.services.role_classifier import (
    assign_role,
    count_by_role_family,
    role_to_family,
)

CMC_CLUMP_THRESHOLD = 4


class Slot(Protocol):
    """A card occupying a main-deck slot."""

    @property
    def name(self) -> str: ...

    @property
    def role(self) -> CardRole: ...

    @property
    def cmc(self) -> float: ...


@dataclass(frozen=True)
class ScoringContext:
    """Everything a build resolves once and every score reads."""

    plan: CommanderPlan
    profile: ProfileTargets
    role_targets: RoleTargets
    archetype: Archetype = Archetype.BALANCED
    config: EngineConfig = DEFAULT_ENGINE_CONFIG

    @property
    def themes(self) -> tuple[ThemeId, ...]:
        return tuple(self.plan.primary_themes)

    @property
    def tribes(self) -> tuple[str, ...]:
        return tuple(self.plan.preferred_tribes)


def _base_curve_value(cmc: float) -> float:
    if 2 <= cmc <= 3:
        return 1.0
    if cmc <= 0:
        return 0.5
    if cmc < 2:
        return 0.7
    if cmc <= 4:
        return 0.8
    return max(0.1, 0.8 - 0.15 * (cmc - 4))


def curve_score(card: Card, main: Sequence[Slot], profile: ProfileTargets) -> float:
    """
    Curve fit of adding the card.

    Mana values 2-3 score best, 4 slightly less, with a taper on either side.
    Pushing the running average over `max_avg_cmc` costs 0.3; moving the
    average toward the target earns 0.1.
    """
    score = _base_curve_value(card.cmc)

    total = sum(s.cmc for s in main)
    count = len(main)
    new_avg = (total + card.cmc) / (count + 1)
    if new_avg > profile.max_avg_cmc:
        score -= 0.3
    if count:
        old_avg = total / count
        if abs(new_avg - profile.target_avg_cmc) < abs(old_avg - profile.target_avg_cmc):
            score += 0.1
    return score


def role_fulfillment_bonus(card: Card, main: Sequence[Slot], role_targets: RoleTargets) -> float:
    """Up to +0.5 while the card's family is short, up to -0.3 once it is over."""
    family = role_to_family(assign_role(card))
    target = role_targets.get(family)
    if not target or target <= 0:
        return 0.0
    current = count_by_role_family(main)[family]
    if current < target:
        return min(0.5, (target - current) * 0.08)
    if current > target:
        return -min(0.3, (current - target) * 0.06)
    return 0.0


def interaction_count(main: Sequence[Slot]) -> int:
    counts = count_by_role_family(main)
    return sum(counts[f] for f in INTERACTION_FAMILIES)


def interaction_baseline_boost(card: Card, main: Sequence[Slot], min_interaction: int) -> float:
    """Up to +0.8 for interaction cards while the deck is under its minimum."""
    total = interaction_count(main)
    if total >= min_interaction:
        return 0.0
    if role_to_family(assign_role(card)) not in INTERACTION_FAMILIES:
        return 0.0
    return min(0.8, (min_interaction - total) * 0.15)


def cmc_clump_penalty(card: Card, main: Sequence[Slot]) -> float:
    """-0.05 per card beyond the threshold already at this mana value."""
    at_cmc = sum(1 for s in main if s.cmc == card.cmc)
    if at_cmc < CMC_CLUMP_THRESHOLD:
        return 0.0
    return -0.05 * (at_cmc - CMC_CLUMP_THRESHOLD + 1)


def matches_tribe(card: Card, tribes: Sequence[str]) -> bool:
    """True if the card is a creature of one of the given tribes."""
    if not tribes or not card.is_creature:
        return False
    _, _, subtypes = card.types.partition("—")
    words = set(subtypes.replace(",", " ").split())
    return any(t in words or f"{t}s" in words for t in tribes)


def archetype_bonus(card: Card, ctx: ScoringContext) -> float:
    """
    Flat bonus for on-plan cards, sized to outrank generic curve filler.

    Tribal matches apply whenever tribes were detected (except for
    spellslinger builds); the tribal archetype without tribes rewards theme
    matches instead.
    """
    bonuses = ctx.config.archetype_bonuses
    bonus = 0.0
    if ctx.archetype != Archetype.SPELLSLINGER and matches_tribe(card, ctx.tribes):
        bonus += bonuses.tribal
    elif (
        ctx.archetype == Archetype.TRIBAL
        and not ctx.tribes
        and commander_synergy_score(card, ctx.themes) > 0
    ):
        bonus += bonuses.tribal
    if ctx.archetype == Archetype.SPELLSLINGER and (
        card.has_type("instant") or card.has_type("sorcery")
    ):
        bonus += bonuses.spellslinger
    if ctx.archetype == Archetype.VOLTRON and (
        card.has_type("equipment") or card.has_type("aura")
    ):
        bonus += bonuses.voltron
    return bonus


def candidate_score(
    card: Card,
    main: Sequence[Slot],
    main_cards: Sequence[Card],
    ctx: ScoringContext,
    *,
    clump: bool = False,
) -> float:
    """
    Combined stage score for one candidate.

    Every stage scores curve, role need, interaction need, package completion,
    commander synergy and archetype bonuses. The generic fill stage adds the
    clump penalty to spread the curve.
    """
    score = (
        curve_score(card, main, ctx.profile)
        + role_fulfillment_bonus(card, main, ctx.role_targets)
        + interaction_baseline_boost(card, main, ctx.profile.min_interaction_total)
        + package_completion_score(card, main_cards, ctx.plan, ctx.config)
        + commander_synergy_score(card, ctx.themes)
        + archetype_bonus(card, ctx)
    )
    if clump:
        score += cmc_clump_penalty(card, main)
    return score
