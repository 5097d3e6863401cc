"""
Upgrade suggestions: cards not in the deck ranked by the impact of adding them.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.card import Card
from commanderforge.models.deck import DeckEntry
from commanderforge.models.plan import CommanderPlan, ThemeId
from commanderforge.models.profile import ProfileTargets
from commanderforge.models.roles import CardRole
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.packages import package_completion_score
from commanderforge.services.profile_targets import RoleTargets
from commanderforge.services.role_classifier import assign_role
from commanderforge.services.scoring import interaction_baseline_boost, role_fulfillment_bonus


@dataclass(frozen=True, slots=True)
class UpgradeSuggestion:
    name: str
    impact_score: float
    role: CardRole


def score_card_impact(
    card: Card,
    current_main: Sequence[DeckEntry],
    main_cards: Sequence[Card],
    plan: CommanderPlan,
    profile: ProfileTargets,
    role_targets: RoleTargets,
    themes: Sequence[ThemeId],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> float:
    """Weighted sum of role need, interaction need, synergy and package completion."""
    weights = config.upgrade_weights
    return (
        role_fulfillment_bonus(card, current_main, role_targets) * weights.role
        + interaction_baseline_boost(card, current_main, profile.min_interaction_total)
        * weights.interaction
        + commander_synergy_score(card, themes) * weights.synergy
        + package_completion_score(card, main_cards, plan, config) * weights.package
    )


def rank_upgrade_suggestions(
    candidates: Iterable[Card],
    current_main: Sequence[DeckEntry],
    plan: CommanderPlan,
    profile: ProfileTargets,
    role_targets: RoleTargets,
    themes: Sequence[ThemeId],
    card_map: Mapping[str, Card],
    limit: int = 20,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[UpgradeSuggestion]:
    """
    Top `limit` cards not already in the main deck, by impact.

    Scores are rounded to two decimals; ties keep candidate order.
    """
    in_main = {e.name.lower() for e in current_main}
    main_cards = [c for e in current_main if (c := card_map.get(e.name.lower())) is not None]

    scored: list[tuple[float, Card]] = []
    seen: set[str] = set()
    for card in candidates:
        key = card.name.lower()
        if key in in_main or key in seen:
            continue
        seen.add(key)
        impact = score_card_impact(
            card, current_main, main_cards, plan, profile, role_targets, themes, config
        )
        scored.append((impact, card))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [
        UpgradeSuggestion(name=card.name, impact_score=round(impact, 2), role=assign_role(card))
        for impact, card in scored[:limit]
    ]
