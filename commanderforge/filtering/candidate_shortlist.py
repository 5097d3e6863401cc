"""
Candidate shortlist: reduces the owned pool to cards worth scoring.

INVARIANTS:
- Filtering is monotonic (only removes cards, never adds)
- Same owned pool + commander + options → same shortlist (deterministic)
- The commander itself never appears
- Every survivor's color identity is within the commander's
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.filtering.legality import is_commander_legal, within_color_identity
from commanderforge.models.card import Card, OwnedCard, is_basic_land_name
from commanderforge.models.deck import CandidateEntry
from commanderforge.models.plan import CommanderPlan, Tempo
from commanderforge.models.roles import CardRole, RoleFamily
from commanderforge.services.packages import get_packages_filled_by_card
from commanderforge.services.role_classifier import assign_role, role_to_family

logger = logging.getLogger(__name__)

# Families never trimmed for high mana value on fast plans
HIGH_CMC_KEEP_FAMILIES = frozenset({RoleFamily.PAYOFF, RoleFamily.SYNERGY, RoleFamily.FINISHER})


@dataclass
class ShortlistMetrics:
    """Pool sizes after each filtering step."""

    owned: int = 0
    resolved: int = 0
    after_commander: int = 0
    after_identity: int = 0
    after_legality: int = 0
    after_relevance: int = 0
    after_tempo: int = 0


def collect_candidates(
    owned: Iterable[OwnedCard],
    card_map: Mapping[str, Card],
    commander: Card,
    *,
    enforce_legality: bool = True,
    metrics: ShortlistMetrics | None = None,
) -> list[CandidateEntry]:
    """
    Resolve owned cards and drop the ones that can never be in this deck.

    `card_map` is keyed by lowercased name. Basic lands are skipped since
    they are synthesized during land fill.
    """
    metrics = metrics or ShortlistMetrics()
    identity = commander.color_identity
    commander_name = commander.name.lower()

    seen: set[str] = set()
    candidates: list[CandidateEntry] = []
    for entry in owned:
        metrics.owned += 1
        key = entry.name.strip().lower()
        if entry.quantity < 1 or key in seen or is_basic_land_name(key):
            continue
        card = card_map.get(key)
        if card is None:
            continue
        seen.add(key)
        metrics.resolved += 1

        if card.name.lower() == commander_name:
            continue
        metrics.after_commander += 1

        if not within_color_identity(card, identity):
            continue
        metrics.after_identity += 1

        if enforce_legality and not is_commander_legal(card):
            continue
        metrics.after_legality += 1

        candidates.append(CandidateEntry(card=card, owned=entry, role=assign_role(card)))

    return candidates


def is_plan_relevant(entry: CandidateEntry, plan: CommanderPlan) -> bool:
    """Keep anything with a real role, or that fills a required package."""
    if entry.role in (CardRole.LAND, CardRole.UTILITY):
        return True
    if role_to_family(entry.role) != RoleFamily.OTHER:
        return True
    return bool(get_packages_filled_by_card(entry.card).intersection(plan.required_packages))


def build_shortlist(candidates: list[CandidateEntry], plan: CommanderPlan) -> list[CandidateEntry]:
    """Drop role-less noise that fills none of the plan's packages."""
    return [c for c in candidates if is_plan_relevant(c, plan)]


def trim_high_cmc_for_tempo(
    candidates: list[CandidateEntry],
    plan: CommanderPlan,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[CandidateEntry]:
    """
    Fast plans drop expensive nonland cards.

    Payoffs, synergy pieces and finishers are kept, as are creatures when the
    commander puts creatures onto the battlefield for free.
    """
    if plan.tempo != Tempo.FAST:
        return candidates

    kept: list[CandidateEntry] = []
    for entry in candidates:
        if entry.role == CardRole.LAND or entry.cmc <= config.high_cmc_ceiling:
            kept.append(entry)
        elif role_to_family(entry.role) in HIGH_CMC_KEEP_FAMILIES:
            kept.append(entry)
        elif plan.commander_cheats_creatures and entry.card.is_creature:
            kept.append(entry)
    return kept


def shortlist_for_build(
    owned: Iterable[OwnedCard],
    card_map: Mapping[str, Card],
    commander: Card,
    plan: CommanderPlan,
    *,
    enforce_legality: bool = True,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> tuple[list[CandidateEntry], ShortlistMetrics]:
    """Run every shortlist step and log pool sizes."""
    metrics = ShortlistMetrics()
    candidates = collect_candidates(
        owned, card_map, commander, enforce_legality=enforce_legality, metrics=metrics
    )

    candidates = build_shortlist(candidates, plan)
    metrics.after_relevance = len(candidates)

    candidates = trim_high_cmc_for_tempo(candidates, plan, config)
    metrics.after_tempo = len(candidates)

    logger.info(
        "candidate_shortlist_built",
        extra={
            "commander": commander.name,
            "owned": metrics.owned,
            "resolved": metrics.resolved,
            "after_identity": metrics.after_identity,
            "after_legality": metrics.after_legality,
            "after_relevance": metrics.after_relevance,
            "final": metrics.after_tempo,
        },
    )
    return candidates, metrics
