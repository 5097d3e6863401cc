"""
Swap-based local search over a drafted deck.

Each cycle samples main-deck slots, tries the best-ranked unused candidates in
each slot and keeps the single best swap if it strictly raises the composite
deck score while the hard constraints still hold. Only nonland slots are
swapped, so the land count and the deck total never change.
"""

import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from statistics import fmean, pvariance

from commanderforge.config import TypeCaps
from commanderforge.models.card import Card
from commanderforge.models.deck import CandidateEntry, DeckEntry
from commanderforge.models.roles import RoleFamily
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.role_classifier import count_by_role_family, role_to_family
from commanderforge.services.scoring import ScoringContext, candidate_score, interaction_count

logger = logging.getLogger(__name__)


@dataclass
class ImprovementResult:
    """Outcome of local search."""

    main: list[DeckEntry]
    improved: bool
    swaps: int = 0


@dataclass(frozen=True)
class TypeCounts:
    instants: int
    sorceries: int
    creatures: int


def count_types(main: Sequence[DeckEntry]) -> TypeCounts:
    instants = sorceries = creatures = 0
    for entry in main:
        type_line = (entry.type_line or "").lower()
        instants += "instant" in type_line
        sorceries += "sorcery" in type_line
        creatures += "creature" in type_line
    return TypeCounts(instants, sorceries, creatures)


def satisfies_hard_constraints(
    main: Sequence[DeckEntry],
    caps: TypeCaps,
    *,
    keep_creature_floor: bool,
) -> bool:
    """Singleton, instant and sorcery caps, and the creature floor when it applies."""
    names = [e.name.lower() for e in main]
    if len(names) != len(set(names)):
        return False
    counts = count_types(main)
    if counts.instants > caps.max_instants or counts.sorceries > caps.max_sorceries:
        return False
    if keep_creature_floor and counts.creatures < caps.min_creatures:
        return False
    return True


def _cards_for(main: Sequence[DeckEntry], card_map: Mapping[str, Card]) -> list[Card]:
    return [c for e in main if (c := card_map.get(e.name.lower())) is not None]


def deck_score(
    main: Sequence[DeckEntry],
    card_map: Mapping[str, Card],
    ctx: ScoringContext,
) -> float:
    """
    Composite score of a main deck (higher is better).

    curve:       max(0, 2 - |avg - target| * 0.5 - variance * 0.1)
    role:        sum over role targets of max(0, 1 - |count - target| * 0.08)
    interaction: fraction of the interaction minimum reached, capped at 1
    synergy:     mean commander synergy of the main deck
    """
    if not main:
        return 0.0

    weights = ctx.config.deck_score_weights
    cmcs = [e.cmc for e in main]
    avg = fmean(cmcs)
    curve = max(0.0, 2 - abs(avg - ctx.profile.target_avg_cmc) * 0.5 - pvariance(cmcs) * 0.1)

    counts = count_by_role_family(main)
    role = sum(
        max(0.0, 1 - abs(counts[family] - target) * 0.08)
        for family, target in ctx.role_targets.items()
    )

    minimum = ctx.profile.min_interaction_total
    interaction = 1.0 if minimum <= 0 else min(1.0, interaction_count(main) / minimum)

    cards = _cards_for(main, card_map)
    synergy = fmean(commander_synergy_score(c, ctx.themes) for c in cards) if cards else 0.0

    return (
        curve * weights.curve
        + role * weights.role
        + interaction * weights.interaction
        + synergy * weights.synergy
    )


def _to_entry(candidate: CandidateEntry) -> DeckEntry:
    card = candidate.card
    return DeckEntry(
        name=card.name,
        role=candidate.role,
        cmc=card.cmc,
        type_line=card.type_line,
        image_url=card.image_url,
    )


def _ranked_pool(
    pool: Sequence[CandidateEntry],
    main_without: Sequence[DeckEntry],
    card_map: Mapping[str, Card],
    ctx: ScoringContext,
    limit: int,
) -> list[CandidateEntry]:
    main_cards = _cards_for(main_without, card_map)
    scored = [
        (candidate_score(c.card, main_without, main_cards, ctx), c) for c in pool
    ]
    scored.sort(key=lambda pair: (-pair[0], pair[1].cmc, pair[1].name))
    return [c for _, c in scored[:limit]]


def run_improvement_cycles(
    main: list[DeckEntry],
    candidates: Sequence[CandidateEntry],
    card_map: Mapping[str, Card],
    ctx: ScoringContext,
    caps: TypeCaps,
    *,
    rng: random.Random | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> ImprovementResult:
    """
    Improve a drafted main deck by single-card swaps.

    Returns the input list unchanged when no swap helps. Accepted swaps keep
    the slot position of the card they replace.
    """
    rng = rng or random.Random()
    config = ctx.config

    in_main = {e.name.lower() for e in main}
    pool = [
        c
        for c in candidates
        if role_to_family(c.role) != RoleFamily.LAND and c.name.lower() not in in_main
    ]
    if not main or not pool:
        return ImprovementResult(main=main, improved=False)

    current = list(main)
    swaps = 0
    for cycle in range(config.improve_cycles):
        if on_progress:
            on_progress(f"Optimizing deck (cycle {cycle + 1}/{config.improve_cycles})…")

        current_score = deck_score(current, card_map, ctx)
        creature_floor_met = count_types(current).creatures >= caps.min_creatures
        used = {e.name.lower() for e in current}
        available = [c for c in pool if c.name.lower() not in used]
        if not available:
            break

        slots = rng.sample(range(len(current)), min(config.swap_slots, len(current)))

        best: list[DeckEntry] | None = None
        best_score = current_score
        for index in slots:
            main_without = current[:index] + current[index + 1 :]
            for incoming in _ranked_pool(available, main_without, card_map, ctx, config.swap_pool):
                trial = current[:index] + [_to_entry(incoming)] + current[index + 1 :]
                if not satisfies_hard_constraints(
                    trial, caps, keep_creature_floor=creature_floor_met
                ):
                    continue
                score = deck_score(trial, card_map, ctx)
                if score > best_score:
                    best_score = score
                    best = trial

        if best is not None:
            current = best
            swaps += 1
            logger.debug(
                "deck_swap_accepted",
                extra={
                    "cycle": cycle + 1,
                    "score_before": current_score,
                    "score_after": best_score,
                },
            )

    if not swaps:
        return ImprovementResult(main=main, improved=False)

    logger.info("deck_improved", extra={"swaps": swaps})
    return ImprovementResult(main=current, improved=True, swaps=swaps)
