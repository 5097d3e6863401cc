"""Tests for swap-based deck improvement."""

import random

import pytest

from commanderforge.config import TypeCaps
from commanderforge.models.card import Card, OwnedCard
from commanderforge.models.deck import CandidateEntry, DeckEntry
from commanderforge.models.profile import BuilderOptions
from commanderforge.models.roles import CardRole
from commanderforge.services.commander_plan import get_commander_plan
from commanderforge.services.deck_improver import (
    count_types,
    deck_score,
    run_improvement_cycles,
    satisfies_hard_constraints,
)
from commanderforge.services.profile_targets import get_profile_targets, role_targets_from_profile
from commanderforge.services.scoring import ScoringContext

CAPS = TypeCaps(max_instants=2, max_sorceries=2, min_creatures=3)


def _beast(name: str, cmc: float) -> Card:
    return Card(
        id=name.lower().replace(" ", "-"),
        name=name,
        cmc=cmc,
        color_identity=frozenset("G"),
        type_line="Creature — Beast",
        legalities={"commander": "legal"},
    )


def _entry(card: Card) -> DeckEntry:
    return DeckEntry(name=card.name, role=CardRole.SYNERGY, cmc=card.cmc, type_line=card.type_line)


def _candidate(card: Card) -> CandidateEntry:
    return CandidateEntry(card=card, owned=OwnedCard(name=card.name), role=CardRole.SYNERGY)


@pytest.fixture
def ctx() -> ScoringContext:
    commander = Card(
        id="bland-captain",
        name="Bland Captain",
        cmc=4,
        color_identity=frozenset("G"),
        type_line="Legendary Creature — Human Warrior",
    )
    plan = get_commander_plan(commander)
    profile = get_profile_targets(plan, BuilderOptions())
    return ScoringContext(
        plan=plan, profile=profile, role_targets=role_targets_from_profile(profile)
    )


@pytest.fixture
def heavy_deck() -> tuple[list[DeckEntry], list[CandidateEntry], dict[str, Card]]:
    heavy = [_beast(f"Heavy Beast {i}", 4) for i in range(10)]
    light = [_beast(f"Light Beast {i}", 3) for i in range(10)]
    card_map = {c.name.lower(): c for c in heavy + light}
    main = [_entry(c) for c in heavy]
    candidates = [_candidate(c) for c in heavy + light]
    return main, candidates, card_map


class TestHardConstraints:
    def test_duplicates_rejected(self) -> None:
        bear = _entry(_beast("Bear", 2))
        assert not satisfies_hard_constraints([bear, bear], CAPS, keep_creature_floor=False)

    def test_instant_cap(self) -> None:
        main = [
            DeckEntry(name=f"Trick {i}", role=CardRole.UTILITY, type_line="Instant")
            for i in range(3)
        ]
        assert count_types(main).instants == 3
        assert not satisfies_hard_constraints(main, CAPS, keep_creature_floor=False)

    def test_creature_floor_only_when_kept(self) -> None:
        main = [_entry(_beast("Lonely Beast", 2))]
        assert satisfies_hard_constraints(main, CAPS, keep_creature_floor=False)
        assert not satisfies_hard_constraints(main, CAPS, keep_creature_floor=True)


class TestDeckScore:
    def test_empty_deck_scores_zero(self, ctx: ScoringContext) -> None:
        assert deck_score([], {}, ctx) == 0.0

    def test_curve_near_target_scores_higher(self, ctx: ScoringContext) -> None:
        heavy = [_beast(f"Heavy {i}", 6) for i in range(10)]
        even = [_beast(f"Even {i}", 3) for i in range(10)]
        card_map = {c.name.lower(): c for c in heavy + even}

        heavy_score = deck_score([_entry(c) for c in heavy], card_map, ctx)
        even_score = deck_score([_entry(c) for c in even], card_map, ctx)

        assert even_score > heavy_score


class TestRunImprovementCycles:
    def test_swaps_lower_the_curve(self, ctx: ScoringContext, heavy_deck) -> None:
        main, candidates, card_map = heavy_deck

        result = run_improvement_cycles(
            main, candidates, card_map, ctx, CAPS, rng=random.Random(0)
        )

        assert result.improved
        assert 1 <= result.swaps <= ctx.config.improve_cycles
        assert len(result.main) == len(main)
        assert len({e.name for e in result.main}) == len(main)
        assert sum(e.cmc for e in result.main) < sum(e.cmc for e in main)

    def test_swaps_keep_slot_positions(self, ctx: ScoringContext, heavy_deck) -> None:
        main, candidates, card_map = heavy_deck

        result = run_improvement_cycles(
            main, candidates, card_map, ctx, CAPS, rng=random.Random(0)
        )

        for before, after in zip(main, result.main, strict=True):
            assert after == before or after.name.startswith("Light Beast")

    def test_same_seed_same_result(self, ctx: ScoringContext, heavy_deck) -> None:
        main, candidates, card_map = heavy_deck

        first = run_improvement_cycles(main, candidates, card_map, ctx, CAPS, rng=random.Random(4))
        second = run_improvement_cycles(main, candidates, card_map, ctx, CAPS, rng=random.Random(4))

        assert [e.name for e in first.main] == [e.name for e in second.main]

    def test_no_pool_returns_input(self, ctx: ScoringContext, heavy_deck) -> None:
        main, candidates, card_map = heavy_deck
        in_main = [c for c in candidates if c.name.startswith("Heavy")]

        result = run_improvement_cycles(main, in_main, card_map, ctx, CAPS, rng=random.Random(0))

        assert result.main is main
        assert not result.improved
        assert result.swaps == 0

    def test_equal_alternatives_are_not_swapped(self, ctx: ScoringContext) -> None:
        """Only strict improvements are accepted."""
        current = [_beast(f"Steady Beast {i}", 3) for i in range(6)]
        twins = [_beast(f"Twin Beast {i}", 3) for i in range(6)]
        card_map = {c.name.lower(): c for c in current + twins}
        main = [_entry(c) for c in current]

        result = run_improvement_cycles(
            main,
            [_candidate(c) for c in current + twins],
            card_map,
            ctx,
            CAPS,
            rng=random.Random(0),
        )

        assert result.main is main
        assert not result.improved

    def test_progress_messages(self, ctx: ScoringContext, heavy_deck) -> None:
        main, candidates, card_map = heavy_deck
        messages: list[str] = []

        run_improvement_cycles(
            main,
            candidates,
            card_map,
            ctx,
            CAPS,
            rng=random.Random(0),
            on_progress=messages.append,
        )

        assert messages
        assert messages[0].startswith("Optimizing deck (cycle 1/")
