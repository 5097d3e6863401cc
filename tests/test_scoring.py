"""Tests for deck assembly scoring functions."""

import pytest

from commanderforge.models.card import Card
from commanderforge.models.deck import DeckEntry
from commanderforge.models.plan import CommanderPlan
from commanderforge.models.profile import Archetype, ProfileTargets
from commanderforge.models.roles import CardRole, RoleFamily
from commanderforge.services.profile_targets import get_profile_targets, role_targets_from_profile
from commanderforge.services.scoring import (
    ScoringContext,
    archetype_bonus,
    candidate_score,
    cmc_clump_penalty,
    curve_score,
    interaction_baseline_boost,
    interaction_count,
    matches_tribe,
    role_fulfillment_bonus,
)


def _card(name: str, type_line: str, text: str | None = None, cmc: float = 2) -> Card:
    return Card(id=name.lower(), name=name, cmc=cmc, type_line=type_line, oracle_text=text)


SOL_RING = _card("Sol Ring", "Artifact", "{T}: Add {C}{C}.", 1)
COUNTERSPELL = _card("Counterspell", "Instant", "Counter target spell.", 2)
SERRA_ANGEL = _card("Serra Angel", "Creature — Angel", "Flying, vigilance", 5)
BEARS = _card("Grizzly Bears", "Creature — Bear", None, 2)


def _slots(role: CardRole, count: int, cmc: float = 2) -> list[DeckEntry]:
    return [DeckEntry(name=f"{role.value} {i}", role=role, cmc=cmc) for i in range(count)]


@pytest.fixture
def profile() -> ProfileTargets:
    return get_profile_targets(CommanderPlan(commander_name="Test Commander"))


def _ctx(archetype: Archetype = Archetype.BALANCED, tribes: list[str] | None = None):
    plan = CommanderPlan(commander_name="Test Commander", preferred_tribes=tribes or [])
    profile = get_profile_targets(plan)
    return ScoringContext(
        plan=plan,
        profile=profile,
        role_targets=role_targets_from_profile(profile),
        archetype=archetype,
    )


class TestCurveScore:
    def test_two_drop_on_empty_deck(self, profile: ProfileTargets) -> None:
        assert curve_score(BEARS, [], profile) == 1.0

    def test_expensive_card_over_average_ceiling(self, profile: ProfileTargets) -> None:
        seven = _card("Big Thing", "Creature — Giant", None, 7)
        assert curve_score(seven, [], profile) == pytest.approx(0.05)

    def test_moving_toward_target_average(self, profile: ProfileTargets) -> None:
        main = _slots(CardRole.SYNERGY, 1, cmc=5)
        assert curve_score(BEARS, main, profile) == pytest.approx(1.1)


class TestRoleFulfillment:
    def test_short_family_gets_capped_bonus(self) -> None:
        assert role_fulfillment_bonus(SOL_RING, [], {RoleFamily.RAMP: 12}) == 0.5

    def test_over_target_is_penalized(self) -> None:
        main = _slots(CardRole.RAMP_PERMANENT, 14)
        bonus = role_fulfillment_bonus(SOL_RING, main, {RoleFamily.RAMP: 12})
        assert bonus == pytest.approx(-0.12)

    def test_exactly_on_target(self) -> None:
        main = _slots(CardRole.RAMP_PERMANENT, 12)
        assert role_fulfillment_bonus(SOL_RING, main, {RoleFamily.RAMP: 12}) == 0.0

    def test_family_without_target(self) -> None:
        assert role_fulfillment_bonus(BEARS, [], {RoleFamily.RAMP: 12}) == 0.0


class TestInteraction:
    def test_counts_interaction_families(self) -> None:
        main = [
            *_slots(CardRole.REMOVAL_SINGLE, 2),
            *_slots(CardRole.PROTECTION, 1),
            *_slots(CardRole.RAMP_LAND, 3),
        ]
        assert interaction_count(main) == 3

    def test_boost_for_interaction_under_minimum(self) -> None:
        assert interaction_baseline_boost(COUNTERSPELL, [], 10) == 0.8

    def test_no_boost_for_other_roles(self) -> None:
        assert interaction_baseline_boost(BEARS, [], 10) == 0.0

    def test_no_boost_once_minimum_met(self) -> None:
        main = _slots(CardRole.INTERACTION, 10)
        assert interaction_baseline_boost(COUNTERSPELL, main, 10) == 0.0


class TestClumpPenalty:
    def test_below_threshold(self) -> None:
        assert cmc_clump_penalty(BEARS, _slots(CardRole.SYNERGY, 3)) == 0.0

    def test_at_threshold(self) -> None:
        assert cmc_clump_penalty(BEARS, _slots(CardRole.SYNERGY, 4)) == pytest.approx(-0.05)


class TestTribes:
    def test_matches_subtype(self) -> None:
        assert matches_tribe(SERRA_ANGEL, ["angel", "dragon"])

    def test_other_subtype(self) -> None:
        assert not matches_tribe(BEARS, ["angel"])

    def test_noncreature_never_matches(self) -> None:
        tribal_spell = _card("Angelic Rite", "Kindred Instant — Angel")
        assert not matches_tribe(tribal_spell, ["angel"])


class TestArchetypeBonus:
    def test_tribal_match(self) -> None:
        ctx = _ctx(tribes=["angel"])
        assert archetype_bonus(SERRA_ANGEL, ctx) == ctx.config.archetype_bonuses.tribal

    def test_spellslinger_skips_tribes(self) -> None:
        ctx = _ctx(Archetype.SPELLSLINGER, tribes=["angel"])
        assert archetype_bonus(SERRA_ANGEL, ctx) == 0.0
        assert archetype_bonus(COUNTERSPELL, ctx) == ctx.config.archetype_bonuses.spellslinger

    def test_voltron_equipment(self) -> None:
        ctx = _ctx(Archetype.VOLTRON)
        sword = _card("Bonesplitter", "Artifact — Equipment", "Equipped creature gets +2/+0.", 1)
        assert archetype_bonus(sword, ctx) == ctx.config.archetype_bonuses.voltron


class TestCandidateScore:
    def test_includes_archetype_bonus(self) -> None:
        tribal = _ctx(tribes=["angel"])
        with_tribe = candidate_score(SERRA_ANGEL, [], [], tribal)
        without = candidate_score(SERRA_ANGEL, [], [], _ctx())
        assert with_tribe - without == pytest.approx(tribal.config.archetype_bonuses.tribal)

    def test_clump_penalty_applied_on_request(self) -> None:
        ctx = _ctx()
        main = _slots(CardRole.SYNERGY, 5)
        plain = candidate_score(BEARS, main, [], ctx)
        clumped = candidate_score(BEARS, main, [], ctx, clump=True)
        assert clumped < plain
