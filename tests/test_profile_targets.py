"""Tests for the profile target resolver."""

import pytest

from commanderforge.config import DEFAULT_ENGINE_CONFIG
from commanderforge.models.plan import CommanderPlan
from commanderforge.models.profile import (
    Archetype,
    BuilderOptions,
    MergeMode,
    MetaEnvironment,
    Playstyle,
    PowerLevel,
    TargetOverrides,
)
from commanderforge.models.roles import RoleFamily
from commanderforge.services.profile_targets import (
    base_profile_targets,
    get_profile_targets,
    merge_targets,
    role_targets_from_profile,
)


@pytest.fixture
def plan() -> CommanderPlan:
    return CommanderPlan(commander_name="Test Commander")


class TestMergeTargets:
    def test_unset_and_zero_fields_are_ignored(self, plan: CommanderPlan) -> None:
        base = base_profile_targets(plan)
        merged = merge_targets(base, TargetOverrides(target_ramp=0, target_draw=None))
        assert merged == base

    def test_override_mode(self, plan: CommanderPlan) -> None:
        base = base_profile_targets(plan)
        assert merge_targets(base, TargetOverrides(target_ramp=5)).target_ramp == 5

    def test_max_mode_only_raises(self, plan: CommanderPlan) -> None:
        base = base_profile_targets(plan)
        layer = TargetOverrides(target_ramp=5, target_draw=20)
        merged = merge_targets(base, layer, MergeMode.MAX)
        assert merged.target_ramp == base.target_ramp
        assert merged.target_draw == 20

    def test_min_mode_only_lowers(self, plan: CommanderPlan) -> None:
        base = base_profile_targets(plan)
        layer = TargetOverrides(target_lands_max=36, target_ramp=50)
        merged = merge_targets(base, layer, MergeMode.MIN)
        assert merged.target_lands_max == 36
        assert merged.target_ramp == base.target_ramp

    def test_none_layer(self, plan: CommanderPlan) -> None:
        base = base_profile_targets(plan)
        assert merge_targets(base, None) is base


class TestGetProfileTargets:
    def test_defaults(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan)

        assert targets.target_ramp == DEFAULT_ENGINE_CONFIG.target_ramp
        assert targets.target_lands_min == 34
        assert targets.target_lands_max == 38
        assert targets.target_land_count == 36
        assert targets.target_avg_cmc == 2.8
        assert targets.max_avg_cmc == 3.5

    def test_precon_power(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan, BuilderOptions(power=PowerLevel.PRECON))
        assert targets.target_ramp == 11
        assert (targets.target_lands_min, targets.target_lands_max) == (37, 40)

    def test_control_archetype(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan, BuilderOptions(archetype=Archetype.CONTROL))
        assert targets.target_removal == 15
        assert targets.target_sweeper == 6
        assert targets.min_interaction_total == 14

    def test_combo_meta_raises_floors(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan, BuilderOptions(meta=MetaEnvironment.COMBO))
        assert targets.target_interaction == 8
        assert targets.min_interaction_total == 12

    def test_stax_lite_playstyle(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan, BuilderOptions(playstyle=Playstyle.STAX_LITE))
        assert targets.target_interaction == 8
        assert targets.min_interaction_total == 12

    def test_battlecruiser_raises_curve(self, plan: CommanderPlan) -> None:
        targets = get_profile_targets(plan, BuilderOptions(playstyle=Playstyle.BATTLECRUISER))
        assert targets.target_avg_cmc == pytest.approx(3.2)
        assert targets.max_avg_cmc == pytest.approx(3.9)

    def test_plan_overrides_win_over_casual_power(self) -> None:
        """Precon lowers ramp to 11 but the commander's plan wants 15."""
        plan = CommanderPlan(
            commander_name="Landfall Commander",
            role_target_overrides=TargetOverrides(target_ramp=15),
        )
        targets = get_profile_targets(plan, BuilderOptions(power=PowerLevel.PRECON))
        assert targets.target_ramp == 15

    def test_plan_land_ceiling_keeps_range_valid(self) -> None:
        """A lower land ceiling pulls the minimum down with it."""
        plan = CommanderPlan(
            commander_name="Low Curve Commander",
            role_target_overrides=TargetOverrides(target_lands_max=36),
        )
        targets = get_profile_targets(plan, BuilderOptions(power=PowerLevel.PRECON))
        assert targets.target_lands_max == 36
        assert targets.target_lands_min == 36

    def test_lands_never_exceed_engine_maximum(self) -> None:
        plan = CommanderPlan(
            commander_name="Land Lover",
            role_target_overrides=TargetOverrides(target_lands_min=42, target_lands_max=45),
        )
        targets = get_profile_targets(plan)
        assert targets.target_lands_max <= DEFAULT_ENGINE_CONFIG.max_lands
        assert targets.target_lands_min <= targets.target_lands_max


class TestRoleTargets:
    def test_families(self, plan: CommanderPlan) -> None:
        profile = get_profile_targets(plan)
        role_targets = role_targets_from_profile(profile)

        assert role_targets[RoleFamily.RAMP] == profile.target_ramp
        assert role_targets[RoleFamily.SYNERGY] == profile.target_theme_synergy
        assert RoleFamily.LAND not in role_targets
