"""
Profile target resolver.

Turns a commander plan and the player's options into concrete numeric
targets. Layers are applied in a fixed order through one merge function:

1. archetype overrides
2. power level overrides
3. meta adjustments (raise floors only)
4. playstyle adjustments (raise floors only)
5. commander plan overrides: `max` for "more is better" targets, `min` for
   the land ceiling, so casual settings never starve the commander's needs
"""

from dataclasses import fields, replace

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.plan import CommanderPlan
from commanderforge.models.profile import (
    BuilderOptions,
    MergeMode,
    MetaEnvironment,
    Playstyle,
    ProfileTargets,
    TargetOverrides,
)
from commanderforge.models.roles import RoleFamily

RoleTargets = dict[RoleFamily, int]

META_ADJUSTMENTS: dict[MetaEnvironment, TargetOverrides] = {
    MetaEnvironment.BALANCED: TargetOverrides(),
    MetaEnvironment.COMBO: TargetOverrides(target_interaction=8, min_interaction_total=12),
    MetaEnvironment.GRAVEYARD: TargetOverrides(target_removal=12, min_interaction_total=11),
}

STAX_LITE = TargetOverrides(target_interaction=8, min_interaction_total=12)


def merge_targets(
    base: ProfileTargets,
    overrides: TargetOverrides | None,
    mode: MergeMode = MergeMode.OVERRIDE,
) -> ProfileTargets:
    """
    Merge one override layer into the current targets.

    None and zero values in the layer are ignored, so each layer only
    changes the fields it explicitly sets.
    """
    if overrides is None:
        return base

    changes: dict[str, int | float] = {}
    for f in fields(base):
        value = getattr(overrides, f.name, None)
        if not value:
            continue
        current = getattr(base, f.name)
        if mode == MergeMode.MAX:
            changes[f.name] = max(current, value)
        elif mode == MergeMode.MIN:
            changes[f.name] = min(current, value)
        else:
            changes[f.name] = value

    return replace(base, **changes) if changes else base


def base_profile_targets(
    plan: CommanderPlan,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ProfileTargets:
    """Engine-wide defaults with the plan's target curve."""
    return ProfileTargets(
        target_ramp=config.target_ramp,
        target_draw=config.target_draw,
        target_removal=config.target_removal,
        target_interaction=config.target_interaction,
        target_sweeper=config.target_sweeper,
        target_finisher=config.target_finisher,
        target_theme_synergy=config.target_theme_synergy,
        min_interaction_total=config.min_interaction_total,
        target_lands_min=config.target_lands_min,
        target_lands_max=config.target_lands_max,
        target_avg_cmc=plan.target_avg_cmc,
        max_avg_cmc=min(config.max_avg_cmc_ceiling, plan.target_avg_cmc + config.max_avg_cmc_slack),
    )


def _playstyle_layer(playstyle: Playstyle, current: ProfileTargets) -> TargetOverrides | None:
    if playstyle == Playstyle.STAX_LITE:
        return STAX_LITE
    if playstyle == Playstyle.BATTLECRUISER:
        return TargetOverrides(
            target_avg_cmc=min(3.4, current.target_avg_cmc + 0.4),
            max_avg_cmc=min(4.0, current.max_avg_cmc + 0.4),
        )
    return None


def _split_plan_overrides(
    overrides: TargetOverrides,
) -> tuple[TargetOverrides, TargetOverrides]:
    """Separate the land ceiling (min-merged) from everything else (max-merged)."""
    raised = overrides.model_copy(update={"target_lands_max": None})
    ceiling = TargetOverrides(target_lands_max=overrides.target_lands_max)
    return raised, ceiling


def get_profile_targets(
    plan: CommanderPlan,
    options: BuilderOptions | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ProfileTargets:
    """Resolve the numeric targets for one build."""
    options = options or BuilderOptions()

    targets = base_profile_targets(plan, config)
    targets = merge_targets(targets, config.archetype_overrides.get(options.archetype.value))
    targets = merge_targets(targets, config.power_overrides.get(options.power.value))
    targets = merge_targets(targets, META_ADJUSTMENTS.get(options.meta), MergeMode.MAX)
    targets = merge_targets(targets, _playstyle_layer(options.playstyle, targets), MergeMode.MAX)

    raised, ceiling = _split_plan_overrides(plan.role_target_overrides)
    targets = merge_targets(targets, raised, MergeMode.MAX)
    targets = merge_targets(targets, ceiling, MergeMode.MIN)

    if targets.target_lands_min > targets.target_lands_max:
        targets = replace(targets, target_lands_min=targets.target_lands_max)
    if targets.target_lands_max > config.max_lands:
        targets = replace(targets, target_lands_max=config.max_lands)
    return targets


def role_targets_from_profile(profile: ProfileTargets) -> RoleTargets:
    """Per-family counts the scoring functions aim for."""
    return {
        RoleFamily.RAMP: profile.target_ramp,
        RoleFamily.DRAW: profile.target_draw,
        RoleFamily.REMOVAL: profile.target_removal,
        RoleFamily.INTERACTION: profile.target_interaction,
        RoleFamily.SWEEPER: profile.target_sweeper,
        RoleFamily.FINISHER: profile.target_finisher,
        RoleFamily.SYNERGY: profile.target_theme_synergy,
    }
