"""
Builder options and resolved profile targets.

BuilderOptions come from the user. ProfileTargets are derived per build from
the commander plan plus those options and are never persisted.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Archetype(str, Enum):
    """User-selected deck style."""

    BALANCED = "balanced"
    TRIBAL = "tribal"
    SPELLSLINGER = "spellslinger"
    VOLTRON = "voltron"
    CONTROL = "control"


class PowerLevel(str, Enum):
    PRECON = "precon"
    UPGRADED = "upgraded"
    HIGH_POWER = "high_power"
    CEDH = "cedh"


class MetaEnvironment(str, Enum):
    BALANCED = "balanced"
    COMBO = "combo"
    GRAVEYARD = "graveyard"


class Playstyle(str, Enum):
    BALANCED = "balanced"
    STAX_LITE = "stax_lite"
    BATTLECRUISER = "battlecruiser"


class MergeMode(str, Enum):
    """How an override layer combines with the current targets."""

    OVERRIDE = "override"
    MAX = "max"
    MIN = "min"


class BuilderOptions(BaseModel):
    """Options chosen by the player for one build."""

    model_config = ConfigDict(frozen=True)

    enforce_legality: bool = True
    archetype: Archetype = Archetype.BALANCED
    power: PowerLevel = PowerLevel.UPGRADED
    meta: MetaEnvironment = MetaEnvironment.BALANCED
    playstyle: Playstyle = Playstyle.BALANCED


class TargetOverrides(BaseModel):
    """
    A partial set of profile targets.

    Unset (None) and zero fields leave the current value untouched when the
    layer is merged.
    """

    model_config = ConfigDict(frozen=True)

    target_ramp: int | None = None
    target_draw: int | None = None
    target_removal: int | None = None
    target_interaction: int | None = None
    target_sweeper: int | None = None
    target_finisher: int | None = None
    target_theme_synergy: int | None = None
    min_interaction_total: int | None = None
    target_lands_min: int | None = None
    target_lands_max: int | None = None
    target_avg_cmc: float | None = None
    max_avg_cmc: float | None = None


@dataclass(frozen=True, slots=True)
class ProfileTargets:
    """Resolved numeric goals for one build."""

    target_ramp: int
    target_draw: int
    target_removal: int
    target_interaction: int
    target_sweeper: int
    target_finisher: int
    target_theme_synergy: int
    min_interaction_total: int
    target_lands_min: int
    target_lands_max: int
    target_avg_cmc: float
    max_avg_cmc: float

    @property
    def target_land_count(self) -> int:
        """Midpoint of the land range, used to size the nonland section."""
        return (self.target_lands_min + self.target_lands_max) // 2
