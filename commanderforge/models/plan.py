"""
Commander plan model.

A CommanderPlan is everything the engine infers from the commander's own
card: themes, tribes, win conditions and the numeric adjustments they imply.
It depends only on the commander's text, so it can be cached forever by
commander id. The model is JSON serializable for that cache.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from commanderforge.models.profile import TargetOverrides


class ThemeId(str, Enum):
    SPELLSLINGER = "spellslinger"
    TOKENS = "tokens"
    COUNTERS = "counters"
    SACRIFICE = "sacrifice"
    ARTIFACTS = "artifacts"
    ENCHANTMENTS = "enchantments"
    LANDFALL = "landfall"
    GRAVEYARD = "graveyard"
    ATTACK = "attack"
    FLYING = "flying"
    LIFEGAIN = "lifegain"
    DRAW = "draw"
    VOLTRON = "voltron"
    ETB = "etb"
    DEATH = "death"
    TAP_UNTAP = "tap_untap"
    TOP_OF_LIBRARY = "top_of_library"
    COPY = "copy"
    COMMANDER_DAMAGE = "commander_damage"


class WinCondition(str, Enum):
    COMBAT = "combat"
    COMMANDER_DAMAGE = "commander_damage"
    DRAIN = "drain"
    COMBO = "combo"
    TOKENS_WIDE = "tokens_wide"
    MILL = "mill"
    ALT_WIN = "alt_win"


class KeyResource(str, Enum):
    GRAVEYARD = "graveyard"
    TOKENS = "tokens"
    ARTIFACTS = "artifacts"
    ENCHANTMENTS = "enchantments"
    MANA_DORKS = "mana_dorks"
    PERMANENT_DENSITY = "permanent_density"
    SPELL_COUNT = "spell_count"
    COUNTERS = "counters"


class PackageId(str, Enum):
    """Named sub-strategy components a themed deck needs a minimum of."""

    SAC_OUTLETS = "sac_outlets"
    SAC_FODDER = "sac_fodder"
    SAC_PAYOFFS = "sac_payoffs"
    TOKEN_MAKERS = "token_makers"
    TOKEN_PAYOFFS = "token_payoffs"
    REANIMATE_TARGETS = "reanimate_targets"
    REANIMATE_EFFECTS = "reanimate_effects"
    DISCARD_OUTLETS = "discard_outlets"
    CHEAP_SPELLS = "cheap_spells"
    SPELL_PAYOFFS = "spell_payoffs"
    EQUIPMENT_AURAS = "equipment_auras"
    VOLTRON_PROTECTION = "voltron_protection"
    RAMP_DENSITY = "ramp_density"
    DRAW_ENGINES = "draw_engines"


class Tempo(str, Enum):
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    VARIABLE = "variable"


class CurveShape(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"
    BIMODAL = "bimodal"


class PipIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WinConditionTargets(BaseModel):
    """Payoff counts wanted for the commander's win conditions."""

    model_config = ConfigDict(frozen=True)

    drain_payoffs: int | None = None
    token_makers: int | None = None
    token_payoffs: int | None = None
    reanimate_targets: int | None = None
    reanimate_effects: int | None = None
    combo_interaction: int | None = None


class CommanderPlan(BaseModel):
    """How a commander wants to win and what its deck needs."""

    model_config = ConfigDict(frozen=True)

    commander_name: str
    primary_themes: list[ThemeId] = Field(default_factory=list)
    preferred_tribes: list[str] = Field(default_factory=list)
    win_conditions: list[WinCondition] = Field(default_factory=lambda: [WinCondition.COMBAT])
    key_resources: list[KeyResource] = Field(default_factory=list)
    required_packages: list[PackageId] = Field(default_factory=list)
    tempo: Tempo = Tempo.MEDIUM
    curve_shape: CurveShape = CurveShape.MID
    target_avg_cmc: float = 2.8
    must_have_mechanics: list[str] = Field(default_factory=list)
    commander_cheats_creatures: bool = False
    commander_reduces_cost: bool = False
    pip_intensity: PipIntensity = PipIntensity.LOW
    role_target_overrides: TargetOverrides = Field(default_factory=TargetOverrides)
    package_minimums: dict[PackageId, int] = Field(default_factory=dict)
    win_condition_targets: WinConditionTargets = Field(default_factory=WinConditionTargets)
