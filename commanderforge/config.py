from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from commanderforge.models.profile import TargetOverrides

DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CommanderForge"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/commanderforge"

    card_database_path: Path = DATA_DIR / "oracle-cards.json"

    # Casual tables can turn this off per request
    enforce_legality_default: bool = True


settings = Settings()


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================
#
# Every numeric knob of the deck assembly engine lives here. Bump `version`
# whenever a value changes so cached commander plans are recomputed.
#
# =============================================================================


class TypeCaps(BaseModel):
    """Card type limits for one archetype."""

    model_config = ConfigDict(frozen=True)

    max_instants: int
    max_sorceries: int
    min_creatures: int
    min_sorceries: int = 0
    min_enchantments: int = 0


class DeckScoreWeights(BaseModel):
    """Weights of the composite deck score used by local search."""

    model_config = ConfigDict(frozen=True)

    curve: float = 0.3
    role: float = 0.35
    interaction: float = 0.25
    synergy: float = 0.1


class UpgradeWeights(BaseModel):
    """Weights of the upgrade impact score."""

    model_config = ConfigDict(frozen=True)

    role: float = 2.0
    interaction: float = 1.5
    synergy: float = 0.4
    package: float = 1.2


class ArchetypeBonuses(BaseModel):
    """Flat bonuses layered over the curve score for on-plan cards."""

    model_config = ConfigDict(frozen=True)

    tribal: float = 2.5
    spellslinger: float = 1.8
    voltron: float = 2.0


def _archetype_overrides() -> dict[str, TargetOverrides]:
    return {
        "balanced": TargetOverrides(),
        "tribal": TargetOverrides(),
        "spellslinger": TargetOverrides(target_draw=14),
        "voltron": TargetOverrides(target_finisher=6),
        "control": TargetOverrides(
            target_removal=15,
            target_draw=13,
            target_sweeper=6,
            min_interaction_total=14,
        ),
    }


def _power_overrides() -> dict[str, TargetOverrides]:
    return {
        "precon": TargetOverrides(
            target_ramp=11,
            target_draw=10,
            target_removal=8,
            target_interaction=4,
            target_sweeper=3,
            min_interaction_total=8,
            target_lands_min=37,
            target_lands_max=40,
            target_avg_cmc=3.0,
            max_avg_cmc=3.8,
        ),
        "upgraded": TargetOverrides(),
        "high_power": TargetOverrides(
            target_ramp=13,
            target_draw=12,
            target_removal=12,
            target_interaction=8,
            target_sweeper=5,
            min_interaction_total=12,
            target_lands_min=34,
            target_lands_max=37,
            target_avg_cmc=2.4,
            max_avg_cmc=3.2,
        ),
        "cedh": TargetOverrides(
            target_ramp=14,
            target_draw=14,
            target_removal=12,
            target_interaction=10,
            target_sweeper=4,
            min_interaction_total=14,
            target_lands_min=32,
            target_lands_max=35,
            target_avg_cmc=2.0,
            max_avg_cmc=2.8,
        ),
    }


def _type_caps() -> dict[str, TypeCaps]:
    return {
        "balanced": TypeCaps(
            max_instants=12, max_sorceries=10, min_creatures=25, min_sorceries=3
        ),
        "tribal": TypeCaps(max_instants=10, max_sorceries=8, min_creatures=30),
        "spellslinger": TypeCaps(
            max_instants=30, max_sorceries=25, min_creatures=5, min_sorceries=8
        ),
        "voltron": TypeCaps(
            max_instants=10, max_sorceries=8, min_creatures=20, min_enchantments=4
        ),
        "control": TypeCaps(
            max_instants=18, max_sorceries=14, min_creatures=15, min_sorceries=4
        ),
    }


def _package_minimums() -> dict[str, int]:
    return {
        "sac_outlets": 3,
        "sac_fodder": 5,
        "sac_payoffs": 4,
        "token_makers": 6,
        "token_payoffs": 4,
        "reanimate_targets": 6,
        "reanimate_effects": 4,
        "discard_outlets": 3,
        "cheap_spells": 15,
        "spell_payoffs": 6,
        "equipment_auras": 10,
        "voltron_protection": 4,
        # Covered by role targets
        "ramp_density": 0,
        "draw_engines": 0,
    }


class EngineConfig(BaseModel):
    """
    Versioned bundle of every constant the deck engine uses.

    Passed explicitly through the build pipeline so tuning can be
    regression-tested with the evaluation harness.
    """

    model_config = ConfigDict(frozen=True)

    version: str = "1.0"

    deck_size: int = 99
    max_lands: int = 40

    # Baseline profile targets before any overrides
    target_ramp: int = 12
    target_draw: int = 11
    target_removal: int = 10
    target_interaction: int = 6
    target_sweeper: int = 4
    target_finisher: int = 4
    target_theme_synergy: int = 25
    min_interaction_total: int = 10
    target_lands_min: int = 34
    target_lands_max: int = 38
    max_avg_cmc_ceiling: float = 3.5
    max_avg_cmc_slack: float = 0.8

    curve_target_cmc: dict[str, float] = Field(
        default_factory=lambda: {"low": 2.2, "mid": 2.8, "high": 3.4, "bimodal": 2.9}
    )

    archetype_overrides: dict[str, TargetOverrides] = Field(
        default_factory=_archetype_overrides
    )
    power_overrides: dict[str, TargetOverrides] = Field(default_factory=_power_overrides)
    type_caps: dict[str, TypeCaps] = Field(default_factory=_type_caps)
    package_minimums: dict[str, int] = Field(default_factory=_package_minimums)

    deck_score_weights: DeckScoreWeights = Field(default_factory=DeckScoreWeights)
    upgrade_weights: UpgradeWeights = Field(default_factory=UpgradeWeights)
    archetype_bonuses: ArchetypeBonuses = Field(default_factory=ArchetypeBonuses)

    # Local search bounds
    improve_cycles: int = 5
    swap_slots: int = 12
    swap_pool: int = 25

    # Fast-tempo plans drop nonland cards above this mana value
    high_cmc_ceiling: int = 7

    def caps_for(self, archetype: str) -> TypeCaps:
        """Type caps for an archetype, falling back to balanced."""
        return self.type_caps.get(archetype, self.type_caps["balanced"])


DEFAULT_ENGINE_CONFIG = EngineConfig()
