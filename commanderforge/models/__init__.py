from commanderforge.models.card import Card, CommanderChoice, OwnedCard, is_basic_land_name
from commanderforge.models.deck import CandidateEntry, DeckEntry, DeckList, DeckStats
from commanderforge.models.failure import (
    ApiResponse,
    CommanderNotFoundError,
    DeckBuildError,
    EmptyCollectionError,
    FailureDetail,
    FailureKind,
    KnownError,
    MissingCardDataError,
    NoCompatibleCandidatesError,
    OutcomeType,
    finalize_response,
)
from commanderforge.models.plan import (
    CommanderPlan,
    CurveShape,
    KeyResource,
    PackageId,
    PipIntensity,
    Tempo,
    ThemeId,
    WinCondition,
    WinConditionTargets,
)
from commanderforge.models.profile import (
    Archetype,
    BuilderOptions,
    MergeMode,
    MetaEnvironment,
    Playstyle,
    PowerLevel,
    ProfileTargets,
    TargetOverrides,
)
from commanderforge.models.roles import CardRole, RoleFamily

__all__ = [
    "ApiResponse",
    "Archetype",
    "BuilderOptions",
    "CandidateEntry",
    "Card",
    "CardRole",
    "CommanderChoice",
    "CommanderNotFoundError",
    "CommanderPlan",
    "CurveShape",
    "DeckBuildError",
    "DeckEntry",
    "DeckList",
    "DeckStats",
    "EmptyCollectionError",
    "FailureDetail",
    "FailureKind",
    "KeyResource",
    "KnownError",
    "MergeMode",
    "MetaEnvironment",
    "MissingCardDataError",
    "NoCompatibleCandidatesError",
    "OutcomeType",
    "OwnedCard",
    "PackageId",
    "PipIntensity",
    "Playstyle",
    "PowerLevel",
    "ProfileTargets",
    "RoleFamily",
    "TargetOverrides",
    "Tempo",
    "ThemeId",
    "WinCondition",
    "WinConditionTargets",
    "finalize_response",
    "is_basic_land_name",
]
