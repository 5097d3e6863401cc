from enum import Enum


class CardRole(str, Enum):
    """Fine-grained functional role of a card in a Commander deck."""

    LAND = "land"

    RAMP_LAND = "ramp_land"
    RAMP_PERMANENT = "ramp_permanent"
    RAMP_RITUAL = "ramp_ritual"
    RAMP_BURST = "ramp_burst"

    DRAW_ENGINE = "draw_engine"
    DRAW_BURST = "draw_burst"
    DRAW_CONDITIONAL = "draw_conditional"

    SWEEPER = "sweeper"
    REMOVAL_WIPE = "removal_wipe"
    REMOVAL_SINGLE = "removal_single"
    REMOVAL_FLEXIBLE = "removal_flexible"

    INTERACTION = "interaction"
    PROTECTION = "protection"

    TUTOR = "tutor"
    RECURSION = "recursion"

    ENABLER = "enabler"
    PAYOFF = "payoff"

    FINISHER = "finisher"
    WINCON = "wincon"

    FIXING = "fixing"

    SYNERGY = "synergy"
    UTILITY = "utility"
    OTHER = "other"


class RoleFamily(str, Enum):
    """Coarse role aggregate used for ratio targets."""

    RAMP = "ramp"
    DRAW = "draw"
    REMOVAL = "removal"
    SWEEPER = "sweeper"
    INTERACTION = "interaction"
    ENABLER = "enabler"
    PAYOFF = "payoff"
    FINISHER = "finisher"
    TUTOR = "tutor"
    RECURSION = "recursion"
    PROTECTION = "protection"
    FIXING = "fixing"
    UTILITY = "utility"
    SYNERGY = "synergy"
    LAND = "land"
    OTHER = "other"


# Families that count toward the interaction baseline
INTERACTION_FAMILIES = frozenset(
    {
        RoleFamily.REMOVAL,
        RoleFamily.SWEEPER,
        RoleFamily.INTERACTION,
        RoleFamily.PROTECTION,
    }
)
