"""
Candidate filtering before deck assembly.

Reduces an owned collection to the cards a commander may legally play and
the plan can use.
"""

from commanderforge.filtering.candidate_shortlist import (
    ShortlistMetrics,
    build_shortlist,
    collect_candidates,
    is_plan_relevant,
    shortlist_for_build,
    trim_high_cmc_for_tempo,
)
from commanderforge.filtering.legality import (
    COMMANDER_BANLIST,
    is_banlisted,
    is_commander_legal,
    within_color_identity,
)

__all__ = [
    "COMMANDER_BANLIST",
    "ShortlistMetrics",
    "build_shortlist",
    "collect_candidates",
    "is_banlisted",
    "is_commander_legal",
    "is_plan_relevant",
    "shortlist_for_build",
    "trim_high_cmc_for_tempo",
    "within_color_identity",
]
