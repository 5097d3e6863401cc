from commanderforge.analysis.evaluation import (
    REFERENCE_COMMANDERS,
    DeckMetrics,
    HarnessResult,
    compute_deck_metrics,
    run_harness,
)

__all__ = [
    "REFERENCE_COMMANDERS",
    "DeckMetrics",
    "HarnessResult",
    "compute_deck_metrics",
    "run_harness",
]
