"""
Commander plan cache collaborator.

The engine only needs get/set keyed by a stable commander id. A missing
entry means "not cached". The async database-backed store lives in
`commanderforge.db.operations`; the API bridges it through
InMemoryPlanCache around each build.
"""

from typing import Protocol

from commanderforge.models.plan import CommanderPlan


class PlanCache(Protocol):
    """Key-value store for computed commander plans."""

    def get(self, commander_id: str) -> CommanderPlan | None: ...

    def set(self, commander_id: str, plan: CommanderPlan) -> None: ...


class InMemoryPlanCache:
    """Dictionary-backed PlanCache."""

    def __init__(self, initial: dict[str, CommanderPlan] | None = None) -> None:
        self._plans: dict[str, CommanderPlan] = dict(initial or {})
        self.writes: list[str] = []

    def get(self, commander_id: str) -> CommanderPlan | None:
        return self._plans.get(commander_id)

    def set(self, commander_id: str, plan: CommanderPlan) -> None:
        self._plans[commander_id] = plan
        self.writes.append(commander_id)

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, commander_id: object) -> bool:
        return commander_id in self._plans
