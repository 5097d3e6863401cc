from commanderforge.db.database import get_session, init_db
from commanderforge.db.operations import (
    delete_stale_plans,
    get_cached_plan,
    get_commander_profile,
    plan_from_model,
    set_cached_plan,
)

__all__ = [
    "delete_stale_plans",
    "get_cached_plan",
    "get_commander_profile",
    "get_session",
    "init_db",
    "plan_from_model",
    "set_cached_plan",
]
