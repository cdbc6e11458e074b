from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class PlanningSettings:
    """Global defaults for plan parsing and the functions manual."""

    allow_missing_functions: bool = False
    excluded_plugins: FrozenSet[str] = field(default_factory=frozenset)
    excluded_functions: FrozenSet[str] = field(default_factory=frozenset)
    max_relevant_functions: Optional[int] = None


@lru_cache(maxsize=1)
def get_planning_settings() -> PlanningSettings:
    """Return cached planning settings derived from environment variables."""

    defaults = PlanningSettings()

    def _env_bool(name: str, default: bool) -> bool:
        raw = os.getenv(name)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _env_set(name: str) -> FrozenSet[str]:
        raw = os.getenv(name)
        if not raw:
            return frozenset()
        return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())

    max_functions_raw = os.getenv("PLAN_MAX_RELEVANT_FUNCTIONS")
    max_functions = None
    if max_functions_raw is not None:
        try:
            parsed = int(max_functions_raw)
            if parsed > 0:
                max_functions = parsed
        except ValueError:
            max_functions = None

    return PlanningSettings(
        allow_missing_functions=_env_bool(
            "PLAN_ALLOW_MISSING_FUNCTIONS", defaults.allow_missing_functions
        ),
        excluded_plugins=_env_set("PLAN_EXCLUDED_PLUGINS"),
        excluded_functions=_env_set("PLAN_EXCLUDED_FUNCTIONS"),
        max_relevant_functions=max_functions,
    )


__all__ = ["PlanningSettings", "get_planning_settings"]
