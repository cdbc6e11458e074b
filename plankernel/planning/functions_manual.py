"""Plain-text manual of available functions, used to prompt a planner."""

from __future__ import annotations

from typing import List, Optional

from ..config import PlanningSettings, get_planning_settings
from ..functions.models import FunctionView
from ..functions.registry import FunctionRegistry


def get_available_functions(
    registry: FunctionRegistry, config: Optional[PlanningSettings] = None
) -> List[FunctionView]:
    """Function views not excluded by ``config``, ordered by plugin then name."""
    cfg = config or get_planning_settings()
    excluded_plugins = {name.casefold() for name in cfg.excluded_plugins}
    excluded_functions = {name.casefold() for name in cfg.excluded_functions}

    views = [
        view
        for view in registry.get_function_views()
        if view.plugin_name.casefold() not in excluded_plugins
        and view.name.casefold() not in excluded_functions
    ]
    views.sort(key=lambda view: (view.plugin_name.casefold(), view.name.casefold()))

    if cfg.max_relevant_functions is not None:
        views = views[: cfg.max_relevant_functions]
    return views


def to_manual_string(view: FunctionView) -> str:
    lines = [f"{view.qualified_name}:", f"  description: {view.description}"]
    if view.parameters:
        lines.append("  inputs:")
        for parameter in view.parameters:
            entry = f"    - {parameter.name}: {parameter.description or ''}".rstrip()
            if parameter.default_value:
                entry += f" (default value: {parameter.default_value})"
            lines.append(entry)
    return "\n".join(lines)


def get_functions_manual(
    registry: FunctionRegistry, config: Optional[PlanningSettings] = None
) -> str:
    return "\n\n".join(to_manual_string(view) for view in get_available_functions(registry, config))


__all__ = ["get_available_functions", "get_functions_manual", "to_manual_string"]
