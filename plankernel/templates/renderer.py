"""Minimal prompt template renderer: ``{{$name}}`` variable blocks only."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Optional

from ..interfaces import PromptTemplateRenderer
from ..orchestration import raise_if_cancelled

if TYPE_CHECKING:  # pragma: no cover
    from ..orchestration import CancellationToken, ExecutionContext

_VARIABLE_BLOCK = re.compile(r"\{\{\s*\$(\w+)\s*\}\}")


def extract_variable_names(template: str) -> List[str]:
    """Distinct variable names referenced by ``template``, in order of appearance."""
    names: List[str] = []
    seen = set()
    for match in _VARIABLE_BLOCK.finditer(template or ""):
        name = match.group(1)
        key = name.casefold()
        if key not in seen:
            seen.add(key)
            names.append(name)
    return names


class BasicPromptTemplateRenderer(PromptTemplateRenderer):
    """Substitutes variable blocks; unknown variables render as ``""``."""

    async def render(
        self,
        template: str,
        context: "ExecutionContext",
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> str:
        raise_if_cancelled(cancellation_token)
        variables = context.variables

        def _replace(match: "re.Match[str]") -> str:
            return variables.get(match.group(1)) or ""

        return _VARIABLE_BLOCK.sub(_replace, template or "")


__all__ = ["BasicPromptTemplateRenderer", "extract_variable_names"]
