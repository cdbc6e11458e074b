from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .context import ExecutionContext


@dataclass
class FunctionResult:
    """Outcome of one function invocation."""

    function_name: str
    plugin_name: str
    context: ExecutionContext
    value: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_value(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return str(self.value) if self.value is not None else self.context.result


@dataclass
class KernelResult:
    """Outcome of a :meth:`Kernel.run_async` pipeline."""

    value: Any = None
    function_results: List[FunctionResult] = field(default_factory=list)

    def get_value(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return "" if self.value is None else str(self.value)


__all__ = ["FunctionResult", "KernelResult"]
