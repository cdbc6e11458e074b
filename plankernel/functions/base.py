"""Invocation contract shared by native functions, prompt functions and plans."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

from .models import FunctionView
from .prompt_config import CompletionRequestSettings

if TYPE_CHECKING:  # pragma: no cover
    from ..interfaces import TextCompletion
    from ..orchestration import CancellationToken, ExecutionContext, FunctionResult
    from .registry import FunctionRegistry


@runtime_checkable
class KernelFunction(Protocol):
    """Anything the registry can hold and a plan can run."""

    name: str
    plugin_name: str
    description: str

    @property
    def is_semantic(self) -> bool: ...

    @property
    def request_settings(self) -> Optional[CompletionRequestSettings]: ...

    def describe(self) -> FunctionView: ...

    async def invoke(
        self,
        context: "ExecutionContext",
        request_settings: Optional[CompletionRequestSettings] = None,
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> "FunctionResult": ...

    def set_default_function_collection(self, functions: "FunctionRegistry") -> Any: ...

    def set_ai_service(self, service_factory: Callable[[], "TextCompletion"]) -> Any: ...

    def set_ai_configuration(self, settings: CompletionRequestSettings) -> Any: ...


__all__ = ["KernelFunction"]
