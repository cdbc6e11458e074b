"""Abstract interfaces for the backends the kernel consumes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..orchestration import CancellationToken, ExecutionContext


class TextResult(ABC):
    """One completion returned by a :class:`TextCompletion` backend."""

    @abstractmethod
    async def get_completion(
        self, cancellation_token: Optional["CancellationToken"] = None
    ) -> str:  # pragma: no cover - interface only
        """Return the completion text."""
        raise NotImplementedError

    @property
    def model_result(self) -> Any:
        """Raw provider payload for diagnostics, if any."""
        return None


class TextCompletion(ABC):
    """Completion backend capability."""

    @abstractmethod
    async def get_completions(
        self,
        text: str,
        request_settings: Any,
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> List[TextResult]:  # pragma: no cover - interface only
        """Return completions for the rendered prompt."""
        raise NotImplementedError


class PromptTemplateRenderer(ABC):
    """Turns a template string into a prompt using context variables."""

    @abstractmethod
    async def render(
        self,
        template: str,
        context: "ExecutionContext",
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> str:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = ["PromptTemplateRenderer", "TextCompletion", "TextResult"]
