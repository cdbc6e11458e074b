from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from ..errors import BaseError, execution_error, not_semantic_error
from ..orchestration import ExecutionContext, FunctionResult, raise_if_cancelled
from .models import FunctionView, ParameterView
from .prompt_config import CompletionRequestSettings
from .validation import (
    GLOBAL_FUNCTIONS_PLUGIN,
    validate_function_name,
    validate_parameters,
    validate_plugin_name,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..orchestration import CancellationToken
    from .registry import FunctionRegistry

logger = logging.getLogger(__name__)


class NativeFunction:
    """Wraps a plain or ``async`` Python callable taking an ExecutionContext.

    Return values: a ``str`` replaces the main value, ``None`` leaves the
    context untouched, anything else is stringified into the main value.
    """

    def __init__(
        self,
        fn: Callable[[ExecutionContext], Any],
        name: Optional[str] = None,
        plugin_name: str = GLOBAL_FUNCTIONS_PLUGIN,
        description: Optional[str] = None,
        parameters: Optional[Iterable[ParameterView]] = None,
    ) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "")
        self.plugin_name = plugin_name
        self.description = description if description is not None else inspect.getdoc(fn) or ""
        self.parameters = list(parameters or [])

        validate_function_name(self.name)
        validate_plugin_name(self.plugin_name)
        validate_parameters(self.name, self.parameters)

        self._functions: Optional["FunctionRegistry"] = None

    @property
    def is_semantic(self) -> bool:
        return False

    @property
    def request_settings(self) -> Optional[CompletionRequestSettings]:
        return None

    @property
    def is_asynchronous(self) -> bool:
        return inspect.iscoroutinefunction(self._fn)

    def describe(self) -> FunctionView:
        return FunctionView(
            name=self.name,
            plugin_name=self.plugin_name,
            description=self.description,
            parameters=list(self.parameters),
            is_semantic=False,
            is_asynchronous=self.is_asynchronous,
        )

    async def invoke(
        self,
        context: ExecutionContext,
        request_settings: Optional[CompletionRequestSettings] = None,
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> FunctionResult:
        raise_if_cancelled(cancellation_token or context.cancellation_token)
        self._add_default_values(context)

        logger.debug("Invoking native function %s.%s", self.plugin_name, self.name)
        try:
            outcome = self._fn(context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except BaseError:
            raise
        except Exception as exc:
            logger.error(
                "Native function %s.%s failed: %s", self.plugin_name, self.name, exc
            )
            raise execution_error(self.name, self.plugin_name, exc) from exc

        if outcome is None:
            value: Any = context.result
        elif isinstance(outcome, str):
            context.variables.update_input(outcome)
            value = outcome
        else:
            context.variables.update_input(str(outcome))
            value = outcome

        return FunctionResult(
            function_name=self.name,
            plugin_name=self.plugin_name,
            context=context,
            value=value,
        )

    def _add_default_values(self, context: ExecutionContext) -> None:
        for parameter in self.parameters:
            if parameter.default_value is not None and parameter.name not in context.variables:
                context.variables.set(parameter.name, parameter.default_value)

    def set_default_function_collection(self, functions: "FunctionRegistry") -> "NativeFunction":
        self._functions = functions
        return self

    def set_ai_service(self, service_factory: Callable[[], Any]) -> "NativeFunction":
        raise not_semantic_error(self.name, self.plugin_name)

    def set_ai_configuration(self, settings: CompletionRequestSettings) -> "NativeFunction":
        raise not_semantic_error(self.name, self.plugin_name)

    def __repr__(self) -> str:
        return f"NativeFunction({self.plugin_name}.{self.name})"


def native_function(
    name: Optional[str] = None,
    plugin_name: str = GLOBAL_FUNCTIONS_PLUGIN,
    description: Optional[str] = None,
    parameters: Optional[Iterable[ParameterView]] = None,
) -> Callable[[Callable[[ExecutionContext], Any]], NativeFunction]:
    """Decorator building a :class:`NativeFunction` from a callable."""

    def decorator(fn: Callable[[ExecutionContext], Any]) -> NativeFunction:
        return NativeFunction(
            fn,
            name=name,
            plugin_name=plugin_name,
            description=description,
            parameters=parameters,
        )

    return decorator


__all__ = ["NativeFunction", "native_function"]
