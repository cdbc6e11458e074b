from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Callable, List, Optional, Union

from ..errors import (
    AIServiceError,
    BaseError,
    invalid_response_error,
    render_error,
    service_not_configured_error,
)
from ..interfaces import PromptTemplateRenderer, TextCompletion
from ..orchestration import ExecutionContext, FunctionResult, raise_if_cancelled
from ..templates import BasicPromptTemplateRenderer, extract_variable_names
from .models import FunctionView, ParameterView
from .prompt_config import CompletionRequestSettings, PromptTemplateConfig
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

ServiceFactory = Callable[[], TextCompletion]


class PromptFunction:
    """Renders a template and asks a completion backend for the answer.

    Only the first completion is used; extra completions returned by the
    backend are ignored.
    """

    def __init__(
        self,
        template: str,
        config: Optional[PromptTemplateConfig] = None,
        name: Optional[str] = None,
        plugin_name: str = GLOBAL_FUNCTIONS_PLUGIN,
        renderer: Optional[PromptTemplateRenderer] = None,
        service: Optional[Union[TextCompletion, ServiceFactory]] = None,
    ) -> None:
        self.template = template
        self.config = config or PromptTemplateConfig()
        self.name = name or _random_function_name()
        self.plugin_name = plugin_name
        self.description = self.config.description
        self._renderer = renderer or BasicPromptTemplateRenderer()
        self._request_settings = self.config.completion
        self._service_factory: Optional[ServiceFactory] = None
        self._functions: Optional["FunctionRegistry"] = None

        validate_function_name(self.name)
        validate_plugin_name(self.plugin_name)
        self.parameters = self._discover_parameters()
        validate_parameters(self.name, self.parameters)

        if service is not None:
            self.set_ai_service(service)

    def _discover_parameters(self) -> List[ParameterView]:
        """Declared inputs first, then variables referenced by the template."""
        parameters = self.config.to_parameter_views()
        declared = {parameter.name.casefold() for parameter in parameters}
        for variable in extract_variable_names(self.template):
            if variable.casefold() not in declared:
                declared.add(variable.casefold())
                parameters.append(ParameterView(name=variable, description="", default_value=""))
        return parameters

    @property
    def is_semantic(self) -> bool:
        return True

    @property
    def request_settings(self) -> CompletionRequestSettings:
        return self._request_settings

    def describe(self) -> FunctionView:
        return FunctionView(
            name=self.name,
            plugin_name=self.plugin_name,
            description=self.description,
            parameters=list(self.parameters),
            is_semantic=True,
            is_asynchronous=True,
        )

    async def invoke(
        self,
        context: ExecutionContext,
        request_settings: Optional[CompletionRequestSettings] = None,
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> FunctionResult:
        token = cancellation_token or context.cancellation_token
        self._add_default_values(context)
        raise_if_cancelled(token)

        if self._service_factory is None:
            raise service_not_configured_error(self.name, self.plugin_name)

        settings = request_settings or self._request_settings

        try:
            rendered = await self._renderer.render(self.template, context, token)
        except BaseError:
            raise
        except Exception as exc:
            logger.error("Prompt rendering failed for %s.%s: %s", self.plugin_name, self.name, exc)
            raise render_error(self.name, self.plugin_name, exc) from exc

        raise_if_cancelled(token)
        try:
            service = self._service_factory()
            results = await service.get_completions(rendered, settings, token)
            if not results:
                raise invalid_response_error(service_name=type(service).__name__)
            completion = await results[0].get_completion(token)
        except BaseError as exc:
            logger.error(
                "Prompt function %s.%s failed: %s", self.plugin_name, self.name, exc
            )
            raise
        except Exception as exc:
            logger.error(
                "Completion backend failed for %s.%s: %s", self.plugin_name, self.name, exc
            )
            raise AIServiceError(
                message=f"Something went wrong while rendering the completion for {self.plugin_name}.{self.name}",
                detail=str(exc),
                cause=exc,
                context={"function_name": self.name, "plugin_name": self.plugin_name},
            ) from exc

        context.variables.update_input(completion)
        return FunctionResult(
            function_name=self.name,
            plugin_name=self.plugin_name,
            context=context,
            value=completion,
            metadata={
                "model_results": [result.model_result for result in results],
                "rendered_prompt": rendered,
            },
        )

    def _add_default_values(self, context: ExecutionContext) -> None:
        for parameter in self.parameters:
            if parameter.default_value is not None and parameter.name not in context.variables:
                context.variables.set(parameter.name, parameter.default_value)

    def set_default_function_collection(self, functions: "FunctionRegistry") -> "PromptFunction":
        self._functions = functions
        return self

    def set_ai_service(self, service: Union[TextCompletion, ServiceFactory]) -> "PromptFunction":
        if isinstance(service, TextCompletion):
            self._service_factory = lambda: service
        else:
            self._service_factory = service
        return self

    def set_ai_configuration(self, settings: CompletionRequestSettings) -> "PromptFunction":
        self._request_settings = settings
        return self

    def __repr__(self) -> str:
        return f"PromptFunction({self.plugin_name}.{self.name})"


def _random_function_name() -> str:
    return "func" + uuid.uuid4().hex


__all__ = ["PromptFunction"]
