"""
Kernel facade

Owns the function registry, the completion services and the prompt
renderer, creates execution contexts and drives pipelines and plans.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from .errors import ErrorCode, NotFoundError, ServiceNotFoundError
from .functions.base import KernelFunction
from .functions.prompt import PromptFunction
from .functions.prompt_config import CompletionRequestSettings, PromptTemplateConfig
from .functions.registry import FunctionRegistry
from .functions.validation import GLOBAL_FUNCTIONS_PLUGIN, validate_plugin_name
from .interfaces import PromptTemplateRenderer, TextCompletion
from .orchestration import (
    CancellationToken,
    ExecutionContext,
    FunctionResult,
    KernelResult,
    VariableStore,
    raise_if_cancelled,
)
from .planning.plan import Plan
from .services.foundation.settings import AppSettings, get_settings
from .templates import BasicPromptTemplateRenderer

logger = logging.getLogger(__name__)

PROMPT_FILE = "skprompt.txt"
CONFIG_FILE = "config.json"

ServiceFactory = Callable[[], TextCompletion]
Variables = Union[VariableStore, Mapping[str, str]]


class Kernel:
    """Entry point tying functions, services and plans together"""

    def __init__(
        self,
        functions: Optional[FunctionRegistry] = None,
        template_renderer: Optional[PromptTemplateRenderer] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self._functions = functions if functions is not None else FunctionRegistry()
        self.template_renderer = template_renderer or BasicPromptTemplateRenderer()
        self.settings = settings or get_settings()
        self._services: Dict[str, ServiceFactory] = {}
        self._default_service_id: Optional[str] = None

    @property
    def functions(self) -> FunctionRegistry:
        return self._functions

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_function(self, function: KernelFunction) -> KernelFunction:
        function.set_default_function_collection(self._functions)
        return self._functions.register(function)

    def add_text_completion_service(
        self,
        service_id: str,
        service: Union[TextCompletion, ServiceFactory],
        set_as_default: bool = False,
    ) -> "Kernel":
        """Register a completion backend; the first one becomes the default."""
        if isinstance(service, TextCompletion):
            self._services[service_id] = lambda: service
        else:
            self._services[service_id] = service
        if set_as_default or self._default_service_id is None:
            self._default_service_id = service_id
        logger.info("Registered text completion service %s", service_id)
        return self

    def get_service(self, service_id: Optional[str] = None) -> TextCompletion:
        target = service_id or self._default_service_id
        factory = self._services.get(target) if target is not None else None
        if factory is None:
            raise ServiceNotFoundError(target)
        return factory()

    def func(self, plugin_name: str, function_name: str) -> KernelFunction:
        return self._functions.get_function(plugin_name, function_name)

    # ------------------------------------------------------------------
    # Prompt functions
    # ------------------------------------------------------------------

    def create_semantic_function(
        self,
        prompt_template: str,
        function_name: Optional[str] = None,
        plugin_name: Optional[str] = None,
        description: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        stop_sequences: Optional[List[str]] = None,
        config: Optional[PromptTemplateConfig] = None,
        service_id: Optional[str] = None,
    ) -> PromptFunction:
        """Build a prompt function, bind it to this kernel's services and register it."""
        if config is None:
            completion = CompletionRequestSettings(
                temperature=self.settings.default_temperature,
                max_tokens=self.settings.default_max_tokens,
            )
            if max_tokens is not None:
                completion.max_tokens = max_tokens
            if temperature is not None:
                completion.temperature = temperature
            if top_p is not None:
                completion.top_p = top_p
            if stop_sequences:
                completion.stop_sequences = list(stop_sequences)
            config = PromptTemplateConfig(description=description or "", completion=completion)
        elif description is not None:
            config = config.model_copy(update={"description": description})

        function = PromptFunction(
            prompt_template,
            config=config,
            name=function_name,
            plugin_name=plugin_name or GLOBAL_FUNCTIONS_PLUGIN,
            renderer=self.template_renderer,
        )

        target = service_id or config.completion.service_id
        if target is None and config.default_services:
            target = config.default_services[0]
        function.set_ai_service(lambda: self.get_service(target))

        self.register_function(function)
        return function

    def import_semantic_functions_from_directory(
        self, parent_directory: Union[str, Path], *plugin_directory_names: str
    ) -> Dict[str, PromptFunction]:
        """Load ``<parent>/<plugin>/<function>/skprompt.txt`` (+ optional config.json)."""
        imported: Dict[str, PromptFunction] = {}
        parent = Path(parent_directory)

        for plugin_name in plugin_directory_names:
            validate_plugin_name(plugin_name)
            plugin_dir = parent / plugin_name
            if not plugin_dir.is_dir():
                raise NotFoundError(
                    f"Plugin directory not found: {plugin_dir}",
                    error_code=ErrorCode.PLUGIN_NOT_FOUND,
                    context={"plugin_name": plugin_name, "path": str(plugin_dir)},
                )

            for function_dir in sorted(p for p in plugin_dir.iterdir() if p.is_dir()):
                prompt_path = function_dir / PROMPT_FILE
                if not prompt_path.is_file():
                    continue

                config_path = function_dir / CONFIG_FILE
                config = (
                    PromptTemplateConfig.from_json(config_path.read_text(encoding="utf-8"))
                    if config_path.is_file()
                    else None
                )

                logger.debug("Loading prompt function %s.%s from %s", plugin_name, function_dir.name, function_dir)
                function = self.create_semantic_function(
                    prompt_path.read_text(encoding="utf-8"),
                    function_name=function_dir.name,
                    plugin_name=plugin_name,
                    config=config,
                )
                imported[function.name] = function

        return imported

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def create_new_context(
        self,
        variables: Optional[Variables] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> ExecutionContext:
        if isinstance(variables, VariableStore):
            store = variables.clone()
        else:
            store = VariableStore(variables=variables)
        return ExecutionContext(
            variables=store,
            functions=self._functions,
            kernel=self,
            cancellation_token=cancellation_token,
        )

    async def run_async(
        self,
        *pipeline: KernelFunction,
        variables: Optional[Variables] = None,
        input: Optional[str] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> KernelResult:
        """Run functions in order, each seeing the context the previous one returned.

        A failing function is logged and its error re-raised unchanged.
        """
        context = self.create_new_context(variables, cancellation_token)
        if input is not None:
            context.variables.update_input(input)

        function_results: List[FunctionResult] = []
        for index, function in enumerate(pipeline):
            raise_if_cancelled(cancellation_token)
            try:
                result = await function.invoke(context, cancellation_token=cancellation_token)
            except Exception as exc:
                logger.error(
                    "Function %s.%s failed at pipeline step %d: %s",
                    function.plugin_name,
                    function.name,
                    index,
                    exc,
                )
                raise
            function_results.append(result)
            context = result.context

        value = function_results[-1].get_value() if function_results else context.result
        return KernelResult(value=value, function_results=function_results)

    async def step_async(
        self,
        plan: Plan,
        variables: Optional[Variables] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Plan:
        """Advance ``plan`` by one step."""
        context = self.create_new_context(variables, cancellation_token)
        return await plan.invoke_next_step(context, cancellation_token)


__all__ = ["Kernel"]
