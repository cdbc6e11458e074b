"""
Plan: a tree of functions that is itself a function.

A plan is either a leaf bound to one concrete function or a composite
holding an ordered list of child plans. Composites advance one step at a
time through ``invoke_next_step``; the cursor and the plan ``state`` survive
between calls so a run can be resumed, inspected or serialized.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import FunctionNotFoundError, InvalidConfigurationError, PlanSerializationError
from ..functions.base import KernelFunction
from ..functions.models import FunctionView, ParameterView
from ..functions.prompt_config import CompletionRequestSettings
from ..orchestration import (
    MAIN_KEY,
    CancellationToken,
    ExecutionContext,
    FunctionResult,
    VariableStore,
    raise_if_cancelled,
)
from .plan_models import PlanModel

if TYPE_CHECKING:  # pragma: no cover
    from ..functions.registry import FunctionRegistry

logger = logging.getLogger(__name__)

PLAN_PLUGIN_NAME = "Plan"
PLAN_RESULT_KEY = "PLAN.RESULT"

_VARIABLE_REFERENCE = re.compile(r"\$(\w+)")


class PlanKind(str, Enum):
    LEAF = "leaf"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class FunctionBody:
    """Leaf body: exactly one bound function, never any steps."""

    function: KernelFunction


@dataclass
class StepsBody:
    """Composite body: ordered child plans (possibly none yet)."""

    steps: List["Plan"] = field(default_factory=list)


PlanBody = Union[FunctionBody, StepsBody]
PlanStep = Union["Plan", KernelFunction]


class Plan:
    """Executable plan tree node.

    ``Plan(goal, *steps)`` builds a composite with a random name;
    :meth:`from_function` builds a leaf that mirrors the function's identity.
    """

    def __init__(
        self,
        goal: str = "",
        *steps: PlanStep,
        name: Optional[str] = None,
        plugin_name: str = PLAN_PLUGIN_NAME,
    ) -> None:
        self.name = name if name is not None else _random_plan_name()
        self.plugin_name = plugin_name
        self.description = goal or ""
        self.state = VariableStore()
        self.parameters = VariableStore()
        self.outputs: List[str] = []
        self._next_step_index = 0
        self._body: PlanBody = StepsBody()
        self._request_settings: Optional[CompletionRequestSettings] = None
        if steps:
            self.add_steps(*steps)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_function(cls, function: KernelFunction) -> "Plan":
        """Leaf plan around ``function``."""
        plan = cls(name=function.name, plugin_name=function.plugin_name)
        plan._set_function(function)
        return plan

    def add_steps(self, *steps: PlanStep) -> "Plan":
        """Append steps; functions are wrapped as leaf plans."""
        if isinstance(self._body, FunctionBody):
            raise InvalidConfigurationError(
                f"Cannot add steps to {self.plugin_name}.{self.name}: it is bound to a function",
                context={"plan_name": self.name, "plugin_name": self.plugin_name},
            )
        for step in steps:
            self._body.steps.append(step if isinstance(step, Plan) else Plan.from_function(step))
        return self

    def _set_function(self, function: KernelFunction) -> None:
        if isinstance(self._body, StepsBody) and self._body.steps:
            raise InvalidConfigurationError(
                f"Cannot bind a function to {self.plugin_name}.{self.name}: it already has steps",
                context={"plan_name": self.name, "function_name": function.name},
            )
        self._body = FunctionBody(function)
        self.name = function.name
        self.plugin_name = function.plugin_name
        self.description = function.description
        self._request_settings = function.request_settings

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def kind(self) -> PlanKind:
        return PlanKind.LEAF if isinstance(self._body, FunctionBody) else PlanKind.COMPOSITE

    @property
    def function(self) -> Optional[KernelFunction]:
        return self._body.function if isinstance(self._body, FunctionBody) else None

    @property
    def steps(self) -> List["Plan"]:
        """Read-only view of the child plans."""
        if isinstance(self._body, StepsBody):
            return list(self._body.steps)
        return []

    @property
    def next_step_index(self) -> int:
        return self._next_step_index

    @property
    def has_next_step(self) -> bool:
        return self._next_step_index < len(self.steps)

    @property
    def is_semantic(self) -> bool:
        function = self.function
        return function.is_semantic if function is not None else False

    @property
    def request_settings(self) -> Optional[CompletionRequestSettings]:
        return self._request_settings

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_next_step(
        self,
        kernel: Any,
        variables: Optional[Union[VariableStore, Mapping[str, str]]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> "Plan":
        """Advance one step using a context created from ``kernel``."""
        context = kernel.create_new_context(variables, cancellation_token=cancellation_token)
        return await self.invoke_next_step(context, cancellation_token)

    async def invoke_next_step(
        self,
        context: ExecutionContext,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> "Plan":
        """Run the step at the cursor and fold its result into ``state``.

        A failing step propagates its error unchanged and leaves the cursor
        where it was.
        """
        if not self.has_next_step:
            return self

        token = cancellation_token or context.cancellation_token
        raise_if_cancelled(token)

        step = self.steps[self._next_step_index]
        step_variables = self._get_next_step_variables(context.variables, step)
        step_context = ExecutionContext(
            variables=step_variables,
            functions=context.functions,
            kernel=context.kernel,
            cancellation_token=token,
        )

        logger.debug(
            "Invoking step %d of plan %s: %s.%s",
            self._next_step_index,
            self.name,
            step.plugin_name,
            step.name,
        )
        result = await step.invoke(step_context, cancellation_token=token)

        value = result.get_value()
        result_value = (str(value) if value is not None else result.context.result).strip()

        self.state.update_input(result_value)

        if set(self.outputs) & set(step.outputs):
            current = self.state.get(PLAN_RESULT_KEY)
            self.state.set(
                PLAN_RESULT_KEY,
                f"{current}\n{result_value}" if current is not None else result_value,
            )

        for output in step.outputs:
            captured = result.context.variables.get(output)
            self.state.set(output, captured if captured is not None else result_value)

        self._next_step_index += 1
        return self

    async def invoke(
        self,
        context: ExecutionContext,
        request_settings: Optional[CompletionRequestSettings] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> FunctionResult:
        token = cancellation_token or context.cancellation_token
        function = self.function

        if function is not None:
            _add_variables_to_context(self.state, context)
            function_variables = self._get_next_step_variables(context.variables, self)
            function_context = ExecutionContext(
                variables=function_variables,
                functions=context.functions,
                kernel=context.kernel,
                cancellation_token=token,
            )

            raise_if_cancelled(token)
            started = time.perf_counter()
            result = await function.invoke(function_context, request_settings, token)
            logger.info(
                "Plan function %s.%s finished in %.3fs",
                self.plugin_name,
                self.name,
                time.perf_counter() - started,
                extra={"plan_name": self.name, "plugin_name": self.plugin_name},
            )
            return self._update_result_with_outputs(result)

        result = FunctionResult(
            function_name=self.name,
            plugin_name=self.plugin_name,
            context=context,
            value=context.result,
        )
        while self.has_next_step:
            _add_variables_to_context(self.state, context)
            await self.invoke_next_step(context, token)
            self._update_context_with_outputs(context)

            result = FunctionResult(
                function_name=self.name,
                plugin_name=self.plugin_name,
                context=context,
                value=context.result,
            )
            self._update_result_with_outputs(result)

        return result

    def _update_context_with_outputs(self, context: ExecutionContext) -> None:
        result_value = self.state.get(PLAN_RESULT_KEY)
        if result_value is None:
            result_value = str(self.state)
        context.variables.update_input(result_value)

        # copy the finished step's outputs so the next step can see them
        for output in self.steps[self._next_step_index - 1].outputs:
            value = self.state.get(output)
            context.variables.set(output, value if value is not None else result_value)

    def _update_result_with_outputs(self, result: FunctionResult) -> FunctionResult:
        for output in self.outputs:
            value = self.state.get(output)
            if value is None:
                value = result.context.variables.get(output)
            if value is not None:
                result.metadata[output] = value
        return result

    # ------------------------------------------------------------------
    # Variable resolution
    # ------------------------------------------------------------------

    def _get_next_step_variables(self, current_args: VariableStore, step: "Plan") -> VariableStore:
        # Main input, highest priority first:
        #   own parameters (expanded), caller args, state,
        #   empty for a composite step, plan description
        parameter_input = self.parameters.get(MAIN_KEY)
        caller_input = current_args.get(MAIN_KEY)
        state_input = self.state.get(MAIN_KEY)
        if parameter_input:
            main_input = self.expand_from_variables(current_args, parameter_input)
        elif caller_input:
            main_input = caller_input
        elif state_input:
            main_input = state_input
        elif step.steps:
            main_input = ""
        else:
            main_input = self.description or ""

        step_variables = VariableStore(main_input)

        # declared parameters of the step's function
        for parameter in step.describe().parameters:
            if parameter.name.casefold() == MAIN_KEY:
                continue
            value = current_args.get(parameter.name)
            if value is None:
                value = self.state.get(parameter.name) or None
            if value is not None:
                step_variables.set(parameter.name, value)

        # explicit bindings on the step
        for key, literal in step.parameters.items():
            if key in step_variables:
                continue
            expanded = self.expand_from_variables(current_args, literal)
            if expanded.casefold() != literal.casefold():
                step_variables.set(key, expanded)
            elif key in current_args:
                step_variables.set(key, current_args[key])
            elif key in self.state:
                step_variables.set(key, self.state[key])
            else:
                step_variables.set(key, expanded)

        # everything else stays visible to the step
        for key, value in current_args.items():
            if key not in step_variables:
                step_variables.set(key, value)

        return step_variables

    def expand_from_variables(self, variables: Mapping[str, str], text: str) -> str:
        """Replace ``$name`` references from ``variables`` then ``state``.

        Longer names are replaced first so ``$foobar`` is never clobbered by
        ``$foo``. Unbound references are left as they are.
        """
        result = text
        names = list(dict.fromkeys(_VARIABLE_REFERENCE.findall(text)))
        names.sort(key=len, reverse=True)
        for name in names:
            value = variables.get(name)
            if value is None:
                value = self.state.get(name)
            if value is not None:
                result = result.replace(f"${name}", value)
        return result

    # ------------------------------------------------------------------
    # Function protocol
    # ------------------------------------------------------------------

    def describe(self) -> FunctionView:
        function = self.function
        if function is not None:
            return function.describe()

        steps = self.steps
        step_parameters = [(key, value) for step in steps for key, value in step.parameters.items()]
        step_descriptions = [parameter for step in steps for parameter in step.describe().parameters]

        parameters: List[ParameterView] = []
        for key, value in self.parameters.items():
            if key.casefold() == MAIN_KEY and not value:
                continue
            reference = f"${key}".casefold()
            matching_key = next(
                (name for name, bound in step_parameters if bound.casefold() == reference),
                None,
            )
            description = None
            if matching_key is not None:
                description = next(
                    (d for d in step_descriptions if d.name.casefold() == matching_key.casefold()),
                    None,
                )
            parameters.append(
                ParameterView(
                    name=key,
                    description=description.description if description else None,
                    default_value=description.default_value if description else None,
                    type=description.type if description else None,
                    is_required=description.is_required if description else None,
                )
            )

        return FunctionView(
            name=self.name,
            plugin_name=self.plugin_name,
            description=self.description,
            parameters=parameters,
            is_semantic=False,
            is_asynchronous=True,
        )

    def set_default_function_collection(self, functions: "FunctionRegistry") -> Any:
        function = self.function
        return function.set_default_function_collection(functions) if function is not None else self

    def set_ai_service(self, service_factory: Callable[[], Any]) -> Any:
        function = self.function
        return function.set_ai_service(service_factory) if function is not None else self

    def set_ai_configuration(self, settings: CompletionRequestSettings) -> Any:
        function = self.function
        return function.set_ai_configuration(settings) if function is not None else self

    # ------------------------------------------------------------------
    # Binding and serialization
    # ------------------------------------------------------------------

    def set_available_functions(
        self, functions: "FunctionRegistry", require_functions: bool = True
    ) -> "Plan":
        """Bind every step-less node to the registered function of the same name."""
        steps = self.steps
        if not steps:
            function = functions.try_get_function(self.plugin_name, self.name)
            if function is not None:
                self._body = StepsBody()
                self._set_function(function)
            elif require_functions:
                raise FunctionNotFoundError(self.plugin_name, self.name)
        else:
            for step in steps:
                step.set_available_functions(functions, require_functions)
        return self

    def to_model(self) -> PlanModel:
        return PlanModel(
            name=self.name,
            plugin_name=self.plugin_name,
            description=self.description,
            next_step_index=self._next_step_index,
            state=self.state.to_dict(),
            parameters=self.parameters.to_dict(),
            outputs=list(self.outputs),
            steps=[step.to_model() for step in self.steps],
        )

    def to_json(self, indented: bool = False) -> str:
        return self.to_model().model_dump_json(indent=2 if indented else None)

    @classmethod
    def from_model(cls, model: PlanModel) -> "Plan":
        plan = cls(
            model.description,
            *[cls.from_model(step) for step in model.steps],
            name=model.name,
            plugin_name=model.plugin_name,
        )
        plan.state = VariableStore(variables=model.state)
        plan.parameters = VariableStore(variables=model.parameters)
        plan.outputs = list(model.outputs)
        plan._next_step_index = model.next_step_index
        return plan

    @classmethod
    def from_json(
        cls,
        text: str,
        functions: Optional["FunctionRegistry"] = None,
        require_functions: bool = True,
    ) -> "Plan":
        """Rebuild a plan from :meth:`to_json` output, optionally re-binding leaves."""
        try:
            model = PlanModel.model_validate_json(text)
        except PydanticValidationError as exc:
            raise PlanSerializationError(f"Invalid plan document: {exc}", cause=exc) from exc

        plan = cls.from_model(model)
        if functions is not None:
            plan.set_available_functions(functions, require_functions)
        return plan

    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        display = f"{self.name} ({self.description})" if self.name.strip() else self.description
        steps = self.steps
        if steps:
            display += f", Steps = {len(steps)}, NextStep = {self._next_step_index}"
        return f"Plan({display})"


def _add_variables_to_context(variables: VariableStore, context: ExecutionContext) -> None:
    """Copy ``variables`` into the context where the context has no value."""
    for key, value in variables.items():
        if not context.variables.get(key):
            context.variables.set(key, value)


def _random_plan_name() -> str:
    return "plan" + uuid.uuid4().hex


__all__ = [
    "FunctionBody",
    "PLAN_PLUGIN_NAME",
    "PLAN_RESULT_KEY",
    "Plan",
    "PlanKind",
    "StepsBody",
]
