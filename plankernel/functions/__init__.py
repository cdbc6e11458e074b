"""Function abstraction: views, native and prompt functions, registry."""

from .base import KernelFunction
from .models import FunctionView, ParameterView, ParameterViewType
from .native import NativeFunction, native_function
from .prompt import PromptFunction
from .prompt_config import CompletionRequestSettings, PromptTemplateConfig
from .registry import FunctionRegistry
from .validation import GLOBAL_FUNCTIONS_PLUGIN

__all__ = [
    "CompletionRequestSettings",
    "FunctionRegistry",
    "FunctionView",
    "GLOBAL_FUNCTIONS_PLUGIN",
    "KernelFunction",
    "NativeFunction",
    "ParameterView",
    "ParameterViewType",
    "PromptFunction",
    "PromptTemplateConfig",
    "native_function",
]
