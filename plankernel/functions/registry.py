"""
Function Registry

Namespaced lookup of functions by (plugin, name), used to bind plan steps
and to describe everything available to a planner.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import FunctionNotFoundError
from .base import KernelFunction
from .models import FunctionView
from .validation import GLOBAL_FUNCTIONS_PLUGIN, validate_function_name, validate_plugin_name

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Registry of functions, case-insensitive on plugin and function names"""

    GLOBAL_PLUGIN = GLOBAL_FUNCTIONS_PLUGIN

    def __init__(self):
        self._functions: Dict[Tuple[str, str], KernelFunction] = {}

    def register(self, function: KernelFunction) -> KernelFunction:
        """Register a function, replacing any previous entry with the same name"""
        validate_plugin_name(function.plugin_name)
        validate_function_name(function.name)

        key = _key(function.plugin_name, function.name)
        if key in self._functions:
            logger.warning(
                f"Function {function.plugin_name}.{function.name} already registered, overwriting"
            )
        self._functions[key] = function
        logger.debug(f"Registered function: {function.plugin_name}.{function.name}")
        return function

    def get_function(self, plugin_name: str, function_name: Optional[str] = None) -> KernelFunction:
        """Resolve a function or raise FunctionNotFoundError.

        With a single argument the name is looked up in the global plugin.
        """
        plugin_name, function_name = _resolve_names(plugin_name, function_name)
        function = self._functions.get(_key(plugin_name, function_name))
        if function is None:
            raise FunctionNotFoundError(plugin_name, function_name)
        return function

    def try_get_function(
        self, plugin_name: str, function_name: Optional[str] = None
    ) -> Optional[KernelFunction]:
        plugin_name, function_name = _resolve_names(plugin_name, function_name)
        return self._functions.get(_key(plugin_name, function_name))

    def get_function_views(self) -> List[FunctionView]:
        """Snapshot of every registered function's description"""
        return [function.describe() for function in self._functions.values()]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, tuple) and len(item) == 2:
            plugin_name, function_name = item
        elif isinstance(item, str):
            plugin_name, function_name = _resolve_names(item, None)
        else:
            return False
        return _key(plugin_name, function_name) in self._functions

    def __iter__(self) -> Iterator[KernelFunction]:
        return iter(list(self._functions.values()))

    def __len__(self) -> int:
        return len(self._functions)


def _resolve_names(plugin_name: str, function_name: Optional[str]) -> Tuple[str, str]:
    if function_name is None:
        return GLOBAL_FUNCTIONS_PLUGIN, plugin_name
    return plugin_name or GLOBAL_FUNCTIONS_PLUGIN, function_name


def _key(plugin_name: str, function_name: str) -> Tuple[str, str]:
    return plugin_name.casefold(), function_name.casefold()


__all__ = ["FunctionRegistry"]
