"""Name and parameter checks applied when functions are built or registered."""

from __future__ import annotations

import re
from typing import Iterable

from ..errors import duplicate_parameter_error, invalid_name_error
from .models import ParameterView

GLOBAL_FUNCTIONS_PLUGIN = "_GLOBAL_FUNCTIONS_"

_VALID_NAME = re.compile(r"^[0-9A-Za-z_]+$")


def validate_function_name(name: str) -> None:
    if not name or not _VALID_NAME.match(name):
        raise invalid_name_error("function", name)


def validate_plugin_name(name: str) -> None:
    if not name or not _VALID_NAME.match(name):
        raise invalid_name_error("plugin", name)


def validate_parameters(function_name: str, parameters: Iterable[ParameterView]) -> None:
    seen = set()
    for parameter in parameters:
        key = parameter.name.casefold()
        if key in seen:
            raise duplicate_parameter_error(function_name, parameter.name)
        seen.add(key)


__all__ = [
    "GLOBAL_FUNCTIONS_PLUGIN",
    "validate_function_name",
    "validate_parameters",
    "validate_plugin_name",
]
