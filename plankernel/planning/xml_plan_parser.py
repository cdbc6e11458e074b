"""
Turn the ``<plan>`` XML produced by a planner into a :class:`Plan`.

    <plan>
      <function.WriterPlugin.Outline input="$GOAL" setContextVariable="OUTLINE"/>
      <function.WriterPlugin.Chapter input="$OUTLINE" appendToResult="RESULT__CHAPTER"/>
    </plan>
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional, Tuple

from ..config import get_planning_settings
from ..errors import FunctionNotFoundError, PlanParseError
from ..functions.registry import FunctionRegistry
from ..functions.validation import GLOBAL_FUNCTIONS_PLUGIN
from .plan import Plan

logger = logging.getLogger(__name__)

FUNCTION_TAG_PREFIX = "function."
SET_CONTEXT_VARIABLE_TAG = "setContextVariable"
APPEND_TO_RESULT_TAG = "appendToResult"

_PLAN_BLOCK = re.compile(r"<plan\b[^>]*>.*?</plan>", re.DOTALL | re.IGNORECASE)


def parse_plan_xml(
    xml_text: str,
    goal: str,
    registry: FunctionRegistry,
    allow_missing_functions: Optional[bool] = None,
) -> Plan:
    """Build a composite plan for ``goal`` from planner XML.

    Unknown functions raise :class:`FunctionNotFoundError` unless
    ``allow_missing_functions`` is set, in which case an unbound placeholder
    step named after the function is added instead.
    """
    if allow_missing_functions is None:
        allow_missing_functions = get_planning_settings().allow_missing_functions

    root = _parse_plan_element(xml_text)
    plan = Plan(goal)

    for element in root:
        tag = element.tag
        if not isinstance(tag, str) or not tag.startswith(FUNCTION_TAG_PREFIX):
            continue

        qualified_name = tag[len(FUNCTION_TAG_PREFIX):]
        plugin_name, function_name = _split_function_name(qualified_name)
        function = registry.try_get_function(plugin_name, function_name)

        if function is None:
            if not allow_missing_functions:
                raise FunctionNotFoundError(plugin_name, function_name)
            logger.warning("Planner referenced unknown function %s; adding placeholder", qualified_name)
            plan.add_steps(Plan(qualified_name))
            continue

        step = Plan.from_function(function)
        for parameter in function.describe().parameters:
            if parameter.default_value is not None:
                step.parameters.set(parameter.name, parameter.default_value)

        for attribute, value in element.attrib.items():
            if attribute == SET_CONTEXT_VARIABLE_TAG:
                step.outputs.append(value)
            elif attribute == APPEND_TO_RESULT_TAG:
                step.outputs.append(value)
                plan.outputs.append(value)
            else:
                step.parameters.set(attribute, value)

        plan.add_steps(step)

    return plan


def _parse_plan_element(xml_text: str) -> ET.Element:
    match = _PLAN_BLOCK.search(xml_text or "")
    if match is None:
        raise PlanParseError(
            "Failed to parse plan xml: no <plan> element found",
            context={"xml": (xml_text or "")[:500]},
        )

    block = match.group(0)
    try:
        return ET.fromstring(block)
    except ET.ParseError as exc:
        # planners often emit bare ampersands
        escaped = re.sub(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)", "&amp;", block)
        try:
            return ET.fromstring(escaped)
        except ET.ParseError:
            raise PlanParseError(
                f"Failed to parse plan xml: {exc}",
                cause=exc,
                context={"xml": block[:500]},
            ) from exc


def _split_function_name(qualified_name: str) -> Tuple[str, str]:
    plugin_name, _, function_name = qualified_name.rpartition(".")
    return plugin_name or GLOBAL_FUNCTIONS_PLUGIN, function_name


__all__ = ["parse_plan_xml"]
