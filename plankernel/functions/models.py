from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ParameterViewType(str, Enum):
    """Declared type of a function parameter."""

    STRING = "string"
    NUMBER = "number"
    OBJECT = "object"
    ARRAY = "array"
    BOOLEAN = "boolean"


class ParameterView(BaseModel):
    """Description of one function parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    default_value: Optional[str] = None
    type: Optional[ParameterViewType] = None
    is_required: Optional[bool] = None


class FunctionView(BaseModel):
    """Snapshot returned by ``describe()``; never invokes the function."""

    model_config = ConfigDict(frozen=True)

    name: str
    plugin_name: str
    description: str = ""
    parameters: List[ParameterView] = Field(default_factory=list)
    is_semantic: bool = False
    is_asynchronous: bool = True

    @property
    def qualified_name(self) -> str:
        return f"{self.plugin_name}.{self.name}"


__all__ = ["FunctionView", "ParameterView", "ParameterViewType"]
