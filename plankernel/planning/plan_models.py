from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator


class PlanModel(BaseModel):
    """Serialized form of a plan tree node."""

    name: str = ""
    plugin_name: str = ""
    description: str = ""
    next_step_index: int = 0
    state: Dict[str, str] = Field(default_factory=dict)
    parameters: Dict[str, str] = Field(default_factory=dict)
    outputs: List[str] = Field(default_factory=list)
    steps: List["PlanModel"] = Field(default_factory=list)

    @field_validator("state", "parameters", mode="before")
    @classmethod
    def _coerce_variables(cls, value: Any) -> Any:
        """Accept either an object or a list of ``{"Key": .., "Value": ..}`` pairs."""
        if value is None:
            return {}
        if isinstance(value, list):
            pairs: Dict[str, Any] = {}
            for item in value:
                if not isinstance(item, dict):
                    raise ValueError("variable entries must be objects")
                key = item.get("Key", item.get("key"))
                if key is None:
                    raise ValueError("variable entry is missing its key")
                pairs[key] = item.get("Value", item.get("value", ""))
            value = pairs
        if isinstance(value, dict):
            if any(not key for key in value):
                raise ValueError("variable names cannot be empty")
            return {key: "" if item is None else item for key, item in value.items()}
        return value

    @model_validator(mode="after")
    def _check_cursor(self) -> "PlanModel":
        if not 0 <= self.next_step_index <= len(self.steps):
            raise ValueError(
                f"next_step_index {self.next_step_index} is outside 0..{len(self.steps)}"
            )
        return self


PlanModel.model_rebuild()

__all__ = ["PlanModel"]
