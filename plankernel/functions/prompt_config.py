"""Configuration of a prompt function, as stored next to ``skprompt.txt``."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..errors import ErrorCode, ValidationError
from .models import ParameterView


class CompletionRequestSettings(BaseModel):
    """Request settings handed to a completion backend."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    temperature: float = 0.0
    top_p: float = 0.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    max_tokens: Optional[int] = None
    stop_sequences: List[str] = Field(default_factory=list)
    results_per_prompt: int = 1
    service_id: Optional[str] = None


class InputParameter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    default_value: str = Field(default="", alias="defaultValue")


class InputConfig(BaseModel):
    parameters: List[InputParameter] = Field(default_factory=list)


class PromptTemplateConfig(BaseModel):
    """Schema, type, description, request settings and declared inputs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_version: int = Field(default=1, alias="schema")
    type: str = "completion"
    description: str = ""
    completion: CompletionRequestSettings = Field(default_factory=CompletionRequestSettings)
    default_services: List[str] = Field(default_factory=list)
    input: InputConfig = Field(default_factory=InputConfig)

    @classmethod
    def from_json(cls, text: str) -> "PromptTemplateConfig":
        try:
            payload: Dict[str, Any] = json.loads(text) if text.strip() else {}
            config = cls.model_validate(payload)
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            raise ValidationError(
                message=f"Invalid prompt template configuration: {exc}",
                error_code=ErrorCode.INVALID_TEMPLATE_CONFIG,
                cause=exc,
            ) from exc
        if config.type != "completion":
            raise ValidationError(
                message=f"Function type not supported: {config.type}",
                field_name="type",
                field_value=config.type,
                error_code=ErrorCode.INVALID_TEMPLATE_CONFIG,
            )
        return config

    def to_parameter_views(self) -> List[ParameterView]:
        return [
            ParameterView(
                name=parameter.name,
                description=parameter.description,
                default_value=parameter.default_value,
            )
            for parameter in self.input.parameters
        ]


__all__ = [
    "CompletionRequestSettings",
    "InputConfig",
    "InputParameter",
    "PromptTemplateConfig",
]
