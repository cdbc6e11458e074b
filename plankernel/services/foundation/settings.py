#!/usr/bin/env python3
"""
Centralised application settings (AppSettings)

Goals:
- One place for logging, completion-backend and request defaults
- Load from environment variables, with .env support
- Keep services from reading os.environ directly
"""
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # no-op if file missing; respects current working dir


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    # json|plain
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # Chat completion backend
    llm_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("LLM_API_KEY", "OPENAI_API_KEY")
    )
    llm_api_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        validation_alias="LLM_API_URL",
    )
    llm_model: str = Field(default="gpt-4o-mini", validation_alias="LLM_MODEL")
    llm_request_timeout: int = Field(default=60, validation_alias="LLM_REQUEST_TIMEOUT")
    llm_retries: int = Field(default=2, validation_alias="LLM_RETRIES")
    llm_backoff_base: float = Field(default=0.5, validation_alias="LLM_BACKOFF_BASE")

    # Request defaults for prompt functions
    default_max_tokens: int = Field(default=256, validation_alias="DEFAULT_MAX_TOKENS")
    default_temperature: float = Field(default=0.0, validation_alias="DEFAULT_TEMPERATURE")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return the cached global settings"""
    return AppSettings()  # reads environment variables and .env
