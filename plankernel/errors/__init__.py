"""
Error handling system for the kernel.

This module provides:
- The exception hierarchy (lookup, configuration, validation, AI service,
  execution and cancellation errors)
- Helper constructors for frequently raised errors
"""

from .exceptions import (
    AIServiceError,
    BaseError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    FunctionExecutionError,
    FunctionNotFoundError,
    InvalidConfigurationError,
    NotFoundError,
    OperationCancelledError,
    PlanParseError,
    PlanSerializationError,
    ServiceNotFoundError,
    ValidationError,
)
from .helpers import (
    duplicate_parameter_error,
    execution_error,
    invalid_name_error,
    invalid_response_error,
    not_semantic_error,
    render_error,
    service_not_configured_error,
)

__all__ = [
    # Exception classes
    "BaseError",
    "NotFoundError",
    "FunctionNotFoundError",
    "ServiceNotFoundError",
    "InvalidConfigurationError",
    "ValidationError",
    "PlanSerializationError",
    "PlanParseError",
    "AIServiceError",
    "FunctionExecutionError",
    "OperationCancelledError",
    "ErrorCode",
    "ErrorCategory",
    "ErrorSeverity",
    # Helper functions
    "duplicate_parameter_error",
    "execution_error",
    "invalid_name_error",
    "invalid_response_error",
    "not_semantic_error",
    "render_error",
    "service_not_configured_error",
]
