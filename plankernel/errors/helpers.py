"""
Convenience constructors for the errors raised across the kernel.
"""

from typing import Any, Dict, Optional

from .exceptions import (
    AIServiceError,
    ErrorCode,
    FunctionExecutionError,
    InvalidConfigurationError,
)


def invalid_name_error(kind: str, value: Any) -> InvalidConfigurationError:
    """A function or plugin name does not match ``^[0-9A-Za-z_]+$``."""
    code = ErrorCode.INVALID_PLUGIN_NAME if kind == "plugin" else ErrorCode.INVALID_FUNCTION_NAME
    return InvalidConfigurationError(
        message=f"A {kind} name can contain only ASCII letters, digits, and underscores: '{value}' is not a valid name.",
        error_code=code,
        context={"kind": kind, "value": str(value)},
        suggestions=["Use only letters, digits and underscores"],
    )


def duplicate_parameter_error(function_name: str, parameter_name: str) -> InvalidConfigurationError:
    return InvalidConfigurationError(
        message=f"The function '{function_name}' declares the parameter '{parameter_name}' more than once",
        error_code=ErrorCode.DUPLICATE_PARAMETER,
        context={"function_name": function_name, "parameter_name": parameter_name},
    )


def not_semantic_error(function_name: str, plugin_name: str) -> InvalidConfigurationError:
    """A native function was configured as if it were prompt-based."""
    return InvalidConfigurationError(
        message="Invalid operation, the method requires a semantic function",
        error_code=ErrorCode.INVALID_FUNCTION_TYPE,
        context={"function_name": function_name, "plugin_name": plugin_name},
    )


def service_not_configured_error(function_name: str, plugin_name: str) -> InvalidConfigurationError:
    return InvalidConfigurationError(
        message=f"No text completion service is configured for {plugin_name}.{function_name}",
        error_code=ErrorCode.SERVICE_NOT_CONFIGURED,
        context={"function_name": function_name, "plugin_name": plugin_name},
        suggestions=["Create the function through Kernel.create_semantic_function", "Call set_ai_service()"],
    )


def invalid_response_error(service_name: Optional[str] = None, detail: Optional[str] = None) -> AIServiceError:
    return AIServiceError(
        message="The AI service returned no completions",
        detail=detail,
        service_name=service_name,
        error_code=ErrorCode.AI_INVALID_RESPONSE,
    )


def execution_error(
    function_name: str,
    plugin_name: str,
    cause: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> FunctionExecutionError:
    """Wrap an unrecognised exception raised while invoking a function."""
    return FunctionExecutionError(
        message=f"Function {plugin_name}.{function_name} failed: {cause}",
        function_name=function_name,
        plugin_name=plugin_name,
        context=context,
        cause=cause,
    )


def render_error(function_name: str, plugin_name: str, cause: Exception) -> FunctionExecutionError:
    return FunctionExecutionError(
        message=f"Failed to render the prompt template of {plugin_name}.{function_name}: {cause}",
        function_name=function_name,
        plugin_name=plugin_name,
        error_code=ErrorCode.TEMPLATE_RENDER_FAILED,
        cause=cause,
    )
