"""
Unified exception hierarchy for the kernel.

Every error carries a numeric code, a category and a severity so callers can
branch on the kind of failure without parsing messages:
- NOT_FOUND: function / plugin / service lookup misses
- INVALID_CONFIGURATION: bad names, duplicate parameters, misused functions
- VALIDATION: malformed plan documents
- AI_SERVICE: completion backend failures (transient or fatal)
- EXECUTION: a native or composite step raised an unrecognised error
- CANCELLED: cooperative cancellation was requested
"""

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """Error severity levels"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories"""

    NOT_FOUND = "not_found"
    INVALID_CONFIGURATION = "invalid_configuration"
    VALIDATION = "validation"
    AI_SERVICE = "ai_service"
    EXECUTION = "execution"
    CANCELLED = "cancelled"


class ErrorCode:
    """Numeric error codes"""

    # Lookup misses (1000-1999)
    FUNCTION_NOT_FOUND = 1001
    PLUGIN_NOT_FOUND = 1002
    SERVICE_NOT_FOUND = 1003

    # Configuration errors (2000-2999)
    INVALID_FUNCTION_NAME = 2001
    INVALID_PLUGIN_NAME = 2002
    DUPLICATE_PARAMETER = 2003
    INVALID_FUNCTION_TYPE = 2004
    INVALID_PLAN_STRUCTURE = 2005
    SERVICE_NOT_CONFIGURED = 2006

    # Validation errors (3000-3999)
    INVALID_PLAN_DOCUMENT = 3001
    INVALID_PLAN_XML = 3002
    INVALID_TEMPLATE_CONFIG = 3003

    # AI service errors (4000-4999)
    AI_SERVICE_ERROR = 4001
    AI_INVALID_RESPONSE = 4002
    AI_RATE_LIMIT_EXCEEDED = 4003
    AI_AUTHENTICATION_FAILED = 4004
    AI_REQUEST_TIMEOUT = 4005

    # Execution errors (5000-5999)
    FUNCTION_EXECUTION_FAILED = 5001
    TEMPLATE_RENDER_FAILED = 5002

    # Cancellation (6000-6999)
    OPERATION_CANCELLED = 6001


class BaseError(Exception):
    """
    Base class for all kernel errors.

    Provides a uniform shape (code, category, severity, context, cause,
    suggestions) and logs itself on construction.
    """

    def __init__(
        self,
        message: str,
        error_code: int,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.category = category
        self.severity = severity

        self.error_id = str(uuid.uuid4())
        self.timestamp = datetime.now()

        self.context = context or {}
        self.cause = cause
        self.suggestions = suggestions or []

        self._log_error()

    def _log_error(self):
        """Record the error through the logging system"""
        logger = logging.getLogger(self.__class__.__module__)

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "context": self.context,
        }

        if self.severity == ErrorSeverity.CRITICAL:
            logger.critical(f"Critical Error: {log_data}")
        elif self.severity == ErrorSeverity.HIGH:
            logger.error(f"High Severity Error: {log_data}")
        elif self.severity == ErrorSeverity.MEDIUM:
            logger.warning(f"Medium Severity Error: {log_data}")
        else:
            logger.info(f"Low Severity Error: {log_data}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialise for structured logs or API payloads"""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.category.value}: {self.message}"


class NotFoundError(BaseError):
    """
    Lookup miss

    Raised when a function, plugin or AI service cannot be resolved.
    """

    def __init__(
        self,
        message: str,
        error_code: int = ErrorCode.FUNCTION_NOT_FOUND,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.NOT_FOUND,
            severity=severity,
            context=context,
            cause=cause,
            suggestions=suggestions,
        )


class FunctionNotFoundError(NotFoundError):
    """A (plugin, function) pair is not registered."""

    def __init__(
        self,
        plugin_name: Optional[str],
        function_name: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.plugin_name = plugin_name
        self.function_name = function_name
        qualified = f"{plugin_name}.{function_name}" if plugin_name else function_name

        lookup_context = context or {}
        lookup_context.update({"plugin_name": plugin_name, "function_name": function_name})

        super().__init__(
            message=f"Function not available: {qualified}",
            error_code=ErrorCode.FUNCTION_NOT_FOUND,
            context=lookup_context,
            cause=cause,
            suggestions=["Check the plugin and function names", "Register the function before running the plan"],
        )


class ServiceNotFoundError(NotFoundError):
    """No AI service is registered under the requested id."""

    def __init__(self, service_id: Optional[str], context: Optional[Dict[str, Any]] = None):
        self.service_id = service_id
        service_context = context or {}
        service_context["service_id"] = service_id

        super().__init__(
            message=f"Service not available: {service_id or '<default>'}",
            error_code=ErrorCode.SERVICE_NOT_FOUND,
            severity=ErrorSeverity.HIGH,
            context=service_context,
            suggestions=["Register a text completion service on the kernel"],
        )


class InvalidConfigurationError(BaseError):
    """
    Configuration error

    Bad function or plugin names, duplicate parameters, a non-semantic
    function used as a semantic one, or an illegal plan shape.
    """

    def __init__(
        self,
        message: str,
        error_code: int = ErrorCode.INVALID_PLAN_STRUCTURE,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.INVALID_CONFIGURATION,
            severity=severity,
            context=context,
            cause=cause,
            suggestions=suggestions,
        )


class ValidationError(BaseError):
    """
    Input validation error

    Used for malformed plan documents and template configurations.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Any = None,
        error_code: int = ErrorCode.INVALID_PLAN_DOCUMENT,
        severity: ErrorSeverity = ErrorSeverity.LOW,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        validation_context = context or {}
        if field_name:
            validation_context["field_name"] = field_name
        if field_value is not None:
            validation_context["field_value"] = str(field_value)

        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.VALIDATION,
            severity=severity,
            context=validation_context,
            cause=cause,
            suggestions=suggestions,
        )


class PlanSerializationError(ValidationError):
    """The JSON plan document could not be turned into a Plan."""

    def __init__(self, message: str, cause: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_PLAN_DOCUMENT,
            context=context,
            cause=cause,
            suggestions=["Check the document against Plan.to_json() output"],
        )


class PlanParseError(ValidationError):
    """The XML produced by a planner could not be parsed."""

    def __init__(self, message: str, cause: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_PLAN_XML,
            context=context,
            cause=cause,
            suggestions=["Ensure the planner returned a single well-formed <plan> element"],
        )


class AIServiceError(BaseError):
    """
    Completion backend error

    ``transient`` marks failures a connector may retry (5xx, network);
    ``status_code`` and ``detail`` keep the provider's own diagnostics so
    they can be surfaced verbatim.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        transient: bool = False,
        service_name: Optional[str] = None,
        error_code: int = ErrorCode.AI_SERVICE_ERROR,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        self.transient = transient

        service_context = context or {}
        if service_name:
            service_context["service_name"] = service_name
        if status_code is not None:
            service_context["status_code"] = status_code
        service_context["transient"] = transient

        full_message = message
        if status_code is not None:
            full_message = f"{full_message} (HTTP {status_code})"
        if detail:
            full_message = f"{full_message}: {detail}"

        super().__init__(
            message=full_message,
            error_code=error_code,
            category=ErrorCategory.AI_SERVICE,
            severity=severity,
            context=service_context,
            cause=cause,
            suggestions=suggestions or ["Check the AI service status", "Verify API quota and credentials"],
        )


class FunctionExecutionError(BaseError):
    """
    Execution failure

    Wraps an unrecognised exception raised by a native function, or a
    template rendering failure in a prompt function.
    """

    def __init__(
        self,
        message: str,
        function_name: Optional[str] = None,
        plugin_name: Optional[str] = None,
        error_code: int = ErrorCode.FUNCTION_EXECUTION_FAILED,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        execution_context = context or {}
        if function_name:
            execution_context["function_name"] = function_name
        if plugin_name:
            execution_context["plugin_name"] = plugin_name

        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.EXECUTION,
            severity=severity,
            context=execution_context,
            cause=cause,
            suggestions=suggestions,
        )


class OperationCancelledError(BaseError):
    """Cancellation was requested through a CancellationToken."""

    def __init__(self, message: str = "The operation was cancelled", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.OPERATION_CANCELLED,
            category=ErrorCategory.CANCELLED,
            severity=ErrorSeverity.LOW,
            context=context,
        )
