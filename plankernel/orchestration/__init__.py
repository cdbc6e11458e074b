from .cancellation import CancellationToken, raise_if_cancelled
from .context import ExecutionContext
from .function_result import FunctionResult, KernelResult
from .variables import MAIN_KEY, VariableStore

__all__ = [
    "CancellationToken",
    "ExecutionContext",
    "FunctionResult",
    "KernelResult",
    "MAIN_KEY",
    "VariableStore",
    "raise_if_cancelled",
]
