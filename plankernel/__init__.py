"""Plan orchestration kernel: functions, registry, plans and a kernel facade."""

from .kernel import Kernel
from .orchestration import CancellationToken, ExecutionContext, FunctionResult, KernelResult, VariableStore
from .planning import Plan, PlanKind

__all__ = [
    "CancellationToken",
    "ExecutionContext",
    "FunctionResult",
    "Kernel",
    "KernelResult",
    "Plan",
    "PlanKind",
    "VariableStore",
]
