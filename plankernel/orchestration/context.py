from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .cancellation import CancellationToken
from .variables import VariableStore

if TYPE_CHECKING:  # pragma: no cover
    from ..functions.registry import FunctionRegistry


class ExecutionContext:
    """Per-invocation bundle: variables, function registry, kernel and token."""

    def __init__(
        self,
        variables: Optional[VariableStore] = None,
        functions: Optional["FunctionRegistry"] = None,
        kernel: Any = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        if functions is None:
            from ..functions.registry import FunctionRegistry

            functions = FunctionRegistry()
        self.variables = variables if variables is not None else VariableStore()
        self.functions = functions
        self.kernel = kernel
        self.cancellation_token = cancellation_token

    @property
    def result(self) -> str:
        """The main value of the variables."""
        return str(self.variables)

    def __getitem__(self, key: str) -> str:
        return self.variables[key]

    def __setitem__(self, key: str, value: Optional[str]) -> None:
        self.variables[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.variables

    def clone(self) -> "ExecutionContext":
        """Copy the variables; share registry, kernel and token."""
        return ExecutionContext(
            variables=self.variables.clone(),
            functions=self.functions,
            kernel=self.kernel,
            cancellation_token=self.cancellation_token,
        )

    def __repr__(self) -> str:
        return f"ExecutionContext(variables={self.variables!r})"


__all__ = ["ExecutionContext"]
