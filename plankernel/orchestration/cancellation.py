"""Cooperative cancellation shared by a plan run and its backend calls."""

from __future__ import annotations

import asyncio
from typing import Optional

from ..errors import OperationCancelledError


class CancellationToken:
    """Thin wrapper around :class:`asyncio.Event`.

    The engine checks the token before each step and around completion
    calls; nothing is interrupted mid-await.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(
                self._reason or "The operation was cancelled",
            )


def raise_if_cancelled(token: Optional[CancellationToken]) -> None:
    """Helper accepting an optional token."""
    if token is not None:
        token.raise_if_cancelled()


__all__ = ["CancellationToken", "raise_if_cancelled"]
