"""
Variable store threaded through every function and plan invocation.

Keys are compared case-insensitively. The first spelling a key was inserted
with is the one reported when iterating. The reserved ``input`` key always
exists and holds the main value.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Dict, Iterator, Mapping, Optional, Tuple

MAIN_KEY = "input"


class VariableStore(MutableMapping):
    """Ordered, case-insensitive ``str -> str`` mapping with a main value."""

    MAIN_KEY = MAIN_KEY

    def __init__(
        self,
        content: Optional[str] = None,
        variables: Optional[Mapping[str, Optional[str]]] = None,
    ) -> None:
        self._entries: Dict[str, Tuple[str, str]] = {MAIN_KEY: (MAIN_KEY, "")}
        if variables:
            for key, value in variables.items():
                self.set(key, value)
        if content is not None:
            self.update_input(content)

    # ------------------------------------------------------------------
    # Main value
    # ------------------------------------------------------------------

    @property
    def input(self) -> str:
        return self._entries[MAIN_KEY][1]

    @input.setter
    def input(self, value: Optional[str]) -> None:
        self.update_input(value)

    def update_input(self, value: Optional[str]) -> "VariableStore":
        """Replace the main value and return the store for chaining."""
        self._entries[MAIN_KEY] = (self._entries[MAIN_KEY][0], "" if value is None else str(value))
        return self

    # ------------------------------------------------------------------
    # Lookup and mutation
    # ------------------------------------------------------------------

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:  # type: ignore[override]
        entry = self._entries.get(_normalize(key))
        return entry[1] if entry is not None else default

    def set(self, key: str, value: Optional[str]) -> None:
        """Set ``key`` to ``value``; ``None`` removes the key."""
        if not key:
            raise KeyError("Variable names cannot be empty")
        normalized = _normalize(key)
        if value is None:
            if normalized == MAIN_KEY:
                self.update_input("")
            else:
                self._entries.pop(normalized, None)
            return
        existing = self._entries.get(normalized)
        original = existing[0] if existing is not None else key
        self._entries[normalized] = (original, str(value))

    def clone(self) -> "VariableStore":
        copy = VariableStore()
        copy._entries = dict(self._entries)
        return copy

    def to_dict(self) -> Dict[str, str]:
        return {original: value for original, value in self._entries.values()}

    # ------------------------------------------------------------------
    # MutableMapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> str:
        entry = self._entries.get(_normalize(key))
        if entry is None:
            raise KeyError(key)
        return entry[1]

    def __setitem__(self, key: str, value: Optional[str]) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        normalized = _normalize(key)
        if normalized not in self._entries:
            raise KeyError(key)
        self.set(key, None)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _normalize(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter([original for original, _ in self._entries.values()])

    def __len__(self) -> int:
        return len(self._entries)

    def __str__(self) -> str:
        return self.input

    def __repr__(self) -> str:
        return f"VariableStore({self.to_dict()!r})"


def _normalize(key: str) -> str:
    return key.casefold() if isinstance(key, str) else str(key).casefold()


__all__ = ["MAIN_KEY", "VariableStore"]
