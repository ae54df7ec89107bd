"""
Form Aggregate.

Union of every step's form values seen in one tab. Steps read it to pre-fill
before (or instead of) a store hydration, and merge into it after hydrating or
submitting. Merges are shallow: a top-level key is overwritten as a whole,
nested toggles are never merged field by field.
"""

from collections.abc import Mapping
from typing import Any


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


class FormAggregate:
    """In-memory field -> value mapping owned by the wizard."""

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = {key: _copy(value) for key, value in (initial or {}).items()}

    def merge(self, partial: Mapping[str, Any]) -> None:
        """Overwrite same-named keys; leave every other key untouched."""
        for key, value in partial.items():
            self._values[key] = _copy(value)

    def get(self) -> dict[str, Any]:
        """Snapshot of the current values, copied one level deep."""
        return {key: _copy(value) for key, value in self._values.items()}

    def pick(self, fields) -> dict[str, Any]:
        """Values for the given field names that have been seen so far."""
        return {name: _copy(self._values[name]) for name in fields if name in self._values}

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)
