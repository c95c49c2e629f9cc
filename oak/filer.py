#  -*- coding: utf-8 -*-
"""
The filer capability.

A *filer* is a storage-backend strategy for the properties of persistent
objects. It exposes two operations:

- ``load(*names) -> dict`` returns the stored values of the requested names
  (names with no stored value are simply absent from the result). Loading
  never mutates the underlying store.
- ``store(mapping=None, /, **values) -> bool`` writes values. It is the only
  mutating operation.

Filers do not own the objects they serve; they are injected into them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


class Filer(ABC):
    """Abstract base of every filer."""

    @abstractmethod
    def load(self, *names: str) -> dict[str, Any]:
        """Return the stored values of ``names``."""
        ...

    @abstractmethod
    def store(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """Persist the given values."""
        ...

    @staticmethod
    def _merge(values: dict[str, Any] | None, kwargs: dict[str, Any]) -> dict[str, Any]:
        if values is None:
            return dict(kwargs)

        return {**values, **kwargs}


class NullFiler(Filer):
    """
    Filer that stores nothing and loads nothing.

    Used as the default filer so that every property always has *some* filer
    and reading an unset property resolves to ``None`` instead of failing.
    """

    def load(self, *names: str) -> dict[str, Any]:
        return {}

    def store(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        return True

    def __repr__(self) -> str:
        return f'{type(self).__name__}()'


__all__ = [
    'Filer',
    'NullFiler',
]
