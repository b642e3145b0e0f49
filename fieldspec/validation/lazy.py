"""Deferred accessors for enum sets and nested DTO types.

Field declarations may reference enums or DTO classes defined later in the
module (or in a module that imports this one). Accessors are stored as thunks
and resolved on first use, then memoized.
"""
from __future__ import annotations

from typing import Callable, Generic, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_UNRESOLVED = object()


class Lazy(Generic[T]):
    """Memoizing zero-argument thunk.

    Concurrent first resolution may call the factory more than once; the
    factory is expected to be pure, so every caller sees the same value.
    """

    __slots__ = ("_factory", "_value", "purpose")

    def __init__(self, factory: Callable[[], T], purpose: str = "accessor"):
        if not callable(factory):
            raise ConfigurationError(f"{purpose} must be a zero-argument callable, got {type(factory).__name__}",
                option=purpose)
        self._factory, self._value, self.purpose = factory, _UNRESOLVED, purpose

    @property
    def resolved(self) -> bool:
        return self._value is not _UNRESOLVED

    def resolve(self) -> T:
        if self._value is _UNRESOLVED:
            try:
                self._value = self._factory()
            except Exception as exc:
                raise ConfigurationError(f"{self.purpose} could not be resolved: {exc}", option=self.purpose) from exc
        return self._value

    def __call__(self) -> T:
        return self.resolve()

    def __repr__(self) -> str:
        return f"Lazy({self.purpose}, resolved={self.resolved})"
