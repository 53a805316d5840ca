"""Resource builder protocol and its optional capabilities."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from worker_operator.store.base import ResourceStore

EqualityFunc = Callable[[Dict[str, Any], Dict[str, Any]], bool]


@runtime_checkable
class ResourceBuilder(Protocol):
    """Renders one owned object of a worker process."""

    def build(self) -> Dict[str, Any]:
        """Return the desired object as a manifest dict."""
        ...

    def update(self, obj: Dict[str, Any]) -> None:
        """Merge the desired fields into ``obj`` in place."""
        ...


@runtime_checkable
class Comparer(Protocol):
    """Builders that know how to compare two versions of their object."""

    def equal(self, a: Dict[str, Any], b: Dict[str, Any]) -> bool:
        ...


@runtime_checkable
class ReadinessReporter(Protocol):
    """Builders that can tell whether their live object is ready."""

    async def report_status(self, store: ResourceStore) -> bool:
        ...


class ComparisonContext:
    """Equality functions by object kind, scoped to one reconciliation."""

    def __init__(self) -> None:
        self._funcs: Dict[str, EqualityFunc] = {}

    def register(self, kind: str, func: EqualityFunc) -> None:
        self._funcs[kind] = func

    def get(self, kind: str) -> Optional[EqualityFunc]:
        return self._funcs.get(kind)

    def equal(self, kind: str, a: Dict[str, Any], b: Dict[str, Any]) -> bool:
        func = self._funcs.get(kind)
        if func is None:
            return a == b
        return func(a, b)
