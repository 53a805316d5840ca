from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class ObjectKey:
    """Namespace/name pair identifying an object of a given kind."""

    namespace: str
    name: str

    @classmethod
    def parse(cls, value: str, default_namespace: str = "default") -> ObjectKey:
        namespace, sep, name = value.partition("/")
        if not sep:
            return cls(namespace=default_namespace, name=namespace)
        if not namespace or not name:
            raise ValueError(f"Invalid object key '{value}', expected NAMESPACE/NAME")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def object_key(obj: dict[str, Any]) -> ObjectKey:
    """Return the key of a manifest dict."""
    metadata = obj.get("metadata") or {}
    return ObjectKey(namespace=metadata.get("namespace") or "default", name=metadata["name"])


class ResourceStore(Protocol):
    """Contract for the cluster API as seen by the reconciler.

    Objects are plain manifest dicts. ``get`` raises NotFoundError when the
    object does not exist; writes raise ConflictError on stale or duplicate
    objects and StoreError on any other failure.
    """

    async def get(self, api_version: str, kind: str, key: ObjectKey) -> dict[str, Any]:
        ...

    async def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...
