from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from worker_operator.core.errors import ConflictError, NotFoundError
from worker_operator.store.base import ObjectKey, object_key

_Index = tuple[str, str, str, str]


@dataclass(frozen=True, slots=True)
class WriteRecord:
    verb: str
    kind: str
    key: ObjectKey


class InMemoryResourceStore:
    """Dict-backed resource store for local runs and tests.

    Mimics the API server bookkeeping the reconciler relies on: uids,
    resourceVersion optimistic concurrency, generation bumps on spec changes
    and a separate status write path.
    """

    def __init__(self) -> None:
        self._objects: dict[_Index, dict[str, Any]] = {}
        self._version = 0
        self.writes: list[WriteRecord] = []

    @staticmethod
    def _index(api_version: str, kind: str, key: ObjectKey) -> _Index:
        return (api_version, kind, key.namespace, key.name)

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _lookup(self, obj: dict[str, Any]) -> tuple[_Index, dict[str, Any]]:
        index = self._index(obj["apiVersion"], obj["kind"], object_key(obj))
        current = self._objects.get(index)
        if current is None:
            raise NotFoundError(f"{obj['kind']} {object_key(obj)} not found")
        sent_version = (obj.get("metadata") or {}).get("resourceVersion")
        if sent_version is not None and sent_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(
                f"{obj['kind']} {object_key(obj)} was modified",
                details={"sent": sent_version, "current": current["metadata"]["resourceVersion"]},
            )
        return index, current

    async def get(self, api_version: str, kind: str, key: ObjectKey) -> dict[str, Any]:
        obj = self._objects.get(self._index(api_version, kind, key))
        if obj is None:
            raise NotFoundError(f"{kind} {key} not found")
        return copy.deepcopy(obj)

    async def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        metadata = obj.get("metadata") or {}
        if not metadata.get("name") and metadata.get("generateName"):
            obj = copy.deepcopy(obj)
            obj["metadata"]["name"] = f"{metadata['generateName']}{uuid.uuid4().hex[:5]}"
        key = object_key(obj)
        index = self._index(obj["apiVersion"], obj["kind"], key)
        if index in self._objects:
            raise ConflictError(f"{obj['kind']} {key} already exists")
        stored = copy.deepcopy(obj)
        metadata = stored.setdefault("metadata", {})
        metadata["namespace"] = key.namespace
        metadata["uid"] = str(uuid.uuid4())
        metadata["resourceVersion"] = self._next_version()
        metadata["generation"] = 1
        metadata.setdefault(
            "creationTimestamp", datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        )
        self._objects[index] = stored
        self.writes.append(WriteRecord("create", obj["kind"], key))
        return copy.deepcopy(stored)

    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        index, current = self._lookup(obj)
        stored = copy.deepcopy(obj)
        if "status" in current:
            stored["status"] = copy.deepcopy(current["status"])
        else:
            stored.pop("status", None)
        metadata = stored.setdefault("metadata", {})
        metadata["uid"] = current["metadata"]["uid"]
        metadata["resourceVersion"] = self._next_version()
        generation = current["metadata"].get("generation", 1)
        if stored.get("spec") != current.get("spec"):
            generation += 1
        metadata["generation"] = generation
        self._objects[index] = stored
        self.writes.append(WriteRecord("update", obj["kind"], object_key(obj)))
        return copy.deepcopy(stored)

    async def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        index, current = self._lookup(obj)
        stored = copy.deepcopy(current)
        stored["status"] = copy.deepcopy(obj.get("status") or {})
        stored["metadata"]["resourceVersion"] = self._next_version()
        self._objects[index] = stored
        self.writes.append(WriteRecord("update_status", obj["kind"], object_key(obj)))
        return copy.deepcopy(stored)

    # Helpers acting as other actors of the cluster (users, controllers).

    def put(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Insert or replace an object without recording a write."""
        key = object_key(obj)
        stored = copy.deepcopy(obj)
        metadata = stored.setdefault("metadata", {})
        metadata["namespace"] = key.namespace
        metadata.setdefault("uid", str(uuid.uuid4()))
        metadata.setdefault("generation", 1)
        metadata["resourceVersion"] = self._next_version()
        self._objects[self._index(obj["apiVersion"], obj["kind"], key)] = stored
        return copy.deepcopy(stored)

    def patch_status(self, api_version: str, kind: str, key: ObjectKey, **fields: Any) -> None:
        """Merge fields into the status of an object, like a controller would."""
        obj = self._objects[self._index(api_version, kind, key)]
        obj.setdefault("status", {}).update(fields)
        obj["metadata"]["resourceVersion"] = self._next_version()

    def mark_for_deletion(self, api_version: str, kind: str, key: ObjectKey) -> None:
        obj = self._objects[self._index(api_version, kind, key)]
        obj["metadata"]["deletionTimestamp"] = datetime.now(timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )
        obj["metadata"]["resourceVersion"] = self._next_version()

    def delete(self, api_version: str, kind: str, key: ObjectKey) -> None:
        self._objects.pop(self._index(api_version, kind, key), None)

    def list(self, api_version: str, kind: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(obj)
            for (av, k, _, _), obj in self._objects.items()
            if av == api_version and k == kind
        ]

    def clear_writes(self) -> None:
        self.writes.clear()
