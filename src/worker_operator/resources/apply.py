"""Create-or-update convergence of a single owned object."""

from __future__ import annotations

import copy
from enum import StrEnum
from typing import Any

import structlog

from worker_operator.core.errors import ApplyError, NotFoundError
from worker_operator.domain.models import WorkerProcess
from worker_operator.resources.base import Comparer, ComparisonContext, ResourceBuilder
from worker_operator.store.base import ResourceStore, object_key

logger = structlog.get_logger()


class OperationResult(StrEnum):
    created = "created"
    updated = "updated"
    deleted = "deleted"
    unchanged = "unchanged"


class ObjectWriteError(ApplyError):
    """A create or update of an owned object was rejected by the store."""

    def __init__(self, operation: OperationResult, obj: dict[str, Any], cause: Exception) -> None:
        name = (obj.get("metadata") or {}).get("name", "<unknown>")
        kind = obj.get("kind", "<unknown>")
        super().__init__(
            f"failed to write {kind} {name}: {cause}",
            details={"operation": str(operation), "kind": kind, "object": name},
        )
        self.operation = operation
        self.obj = obj


def set_owner_reference(obj: dict[str, Any], owner: WorkerProcess) -> None:
    """Make ``owner`` the controller of ``obj``, replacing any previous controller entry."""
    metadata = obj.setdefault("metadata", {})
    references = [
        ref
        for ref in metadata.get("ownerReferences") or []
        if not ref.get("controller") and ref.get("uid") != owner.metadata.uid
    ]
    references.append(owner.owner_reference())
    metadata["ownerReferences"] = references


async def create_or_update(
    store: ResourceStore,
    builder: ResourceBuilder,
    owner: WorkerProcess,
    comparisons: ComparisonContext,
) -> tuple[OperationResult, dict[str, Any]]:
    """
    Converge the live object of ``builder`` toward its desired shape.

    Returns the operation performed and the object as last seen or written.
    Builder and lookup errors propagate unchanged; rejected writes are raised
    as ObjectWriteError carrying the attempted operation.
    """
    desired = builder.build()
    api_version = desired["apiVersion"]
    kind = desired["kind"]
    key = object_key(desired)

    if isinstance(builder, Comparer):
        comparisons.register(kind, builder.equal)

    try:
        live = await store.get(api_version, kind, key)
    except NotFoundError:
        obj = copy.deepcopy(desired)
        builder.update(obj)
        set_owner_reference(obj, owner)
        try:
            created = await store.create(obj)
        except Exception as exc:
            raise ObjectWriteError(OperationResult.created, obj, exc) from exc
        logger.debug("object_created", kind=kind, key=str(key))
        return OperationResult.created, created

    mutated = copy.deepcopy(live)
    builder.update(mutated)
    if comparisons.equal(kind, live, mutated):
        return OperationResult.unchanged, live

    try:
        updated = await store.update(mutated)
    except Exception as exc:
        raise ObjectWriteError(OperationResult.updated, mutated, exc) from exc
    logger.debug("object_updated", kind=kind, key=str(key))
    return OperationResult.updated, updated
