"""
Event recording for worker processes.

Every create/update/delete performed on behalf of a worker process is
logged and recorded as an event on the worker process. Recording is best
effort: a failing sink is logged and never interrupts reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Protocol

import structlog

from worker_operator.domain.models import WorkerProcess
from worker_operator.resources.apply import ObjectWriteError, OperationResult, create_or_update
from worker_operator.resources.base import ComparisonContext, ResourceBuilder
from worker_operator.store.base import ResourceStore

logger = structlog.get_logger()


class EventType(StrEnum):
    normal = "Normal"
    warning = "Warning"


class EventSink(Protocol):
    async def record(
        self, subject: WorkerProcess, event_type: EventType, reason: str, message: str
    ) -> None:
        ...


@dataclass(frozen=True, slots=True)
class RecordedEvent:
    subject: str
    event_type: EventType
    reason: str
    message: str


@dataclass
class MemoryEventSink:
    """Keeps events in memory."""

    events: list[RecordedEvent] = field(default_factory=list)

    async def record(
        self, subject: WorkerProcess, event_type: EventType, reason: str, message: str
    ) -> None:
        self.events.append(RecordedEvent(str(subject.key), event_type, reason, message))

    def reasons(self) -> list[str]:
        return [event.reason for event in self.events]


@dataclass
class KubernetesEventSink:
    """Writes core/v1 Events referencing the worker process."""

    store: ResourceStore
    component: str = "worker-operator"

    async def record(
        self, subject: WorkerProcess, event_type: EventType, reason: str, message: str
    ) -> None:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        await self.store.create(
            {
                "apiVersion": "v1",
                "kind": "Event",
                "metadata": {
                    "generateName": f"{subject.name}.",
                    "namespace": subject.namespace,
                },
                "involvedObject": {
                    "apiVersion": subject.api_version,
                    "kind": subject.kind,
                    "name": subject.name,
                    "namespace": subject.namespace,
                    "uid": subject.metadata.uid,
                    "resourceVersion": subject.metadata.resource_version,
                },
                "type": str(event_type),
                "reason": reason,
                "message": message,
                "source": {"component": self.component},
                "firstTimestamp": timestamp,
                "lastTimestamp": timestamp,
                "count": 1,
            }
        )


_ACTIONS: dict[OperationResult, tuple[str, str]] = {
    OperationResult.created: ("create", "ResourceCreate"),
    OperationResult.updated: ("update", "ResourceUpdate"),
    OperationResult.deleted: ("delete", "ResourceDelete"),
}


def _describe(obj: dict[str, Any]) -> tuple[str, str]:
    name = (obj.get("metadata") or {}).get("name", "<unknown>")
    return name, obj.get("kind", "<unknown>")


class EventReporter:
    """Logs and records the outcome of each apply operation."""

    def __init__(self, sink: EventSink) -> None:
        self.sink = sink

    async def apply(
        self,
        store: ResourceStore,
        builder: ResourceBuilder,
        worker: WorkerProcess,
        comparisons: ComparisonContext,
    ) -> tuple[OperationResult, dict[str, Any]]:
        """Converge the object of ``builder`` and record the outcome, failed writes included."""
        try:
            result, obj = await create_or_update(store, builder, worker, comparisons)
        except ObjectWriteError as exc:
            await self.record_operation_result(worker, exc.obj, exc.operation, exc)
            raise
        await self.record_operation_result(worker, obj, result)
        return result, obj

    async def record_operation_result(
        self,
        worker: WorkerProcess,
        obj: dict[str, Any],
        result: OperationResult,
        error: Exception | None = None,
    ) -> None:
        action = _ACTIONS.get(result)
        if action is None:
            return
        verb, reason = action
        name, kind = _describe(obj)
        log = logger.bind(worker=str(worker.key), kind=kind, object=name)

        if error is None:
            message = f"{verb}d resource {name} of type {kind}"
            log.info("resource_operation_succeeded", action=verb)
            await self._emit(worker, EventType.normal, f"{reason}Success", message)
        else:
            message = f"failed to {verb} resource {name} of type {kind}"
            log.error("resource_operation_failed", action=verb, error=str(error))
            await self._emit(worker, EventType.warning, f"{reason}Error", message)

    async def _emit(self, worker: WorkerProcess, event_type: EventType, reason: str, message: str) -> None:
        try:
            await self.sink.record(worker, event_type, reason, message)
        except Exception as exc:
            logger.warning(
                "event_record_failed",
                worker=str(worker.key),
                reason=reason,
                error=str(exc),
            )
