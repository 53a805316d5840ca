"""Tests for event recording."""

import pytest

from factories import worker_manifest
from worker_operator.domain.models import WorkerProcess
from worker_operator.events import (
    EventReporter,
    EventType,
    KubernetesEventSink,
    MemoryEventSink,
)
from worker_operator.resources.apply import OperationResult

CONFIGMAP = {
    "apiVersion": "v1",
    "kind": "ConfigMap",
    "metadata": {"name": "orders-worker-worker-config", "namespace": "apps"},
}


@pytest.fixture
def worker():
    manifest = worker_manifest()
    manifest["metadata"]["uid"] = "7c1d"
    return WorkerProcess.from_object(manifest)


class FailingSink:
    async def record(self, subject, event_type, reason, message):
        raise RuntimeError("events API unavailable")


class TestEventReporter:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "result,reason,message",
        [
            (OperationResult.created, "ResourceCreateSuccess", "created resource"),
            (OperationResult.updated, "ResourceUpdateSuccess", "updated resource"),
            (OperationResult.deleted, "ResourceDeleteSuccess", "deleted resource"),
        ],
    )
    async def test_success_events(self, worker, result, reason, message):
        sink = MemoryEventSink()

        await EventReporter(sink).record_operation_result(worker, CONFIGMAP, result)

        [event] = sink.events
        assert event.event_type == EventType.normal
        assert event.reason == reason
        assert event.message == f"{message} orders-worker-worker-config of type ConfigMap"
        assert event.subject == "apps/orders-worker"

    @pytest.mark.asyncio
    async def test_failure_event_is_a_warning(self, worker):
        sink = MemoryEventSink()

        await EventReporter(sink).record_operation_result(
            worker, CONFIGMAP, OperationResult.updated, RuntimeError("denied")
        )

        [event] = sink.events
        assert event.event_type == EventType.warning
        assert event.reason == "ResourceUpdateError"
        assert event.message == "failed to update resource orders-worker-worker-config of type ConfigMap"

    @pytest.mark.asyncio
    async def test_unchanged_emits_nothing(self, worker):
        sink = MemoryEventSink()

        await EventReporter(sink).record_operation_result(worker, CONFIGMAP, OperationResult.unchanged)

        assert sink.events == []

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_raise(self, worker):
        await EventReporter(FailingSink()).record_operation_result(
            worker, CONFIGMAP, OperationResult.created
        )


class TestKubernetesEventSink:
    @pytest.mark.asyncio
    async def test_creates_event_referencing_worker(self, store, worker):
        sink = KubernetesEventSink(store, component="worker-operator")

        await sink.record(worker, EventType.normal, "ResourceCreateSuccess", "created resource x")

        [event] = store.list("v1", "Event")
        assert event["metadata"]["name"].startswith("orders-worker.")
        assert event["metadata"]["namespace"] == "apps"
        assert event["involvedObject"]["kind"] == "TemporalWorkerProcess"
        assert event["involvedObject"]["uid"] == "7c1d"
        assert event["type"] == "Normal"
        assert event["reason"] == "ResourceCreateSuccess"
        assert event["source"] == {"component": "worker-operator"}

    @pytest.mark.asyncio
    async def test_each_event_gets_its_own_object(self, store, worker):
        sink = KubernetesEventSink(store)

        await sink.record(worker, EventType.normal, "A", "first")
        await sink.record(worker, EventType.warning, "B", "second")

        assert len(store.list("v1", "Event")) == 2
