from __future__ import annotations

from typing import Any

from worker_operator.domain.models import Cluster, WorkerProcess
from worker_operator.resources.meta import labels, merge_labels, object_name


def worker_configmap_name(worker: WorkerProcess) -> str:
    return object_name(worker.name, "worker-config")


class WorkerProcessConfigMapBuilder:
    """ConfigMap carrying the connection settings of the referenced cluster."""

    def __init__(self, instance: WorkerProcess, cluster: Cluster) -> None:
        self.instance = instance
        self.cluster = cluster

    def build(self) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": worker_configmap_name(self.instance),
                "namespace": self.instance.namespace,
                "labels": labels(self.instance, "worker"),
            },
            "data": self._data(),
        }

    def update(self, obj: dict[str, Any]) -> None:
        merge_labels(obj, labels(self.instance, "worker"))
        obj["data"] = self._data()

    def _data(self) -> dict[str, str]:
        data = {
            "TEMPORAL_HOST_URL": self.cluster.frontend_address(),
            "TEMPORAL_NAMESPACE": self.instance.spec.temporal_namespace or "default",
            "TEMPORAL_TLS": "true" if self.cluster.mtls_enabled() else "false",
        }
        if self.instance.spec.version:
            data["WORKER_VERSION"] = self.instance.spec.version
        return data
