from __future__ import annotations

from typing import Any

import structlog

from worker_operator.core.errors import ApplyError, NotFoundError
from worker_operator.domain.models import Cluster, WorkerProcess
from worker_operator.resources.meta import labels, merge_labels, object_name, selector_labels
from worker_operator.resources.workerbuilder.configmap import worker_configmap_name
from worker_operator.store.base import ObjectKey, ResourceStore

logger = structlog.get_logger()

WORKER_CONTAINER_NAME = "worker"
MTLS_MOUNT_PATH = "/etc/temporal/tls"


def mtls_secret_name(worker: WorkerProcess) -> str:
    return object_name(worker.name, "mtls-certificate")


class WorkerProcessDeploymentBuilder:
    """Deployment running the worker process.

    Compares only the fields it owns, so defaults injected by the API server
    do not count as drift, and reports readiness from the live rollout.
    """

    def __init__(self, instance: WorkerProcess, cluster: Cluster) -> None:
        self.instance = instance
        self.cluster = cluster

    @property
    def name(self) -> str:
        return object_name(self.instance.name)

    def build(self) -> dict[str, Any]:
        image = self.instance.image_reference()
        if not image:
            raise ApplyError(
                "Worker process has no image to deploy",
                details={"worker": str(self.instance.key)},
            )
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": self.name,
                "namespace": self.instance.namespace,
                "labels": labels(self.instance, "worker"),
            },
            "spec": {
                "replicas": self.instance.spec.replicas,
                "selector": {"matchLabels": selector_labels(self.instance, "worker")},
                "template": {
                    "metadata": {"labels": labels(self.instance, "worker")},
                    "spec": {"containers": [{"name": WORKER_CONTAINER_NAME, "image": image}]},
                },
            },
        }

    def update(self, obj: dict[str, Any]) -> None:
        worker = self.instance
        merge_labels(obj, labels(worker, "worker"))

        spec = obj.setdefault("spec", {})
        spec["replicas"] = worker.spec.replicas
        # The selector of a deployment is immutable.
        spec.setdefault("selector", {"matchLabels": selector_labels(worker, "worker")})

        template = spec.setdefault("template", {})
        merge_labels(template, labels(worker, "worker"))
        pod_spec = template.setdefault("spec", {})

        containers = pod_spec.setdefault("containers", [])
        container = next((c for c in containers if c.get("name") == WORKER_CONTAINER_NAME), None)
        if container is None:
            container = {"name": WORKER_CONTAINER_NAME}
            containers.append(container)
        container["image"] = worker.image_reference()
        if worker.spec.pull_policy:
            container["imagePullPolicy"] = worker.spec.pull_policy
        container["envFrom"] = [{"configMapRef": {"name": worker_configmap_name(worker)}}]

        if worker.spec.image_pull_secrets:
            pod_spec["imagePullSecrets"] = [dict(s) for s in worker.spec.image_pull_secrets]
        else:
            pod_spec.pop("imagePullSecrets", None)

        if self.cluster.mtls_enabled():
            volume = {"name": "mtls", "secret": {"secretName": mtls_secret_name(worker)}}
            mount = {"name": "mtls", "mountPath": MTLS_MOUNT_PATH, "readOnly": True}
            pod_spec["volumes"] = _replace_named(pod_spec.get("volumes") or [], volume)
            container["volumeMounts"] = _replace_named(container.get("volumeMounts") or [], mount)
        else:
            _drop_named(pod_spec, "volumes", "mtls")
            _drop_named(container, "volumeMounts", "mtls")

    def equal(self, a: dict[str, Any], b: dict[str, Any]) -> bool:
        return _owned_fields(a) == _owned_fields(b)

    async def report_status(self, store: ResourceStore) -> bool:
        key = ObjectKey(namespace=self.instance.namespace, name=self.name)
        try:
            live = await store.get("apps/v1", "Deployment", key)
        except NotFoundError:
            return False

        desired = (live.get("spec") or {}).get("replicas", 1)
        status = live.get("status") or {}
        generation = (live.get("metadata") or {}).get("generation")
        if generation is not None and status.get("observedGeneration", 0) < generation:
            logger.debug("deployment_rollout_pending", key=str(key))
            return False
        return (
            status.get("readyReplicas", 0) >= desired
            and status.get("updatedReplicas", 0) >= desired
        )


def _replace_named(items: list[dict[str, Any]], item: dict[str, Any]) -> list[dict[str, Any]]:
    kept = [existing for existing in items if existing.get("name") != item["name"]]
    kept.append(item)
    return kept


def _drop_named(parent: dict[str, Any], field: str, name: str) -> None:
    items = [item for item in parent.get(field) or [] if item.get("name") != name]
    if items:
        parent[field] = items
    else:
        parent.pop(field, None)


def _owned_fields(obj: dict[str, Any]) -> dict[str, Any]:
    spec = obj.get("spec") or {}
    template = spec.get("template") or {}
    pod_spec = template.get("spec") or {}
    containers = {
        c.get("name"): {
            "image": c.get("image"),
            "imagePullPolicy": c.get("imagePullPolicy"),
            "envFrom": c.get("envFrom"),
            "volumeMounts": c.get("volumeMounts"),
        }
        for c in pod_spec.get("containers") or []
    }
    return {
        "labels": (obj.get("metadata") or {}).get("labels"),
        "replicas": spec.get("replicas"),
        "templateLabels": (template.get("metadata") or {}).get("labels"),
        "containers": containers,
        "imagePullSecrets": pod_spec.get("imagePullSecrets"),
        "volumes": pod_spec.get("volumes"),
    }
