from __future__ import annotations

from typing import Any

from worker_operator.domain.models import WorkerProcess
from worker_operator.resources.jobs import BUILD_SCRIPTS_MOUNT_PATH, built_image_reference
from worker_operator.resources.meta import labels, merge_labels, object_name
from worker_operator.resources.workerbuilder.scripts_configmap import scripts_configmap_name

REGISTRY_CREDENTIALS_MOUNT_PATH = "/kaniko/.docker"


def job_object_name(worker: WorkerProcess, job_name: str) -> str:
    """Jobs are named after the builder version so that a new version gets a fresh job."""
    version = worker.spec.builder.version if worker.spec.builder else None
    return object_name(worker.name, job_name, version or "")


class WorkerProcessJobBuilder:
    """Renders the batch Job running one build pipeline step."""

    def __init__(self, instance: WorkerProcess, job_name: str, command: list[str]) -> None:
        self.instance = instance
        self.job_name = job_name
        self.command = command

    @property
    def name(self) -> str:
        return job_object_name(self.instance, self.job_name)

    def build(self) -> dict[str, Any]:
        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": {
                "name": self.name,
                "namespace": self.instance.namespace,
                "labels": labels(self.instance, "builder"),
            },
            "spec": self._job_spec(),
        }

    def update(self, obj: dict[str, Any]) -> None:
        # The pod template of a job is immutable once submitted.
        merge_labels(obj, labels(self.instance, "builder"))
        obj.setdefault("spec", self._job_spec())

    def _job_spec(self) -> dict[str, Any]:
        worker = self.instance
        builder = worker.spec.builder
        if builder is None or not builder.enabled:
            raise ValueError(f"building is disabled for worker process {worker.key}")
        if builder.git_repository is None:
            raise ValueError(f"worker process {worker.key} has no git repository to build from")

        branch = "main"
        if builder.git_repository.reference and builder.git_repository.reference.branch:
            branch = builder.git_repository.reference.branch

        volumes: list[dict[str, Any]] = [
            {
                "name": "scripts",
                "configMap": {"name": scripts_configmap_name(worker), "defaultMode": 0o555},
            }
        ]
        mounts: list[dict[str, Any]] = [{"name": "scripts", "mountPath": BUILD_SCRIPTS_MOUNT_PATH}]

        credentials = builder.build_registry.credentials_secret if builder.build_registry else None
        if credentials:
            volumes.append(
                {
                    "name": "registry-credentials",
                    "secret": {
                        "secretName": credentials,
                        "items": [{"key": ".dockerconfigjson", "path": "config.json"}],
                    },
                }
            )
            mounts.append({"name": "registry-credentials", "mountPath": REGISTRY_CREDENTIALS_MOUNT_PATH})

        container = {
            "name": self.job_name,
            "image": builder.image,
            "command": list(self.command),
            "env": [
                {"name": "GIT_REPO_URL", "value": builder.git_repository.url},
                {"name": "GIT_REPO_BRANCH", "value": branch},
                {"name": "BUILD_DIR", "value": builder.build_dir or "/"},
                {"name": "IMAGE_DESTINATION", "value": built_image_reference(worker)},
            ],
            "volumeMounts": mounts,
        }

        spec: dict[str, Any] = {
            "backoffLimit": 3,
            "template": {
                "metadata": {"labels": labels(worker, "builder")},
                "spec": {
                    "restartPolicy": "OnFailure",
                    "containers": [container],
                    "volumes": volumes,
                },
            },
        }
        if worker.spec.job_ttl_seconds_after_finished is not None:
            spec["ttlSecondsAfterFinished"] = worker.spec.job_ttl_seconds_after_finished
        return spec
