from __future__ import annotations

from typing import Any

from worker_operator.domain.models import WorkerProcess
from worker_operator.resources.meta import labels, merge_labels, object_name

BUILD_SCRIPT = """#!/busybox/sh
set -eu

/kaniko/executor \\
  --context "git://${GIT_REPO_URL#https://}#refs/heads/${GIT_REPO_BRANCH}" \\
  --context-sub-path "${BUILD_DIR}" \\
  --destination "${IMAGE_DESTINATION}"
"""


def scripts_configmap_name(worker: WorkerProcess) -> str:
    return object_name(worker.name, "builder-scripts")


class BuilderScriptsConfigmapBuilder:
    """ConfigMap holding the scripts mounted into build jobs."""

    def __init__(self, instance: WorkerProcess) -> None:
        self.instance = instance

    def build(self) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": scripts_configmap_name(self.instance),
                "namespace": self.instance.namespace,
                "labels": labels(self.instance, "builder"),
            },
            "data": self._data(),
        }

    def update(self, obj: dict[str, Any]) -> None:
        merge_labels(obj, labels(self.instance, "builder"))
        obj["data"] = self._data()

    def _data(self) -> dict[str, str]:
        return {"build.sh": BUILD_SCRIPT}
