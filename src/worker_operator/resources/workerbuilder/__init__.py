"""Builders for the objects owned by a worker process."""

from __future__ import annotations

from typing import List

from worker_operator.domain.models import Cluster, WorkerProcess
from worker_operator.resources.base import ResourceBuilder
from worker_operator.resources.workerbuilder.configmap import WorkerProcessConfigMapBuilder
from worker_operator.resources.workerbuilder.deployment import WorkerProcessDeploymentBuilder
from worker_operator.resources.workerbuilder.job import WorkerProcessJobBuilder
from worker_operator.resources.workerbuilder.scripts_configmap import (
    BuilderScriptsConfigmapBuilder,
)


class WorkerProcessBuilder:
    """Builder-set provider for a worker process and its cluster."""

    def __init__(self, instance: WorkerProcess, cluster: Cluster) -> None:
        self.instance = instance
        self.cluster = cluster

    def resource_builders(self) -> List[ResourceBuilder]:
        """Return the builders in apply order."""
        return [
            WorkerProcessConfigMapBuilder(self.instance, self.cluster),
            WorkerProcessDeploymentBuilder(self.instance, self.cluster),
        ]


__all__ = [
    "BuilderScriptsConfigmapBuilder",
    "WorkerProcessBuilder",
    "WorkerProcessConfigMapBuilder",
    "WorkerProcessDeploymentBuilder",
    "WorkerProcessJobBuilder",
]
