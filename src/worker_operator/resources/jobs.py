"""Build jobs run before a worker process is deployed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

from worker_operator.domain.models import WorkerProcess

BUILD_SCRIPTS_MOUNT_PATH = "/etc/scripts"


@dataclass(frozen=True)
class JobDescriptor:
    """One step of the build pipeline.

    ``skip`` decides from the worker process alone whether the step is
    already satisfied; ``report_success`` records the outcome of a finished
    job on the worker process.
    """

    name: str
    command: List[str] = field(default_factory=list)
    skip: Callable[[WorkerProcess], bool] = lambda worker: False
    report_success: Callable[[WorkerProcess], None] = lambda worker: None


def built_image_reference(worker: WorkerProcess) -> str:
    builder = worker.spec.builder
    if builder is None or builder.build_registry is None or not builder.version:
        raise ValueError(f"worker process {worker.key} has no build registry or builder version")
    return f"{builder.build_registry.repository}:{builder.version}"


def _skip_build(worker: WorkerProcess) -> bool:
    if not worker.spec.builder_enabled():
        return True
    builder = worker.spec.builder
    return bool(worker.status.built_image) and worker.status.version == builder.version


def _report_build_success(worker: WorkerProcess) -> None:
    worker.status.built_image = built_image_reference(worker)
    worker.status.version = worker.spec.builder.version


def get_worker_process_jobs() -> List[JobDescriptor]:
    """Return the ordered build pipeline."""
    return [
        JobDescriptor(
            name="build-worker-process",
            command=[f"{BUILD_SCRIPTS_MOUNT_PATH}/build.sh"],
            skip=_skip_build,
            report_success=_report_build_success,
        ),
    ]
