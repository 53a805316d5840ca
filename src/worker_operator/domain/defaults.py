from __future__ import annotations

from worker_operator.config.settings import Settings
from worker_operator.domain.models import WorkerProcess


def apply_defaults(worker: WorkerProcess, settings: Settings) -> bool:
    """Fill unset spec fields in place. Returns True when anything changed."""
    spec = worker.spec
    changed = False

    if spec.replicas is None:
        spec.replicas = settings.default_replicas
        changed = True
    if spec.pull_policy is None:
        spec.pull_policy = settings.default_pull_policy
        changed = True
    if spec.job_ttl_seconds_after_finished is None:
        spec.job_ttl_seconds_after_finished = settings.default_job_ttl_seconds
        changed = True
    if spec.temporal_namespace is None:
        spec.temporal_namespace = settings.default_temporal_namespace
        changed = True

    builder = spec.builder
    if builder is not None and builder.enabled:
        if builder.image is None:
            builder.image = settings.default_builder_image
            changed = True
        if builder.build_dir is None:
            builder.build_dir = settings.default_build_dir
            changed = True
        if builder.version is None and spec.version is not None:
            builder.version = spec.version
            changed = True

    return changed
