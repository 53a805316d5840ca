"""
CLI commands: one-off reconciliation, offline rendering and job listing.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import yaml
from rich.table import Table

from worker_operator.cli.ux import console, error, info, success, warning
from worker_operator.config.settings import Settings, get_settings
from worker_operator.controller.reconciler import WorkerProcessReconciler
from worker_operator.controller.results import ReconcileResult
from worker_operator.core.errors import (
    ExitCode,
    InvalidArgumentError,
    ManifestError,
    NotFoundError,
    ReconcileFailedError,
    main_with_error_handling,
)
from worker_operator.domain.conditions import RECONCILE_ERROR_CONDITION, find_condition
from worker_operator.domain.defaults import apply_defaults
from worker_operator.domain.models import API_VERSION, WORKER_PROCESS_KIND, Cluster, WorkerProcess
from worker_operator.events import KubernetesEventSink
from worker_operator.resources.jobs import get_worker_process_jobs
from worker_operator.resources.workerbuilder import WorkerProcessBuilder
from worker_operator.store.base import ObjectKey, ResourceStore
from worker_operator.store.kubernetes import KubernetesResourceStore


def _load_manifest(path: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Can't read manifest {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} is not a mapping")
    return data


def _print_status(store_obj: dict[str, Any]) -> WorkerProcess:
    worker = WorkerProcess.from_object(store_obj)
    table = Table(title=f"{worker.key}", show_lines=False)
    table.add_column("Condition")
    table.add_column("Status")
    table.add_column("Reason")
    table.add_column("Message", overflow="fold")
    for condition in worker.status.conditions:
        table.add_row(condition.type, str(condition.status), condition.reason, condition.message)
    console.print(table)
    return worker


async def _reconcile_once(
    store: ResourceStore, key: ObjectKey, settings: Settings
) -> tuple[ReconcileResult, dict[str, Any] | None]:
    events = KubernetesEventSink(store, component=settings.event_component)
    reconciler = WorkerProcessReconciler(store, events, settings)
    result = await reconciler.reconcile(key)
    try:
        current = await store.get(API_VERSION, WORKER_PROCESS_KIND, key)
    except NotFoundError:
        current = None
    return result, current


@main_with_error_handling(report=error)
def reconcile_command(target: str, settings: Settings | None = None) -> int:
    """Run a single reconciliation pass for NAMESPACE/NAME."""
    settings = settings or get_settings()
    try:
        key = ObjectKey.parse(target)
    except ValueError as e:
        raise InvalidArgumentError(str(e), details={"target": target}) from e
    store = KubernetesResourceStore(
        kubeconfig=settings.kubeconfig,
        context=settings.kube_context,
        timeout=settings.request_timeout,
    )

    result, current = asyncio.run(_reconcile_once(store, key, settings))

    if current is not None:
        worker = _print_status(current)
        failure = find_condition(worker.status.conditions, RECONCILE_ERROR_CONDITION)
        if failure is not None and result.error is None:
            raise ReconcileFailedError.from_condition(str(key), failure.reason, failure.message)
    if result.error is not None:
        raise ReconcileFailedError.from_error(str(key), result.error)
    if result.follow_up_expected:
        info(f"Defaults applied to {key}; run again to continue")
    elif result.requeue_after:
        warning(f"{key} not converged yet, retry in {result.requeue_after:g}s")
    else:
        success(f"Reconciled {key}")
    return ExitCode.SUCCESS


@main_with_error_handling(report=error)
def render_command(worker_path: str, cluster_path: str, settings: Settings | None = None) -> int:
    """Print the objects a worker process would own, without touching any cluster."""
    settings = settings or get_settings()
    worker = WorkerProcess.from_object(_load_manifest(worker_path))
    cluster = Cluster.from_object(_load_manifest(cluster_path))
    apply_defaults(worker, settings)

    documents = []
    for builder in WorkerProcessBuilder(worker, cluster).resource_builders():
        obj = builder.build()
        builder.update(obj)
        documents.append(obj)

    console.print(
        yaml.safe_dump_all(documents, sort_keys=False),
        end="",
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )
    return ExitCode.SUCCESS


def jobs_command() -> int:
    """List the registered build jobs in execution order."""
    table = Table(title="Build jobs")
    table.add_column("#")
    table.add_column("Name")
    table.add_column("Command")
    for index, job in enumerate(get_worker_process_jobs(), 1):
        table.add_row(str(index), job.name, " ".join(job.command))
    console.print(table)
    return ExitCode.SUCCESS
