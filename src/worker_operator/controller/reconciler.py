"""
Reconciliation loop for worker processes.

A pass loads the worker process, fills in defaults, runs the build pipeline
when building is enabled, resolves the referenced cluster and converges
every owned object. Nothing is remembered between passes: the state of the
cluster is read back on every call, and each pass ends with a
ReconcileResult telling the caller when to run again.
"""

from __future__ import annotations

from typing import Callable, List, Sequence

import structlog

from worker_operator.config.settings import Settings, get_settings
from worker_operator.controller.pipeline import BuildPipeline
from worker_operator.controller.results import ReconcileResult
from worker_operator.core.errors import (
    BuildLookupError,
    BuildReportError,
    BuildSubmissionError,
    ManifestError,
    NotFoundError,
    ReferenceResolutionError,
    StatusPersistError,
)
from worker_operator.domain import conditions
from worker_operator.domain.defaults import apply_defaults
from worker_operator.domain.models import (
    API_VERSION,
    CLUSTER_KIND,
    WORKER_PROCESS_KIND,
    Cluster,
    ConditionStatus,
    WorkerProcess,
    WorkerProcessStatus,
)
from worker_operator.events import EventReporter, EventSink
from worker_operator.resources.base import ComparisonContext, ReadinessReporter, ResourceBuilder
from worker_operator.resources.jobs import JobDescriptor, get_worker_process_jobs
from worker_operator.resources.workerbuilder import (
    BuilderScriptsConfigmapBuilder,
    WorkerProcessBuilder,
)
from worker_operator.status import is_worker_process_ready
from worker_operator.store.base import ObjectKey, ResourceStore

logger = structlog.get_logger()

BuilderProvider = Callable[[WorkerProcess, Cluster], List[ResourceBuilder]]
JobRegistry = Callable[[], Sequence[JobDescriptor]]
ReadinessPredicate = Callable[[WorkerProcess], bool]


def default_builder_provider(worker: WorkerProcess, cluster: Cluster) -> List[ResourceBuilder]:
    return WorkerProcessBuilder(worker, cluster).resource_builders()


class WorkerProcessReconciler:
    """Drives a worker process toward its desired state, one pass per call."""

    def __init__(
        self,
        store: ResourceStore,
        events: EventSink,
        settings: Settings | None = None,
        *,
        builder_provider: BuilderProvider = default_builder_provider,
        job_registry: JobRegistry = get_worker_process_jobs,
        readiness: ReadinessPredicate = is_worker_process_ready,
    ) -> None:
        self.store = store
        self.reporter = EventReporter(events)
        self.settings = settings or get_settings()
        self.builder_provider = builder_provider
        self.job_registry = job_registry
        self.readiness = readiness

    async def reconcile(self, key: ObjectKey) -> ReconcileResult:
        log = logger.bind(namespace=key.namespace, name=key.name)
        log.info("reconcile_started")

        try:
            raw = await self.store.get(API_VERSION, WORKER_PROCESS_KIND, key)
        except NotFoundError:
            log.info("worker_process_not_found")
            return ReconcileResult()
        except Exception as exc:
            log.error("worker_process_fetch_failed", error=str(exc))
            return ReconcileResult(error=exc)

        try:
            worker = WorkerProcess.from_object(raw)
        except ManifestError as exc:
            log.error("worker_process_invalid", error=exc.message)
            return ReconcileResult(error=exc)

        if worker.is_being_deleted():
            log.info("worker_process_deleting")
            return ReconcileResult()

        observed_status = worker.status.model_copy(deep=True)
        delay = self.settings.requeue_delay

        if apply_defaults(worker, self.settings):
            try:
                await self.store.update(worker.to_object())
            except Exception as exc:
                log.error("worker_process_defaults_failed", error=str(exc))
                return await self._handle_error(worker, observed_status, "", exc)
            # The spec update triggers a new pass with defaults in place.
            log.info("worker_process_defaults_applied")
            return ReconcileResult(follow_up_expected=True)

        comparisons = ComparisonContext()

        if worker.spec.builder_enabled():
            try:
                await self.reporter.apply(
                    self.store, BuilderScriptsConfigmapBuilder(worker), worker, comparisons
                )
            except Exception as exc:
                log.error("builder_scripts_reconcile_failed", error=str(exc))
                return await self._handle_error(
                    worker,
                    observed_status,
                    conditions.BUILDER_CONFIG_RECONCILIATION_FAILED_REASON,
                    exc,
                    delay,
                )

            pipeline = BuildPipeline(self.store, comparisons, self.reporter)
            try:
                progress = await pipeline.advance(worker, self.job_registry())
            except BuildSubmissionError as exc:
                # Building may legitimately not be able to start yet.
                log.warning("build_job_submission_failed", error=exc.message)
                return await self._handle_success(worker, observed_status, delay)
            except BuildLookupError as exc:
                return await self._handle_error(
                    worker, observed_status, conditions.BUILD_JOB_LOOKUP_FAILED_REASON, exc, delay
                )
            except BuildReportError as exc:
                return await self._handle_error(
                    worker, observed_status, conditions.BUILD_JOB_REPORT_FAILED_REASON, exc, delay
                )

            if not progress.complete:
                log.info("build_in_progress", job=progress.job, state=str(progress.state))
                return await self._handle_success(worker, observed_status, delay)

        try:
            cluster = await self._resolve_cluster(worker)
        except ReferenceResolutionError as exc:
            log.error("cluster_resolution_failed", error=exc.message)
            return await self._handle_error(
                worker, observed_status, conditions.RECONCILE_ERROR_REASON, exc
            )

        try:
            await self._reconcile_resources(worker, cluster, comparisons)
        except Exception as exc:
            log.error("resources_reconcile_failed", error=str(exc))
            return await self._handle_error(
                worker,
                observed_status,
                conditions.RESOURCES_RECONCILIATION_FAILED_REASON,
                exc,
                delay,
            )

        if self.readiness(worker):
            conditions.set_ready(worker, ConditionStatus.true, conditions.SERVICES_READY_REASON)
        else:
            conditions.set_ready(worker, ConditionStatus.false, conditions.SERVICES_NOT_READY_REASON)

        return await self._handle_success(worker, observed_status)

    async def _resolve_cluster(self, worker: WorkerProcess) -> Cluster:
        key = worker.cluster_key()
        try:
            raw = await self.store.get(API_VERSION, CLUSTER_KIND, key)
            return Cluster.from_object(raw)
        except Exception as exc:
            raise ReferenceResolutionError(
                f"can't resolve cluster {key}: {exc}", details={"cluster": str(key)}
            ) from exc

    async def _reconcile_resources(
        self, worker: WorkerProcess, cluster: Cluster, comparisons: ComparisonContext
    ) -> None:
        log = logger.bind(namespace=worker.namespace, name=worker.name)
        builders = self.builder_provider(worker, cluster)
        log.info("builders_retrieved", count=len(builders))

        reports: list[bool] = []
        for builder in builders:
            await self.reporter.apply(self.store, builder, worker, comparisons)

            if isinstance(builder, ReadinessReporter):
                reports.append(await builder.report_status(self.store))

        # Every reporter must be ready; no reporter at all means nothing to wait for.
        worker.status.ready = all(reports)
        log.info("worker_process_status_reported", ready=worker.status.ready, reporters=len(reports))

    async def _handle_success(
        self,
        worker: WorkerProcess,
        observed_status: WorkerProcessStatus,
        requeue_after: float = 0.0,
    ) -> ReconcileResult:
        conditions.set_reconcile_success(
            worker, ConditionStatus.true, conditions.RECONCILE_SUCCESS_REASON
        )
        return await self._finish(worker, observed_status, requeue_after)

    async def _handle_error(
        self,
        worker: WorkerProcess,
        observed_status: WorkerProcessStatus,
        reason: str,
        error: Exception,
        requeue_after: float = 0.0,
    ) -> ReconcileResult:
        conditions.set_reconcile_error(
            worker,
            ConditionStatus.true,
            reason or conditions.RECONCILE_ERROR_REASON,
            str(error),
        )
        return await self._finish(worker, observed_status, requeue_after)

    async def _finish(
        self,
        worker: WorkerProcess,
        observed_status: WorkerProcessStatus,
        requeue_after: float,
    ) -> ReconcileResult:
        try:
            await self._update_status(worker, observed_status)
        except StatusPersistError as exc:
            logger.error("worker_process_status_update_failed", worker=str(worker.key), error=exc.message)
            return ReconcileResult(requeue_after=requeue_after, error=exc)
        return ReconcileResult(requeue_after=requeue_after)

    async def _update_status(self, worker: WorkerProcess, observed_status: WorkerProcessStatus) -> None:
        if worker.status == observed_status:
            logger.debug("worker_process_status_unchanged", worker=str(worker.key))
            return
        try:
            await self.store.update_status(worker.to_object())
        except Exception as exc:
            raise StatusPersistError(
                f"can't update status of worker process {worker.key}: {exc}",
                details={"worker": str(worker.key)},
            ) from exc
