"""Build job pipeline.

The pipeline keeps no state of its own: every pass replays the job list
from the first job, and the Job objects in the cluster are the only record
of progress.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence

import structlog

from worker_operator.core.errors import (
    BuildLookupError,
    BuildReportError,
    BuildSubmissionError,
    NotFoundError,
)
from worker_operator.domain.models import WorkerProcess
from worker_operator.events import EventReporter, MemoryEventSink
from worker_operator.resources.base import ComparisonContext
from worker_operator.resources.jobs import JobDescriptor
from worker_operator.resources.workerbuilder.job import WorkerProcessJobBuilder
from worker_operator.store.base import ObjectKey, ResourceStore

logger = structlog.get_logger()


class BuildState(StrEnum):
    submitted = "submitted"
    waiting = "waiting"
    complete = "complete"


@dataclass(frozen=True)
class BuildProgress:
    state: BuildState
    job: str | None = None

    @property
    def complete(self) -> bool:
        return self.state == BuildState.complete


class BuildPipeline:
    """Advances the ordered build jobs of a worker process by one pass."""

    def __init__(
        self,
        store: ResourceStore,
        comparisons: ComparisonContext,
        reporter: EventReporter | None = None,
    ) -> None:
        self.store = store
        self.comparisons = comparisons
        self.reporter = reporter or EventReporter(MemoryEventSink())

    async def advance(self, worker: WorkerProcess, jobs: Sequence[JobDescriptor]) -> BuildProgress:
        log = logger.bind(worker=str(worker.key))

        for job in jobs:
            if job.skip(worker):
                log.debug("build_job_skipped", job=job.name)
                continue

            log.info("build_job_checking", job=job.name)
            builder = WorkerProcessJobBuilder(worker, job.name, job.command)
            key = ObjectKey(namespace=worker.namespace, name=builder.name)

            try:
                live = await self.store.get("batch/v1", "Job", key)
            except NotFoundError:
                await self._submit(worker, builder)
                log.info("build_job_submitted", job=job.name, object=builder.name)
                return BuildProgress(BuildState.submitted, job.name)
            except Exception as exc:
                raise BuildLookupError(
                    f"can't get build job {builder.name}: {exc}", details={"job": job.name}
                ) from exc

            succeeded = (live.get("status") or {}).get("succeeded") or 0
            if succeeded < 1:
                log.info("build_job_waiting", job=job.name)
                return BuildProgress(BuildState.waiting, job.name)

            log.info("build_job_finished", job=job.name)
            try:
                job.report_success(worker)
            except Exception as exc:
                raise BuildReportError(
                    f"can't report success of build job {job.name}: {exc}",
                    details={"job": job.name},
                ) from exc

        return BuildProgress(BuildState.complete)

    async def _submit(self, worker: WorkerProcess, builder: WorkerProcessJobBuilder) -> None:
        try:
            await self.reporter.apply(self.store, builder, worker, self.comparisons)
        except Exception as exc:
            raise BuildSubmissionError(
                f"can't submit build job {builder.name}: {exc}", details={"job": builder.job_name}
            ) from exc
