from __future__ import annotations

from worker_operator.domain.models import WorkerProcess


def is_worker_process_ready(worker: WorkerProcess) -> bool:
    """Whether the worker process is ready to serve.

    ``status.ready`` is recomputed from the readiness reporters on every
    materialization pass, so it is the single input here; the conditions are
    derived from this predicate, not the other way around.
    """
    return worker.status.ready
