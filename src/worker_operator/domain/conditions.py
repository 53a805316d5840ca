"""
Status conditions of a worker process.

Conditions follow the Kubernetes convention: one entry per type, and the
``last_transition_time`` only moves when the status of that type flips.
``ReconcileSuccess`` and ``ReconcileError`` are the two values of a single
reconcile axis, so setting one removes the other.
"""

from __future__ import annotations

from datetime import datetime, timezone

from worker_operator.domain.models import Condition, ConditionStatus, WorkerProcess

RECONCILE_SUCCESS_CONDITION = "ReconcileSuccess"
RECONCILE_ERROR_CONDITION = "ReconcileError"
READY_CONDITION = "Ready"

RECONCILE_SUCCESS_REASON = "ReconcileSuccess"
RECONCILE_ERROR_REASON = "ReconcileError"
RESOURCES_RECONCILIATION_FAILED_REASON = "ResourcesReconciliationFailed"
BUILDER_CONFIG_RECONCILIATION_FAILED_REASON = "BuilderConfigReconciliationFailed"
BUILD_JOB_LOOKUP_FAILED_REASON = "BuildJobLookupFailed"
BUILD_JOB_REPORT_FAILED_REASON = "BuildJobReportFailed"
SERVICES_READY_REASON = "ServicesReady"
SERVICES_NOT_READY_REASON = "ServicesNotReady"


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def find_condition(conditions: list[Condition], condition_type: str) -> Condition | None:
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def set_condition(
    conditions: list[Condition],
    condition_type: str,
    status: ConditionStatus,
    reason: str,
    message: str = "",
    *,
    observed_generation: int | None = None,
    now: datetime | None = None,
) -> Condition:
    """Insert or update the condition of the given type in place."""
    existing = find_condition(conditions, condition_type)
    if existing is None:
        condition = Condition(
            type=condition_type,
            status=status,
            reason=reason,
            message=message,
            last_transition_time=now or _now(),
            observed_generation=observed_generation,
        )
        conditions.append(condition)
        return condition

    if existing.status != status:
        existing.status = status
        existing.last_transition_time = now or _now()
    existing.reason = reason
    existing.message = message
    existing.observed_generation = observed_generation
    return existing


def remove_condition(conditions: list[Condition], condition_type: str) -> None:
    conditions[:] = [c for c in conditions if c.type != condition_type]


def set_reconcile_success(
    worker: WorkerProcess, status: ConditionStatus, reason: str, message: str = ""
) -> None:
    conditions = worker.status.conditions
    remove_condition(conditions, RECONCILE_ERROR_CONDITION)
    set_condition(
        conditions,
        RECONCILE_SUCCESS_CONDITION,
        status,
        reason,
        message,
        observed_generation=worker.metadata.generation,
    )


def set_reconcile_error(
    worker: WorkerProcess, status: ConditionStatus, reason: str, message: str = ""
) -> None:
    conditions = worker.status.conditions
    remove_condition(conditions, RECONCILE_SUCCESS_CONDITION)
    set_condition(
        conditions,
        RECONCILE_ERROR_CONDITION,
        status,
        reason,
        message,
        observed_generation=worker.metadata.generation,
    )


def set_ready(worker: WorkerProcess, status: ConditionStatus, reason: str, message: str = "") -> None:
    set_condition(
        worker.status.conditions,
        READY_CONDITION,
        status,
        reason,
        message,
        observed_generation=worker.metadata.generation,
    )
