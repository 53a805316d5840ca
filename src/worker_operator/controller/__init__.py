"""Reconciliation of worker processes."""

from worker_operator.controller.reconciler import WorkerProcessReconciler
from worker_operator.controller.results import ReconcileResult

__all__ = ["ReconcileResult", "WorkerProcessReconciler"]
