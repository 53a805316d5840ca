"""Result type returned by a reconciliation pass."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReconcileResult:
    """Scheduling instruction for the caller of a reconciliation.

    ``requeue_after`` of 0 leaves re-scheduling to the caller's default
    policy. ``follow_up_expected`` marks passes that wrote the worker process
    itself and rely on the resulting change notification to run again.
    """

    requeue_after: float = 0.0
    error: Exception | None = None
    follow_up_expected: bool = False

    @property
    def success(self) -> bool:
        return self.error is None
