"""
Error hierarchy for the worker operator.

Reconciliation never treats an error as fatal: every exception raised below
ends up either as a status condition on the worker process or as the error
of a ReconcileResult, and the invocation is retried later.

The CLI maps the same hierarchy onto exit codes:
- 0: Success
- 1: Reconcile finished with an error condition
- 10: Configuration error
- 11: Resource store error (cluster API failure)
- 12: Invalid manifest or argument
- 127: Unknown/internal error
- 130: Interrupted
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Exit codes for CLI commands."""

    SUCCESS = 0
    RECONCILE_ERROR = 1
    CONFIG_ERROR = 10
    STORE_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127
    INTERRUPTED = 130


class OperatorError(Exception):
    """Base exception for operator errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(OperatorError):
    """Raised when the operator cannot load its configuration or kubeconfig."""

    exit_code = ExitCode.CONFIG_ERROR


class ManifestError(OperatorError):
    """Raised when a resource manifest cannot be parsed into a model."""

    exit_code = ExitCode.VALIDATION_ERROR


class InvalidArgumentError(OperatorError):
    """Raised when a CLI argument is malformed."""

    exit_code = ExitCode.VALIDATION_ERROR


class StoreError(OperatorError):
    """Raised when the resource store (cluster API) fails."""

    exit_code = ExitCode.STORE_ERROR


class NotFoundError(StoreError):
    """Raised when an object does not exist in the resource store."""


class ConflictError(StoreError):
    """Raised when a write is rejected because the object changed or already exists."""


class ReferenceResolutionError(OperatorError):
    """Raised when the cluster reference of a worker process cannot be resolved."""

    exit_code = ExitCode.RECONCILE_ERROR


class BuildSubmissionError(OperatorError):
    """Raised when a build job cannot be rendered or submitted."""

    exit_code = ExitCode.RECONCILE_ERROR


class BuildLookupError(OperatorError):
    """Raised when the live object of a build job cannot be fetched."""

    exit_code = ExitCode.RECONCILE_ERROR


class BuildReportError(OperatorError):
    """Raised when a finished build job cannot report its result."""

    exit_code = ExitCode.RECONCILE_ERROR


class ApplyError(OperatorError):
    """Raised when an owned resource cannot be rendered or written for a worker process."""

    exit_code = ExitCode.RECONCILE_ERROR


class StatusPersistError(OperatorError):
    """Raised when the worker process status cannot be written back."""

    exit_code = ExitCode.STORE_ERROR


class ReconcileFailedError(OperatorError):
    """Raised by the CLI when a reconciliation pass ended in an error."""

    exit_code = ExitCode.RECONCILE_ERROR

    @classmethod
    def from_error(cls, target: str, error: BaseException) -> ReconcileFailedError:
        return cls(f"Reconcile of {target} failed: {describe_error(error)}", details={"worker": target})

    @classmethod
    def from_condition(cls, target: str, reason: str, message: str) -> ReconcileFailedError:
        return cls(
            f"Reconcile of {target} failed: {reason}: {message}",
            details={"worker": target, "reason": reason},
        )


def describe_error(error: BaseException) -> str:
    """One-line description of an error for users; operator errors include their details."""
    if not isinstance(error, OperatorError):
        return f"{type(error).__name__}: {error}"
    if not error.details:
        return error.message
    detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
    return f"{error.message} ({detail_str})"


F = TypeVar("F", bound=Callable[..., int])
Reporter = Callable[[str], None]


def main_with_error_handling(
    *,
    report: Reporter | None = None,
    show_traceback: bool = False,
) -> Callable[[F], F]:
    """
    Turn the exceptions of a CLI command into exit codes.

    Operator errors exit with their own code, an interrupt with 130 and
    anything else with UNKNOWN_ERROR. ``report`` gets the user-facing line;
    the structured details only go to the log.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except OperatorError as e:
                logger.error(
                    "command_failed",
                    command=func.__name__,
                    error_type=type(e).__name__,
                    exit_code=int(e.exit_code),
                    **e.details,
                )
                code = e.exit_code
                failure: BaseException = e
            except KeyboardInterrupt:
                logger.info("command_interrupted", command=func.__name__)
                return ExitCode.INTERRUPTED
            except Exception as e:
                logger.exception("command_crashed", command=func.__name__)
                code = ExitCode.UNKNOWN_ERROR
                failure = e

            if report is not None:
                report(describe_error(failure))
            if show_traceback or getattr(failure, "show_traceback", False):
                traceback.print_exception(failure, file=sys.stderr)
            return code

        return wrapper  # type: ignore[return-value]

    return decorator
