"""
Unified error handling for deploymeta.

Reconciliation failures fall into four classes:

- PreconditionFailed: caller contract violation, detected locally before any
  remote call (identifier already set on create, immutable field changed,
  invalid enumerated value, operation not supported by the kind).
- NotFoundError: the remote instance does not exist. Read and Delete turn this
  into a state transition; Import and Create surface it.
- TransientError: communication failure where the effect is unknown.
- FatalError: any other definite failure.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Remote/reconciliation error
- 12: Precondition failed (caller contract violation)
- 13: Transient remote error (safe to retry the whole operation)
- 127: Unknown/internal error
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
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    REMOTE_ERROR = 11
    PRECONDITION_FAILED = 12
    TRANSIENT_ERROR = 13
    UNKNOWN_ERROR = 127


class DeploymetaError(Exception):
    """Base exception for deploymeta errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(DeploymetaError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ReconcileError(DeploymetaError):
    """Raised when reconciling a single resource instance fails."""

    exit_code = ExitCode.REMOTE_ERROR

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        operation: str,
        identifier: str | None = None,
        remote_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        context: dict[str, Any] = {"kind": kind, "operation": operation}
        if identifier:
            context["identifier"] = identifier
        if remote_message:
            context["remote_message"] = remote_message
        context.update(details or {})
        super().__init__(message, context)
        self.kind = kind
        self.operation = operation
        self.identifier = identifier
        self.remote_message = remote_message


class PreconditionFailed(ReconcileError):
    """Caller contract violation. Never reaches the network."""

    exit_code = ExitCode.PRECONDITION_FAILED


class ImmutableFieldChanged(PreconditionFailed):
    """Raised when an update tries to change a field fixed at creation."""

    def __init__(self, field: str, *, kind: str, identifier: str | None = None):
        super().__init__(
            f"Field '{field}' of {kind} cannot be changed after creation",
            kind=kind,
            operation="update",
            identifier=identifier,
            details={"field": field},
        )
        self.field = field


class InvalidFieldValue(PreconditionFailed):
    """Raised when a per-kind validator rejects a desired record."""

    def __init__(self, message: str, *, field: str, kind: str, operation: str):
        super().__init__(message, kind=kind, operation=operation, details={"field": field})
        self.field = field


class UnsupportedOperation(PreconditionFailed):
    """Raised when a kind does not support the requested operation."""


class NotFoundError(ReconcileError):
    """Raised when the remote instance does not exist and absence is an error."""


class TransientError(ReconcileError):
    """Raised for effect-unknown communication failures."""

    exit_code = ExitCode.TRANSIENT_ERROR


class FatalError(ReconcileError):
    """Raised for definite, non-retryable failures."""


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - DeploymetaError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except DeploymetaError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                print(format_error_message(e), file=sys.stderr)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: DeploymetaError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
