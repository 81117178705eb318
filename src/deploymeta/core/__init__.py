"""Core modules for deploymeta - centralized error definitions."""

from deploymeta.core.errors import (
    ConfigurationError,
    DeploymetaError,
    ExitCode,
    FatalError,
    ImmutableFieldChanged,
    InvalidFieldValue,
    NotFoundError,
    PreconditionFailed,
    ReconcileError,
    TransientError,
    UnsupportedOperation,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "DeploymetaError",
    "ConfigurationError",
    "ReconcileError",
    "PreconditionFailed",
    "ImmutableFieldChanged",
    "InvalidFieldValue",
    "UnsupportedOperation",
    "NotFoundError",
    "TransientError",
    "FatalError",
    "main_with_error_handling",
    "format_error_message",
]
