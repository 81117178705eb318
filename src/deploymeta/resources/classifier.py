"""Classify remote adapter failures by their structured error code."""

from __future__ import annotations

from enum import Enum

from deploymeta.resources.adapter import ErrorCode, RemoteError


class ErrorClass(Enum):
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    FATAL = "fatal"


# Codes where the request may or may not have taken effect.
TRANSIENT_CODES = frozenset(
    {
        ErrorCode.UNAVAILABLE,
        ErrorCode.DEADLINE_EXCEEDED,
        ErrorCode.CANCELED,
    }
)


def error_code_of(exc: BaseException) -> ErrorCode:
    if isinstance(exc, RemoteError):
        return exc.code
    return ErrorCode.UNKNOWN


def classify(exc: BaseException) -> ErrorClass:
    code = error_code_of(exc)
    if code is ErrorCode.NOT_FOUND:
        return ErrorClass.NOT_FOUND
    if code in TRANSIENT_CODES:
        return ErrorClass.TRANSIENT
    return ErrorClass.FATAL
