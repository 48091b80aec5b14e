"""Canonical error codes for introspection and compilation flows."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Bounded error codes surfaced in command responses and logs."""

    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    INTROSPECTION_ERROR = "INTROSPECTION_ERROR"
    MANIFEST_VALIDATION_ERROR = "MANIFEST_VALIDATION_ERROR"
    MANIFEST_PARSE_ERROR = "MANIFEST_PARSE_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_GROUPS: dict[ErrorCode, str] = {
    ErrorCode.DB_CONNECTION_ERROR: "DB",
    ErrorCode.INTROSPECTION_ERROR: "DB",
    ErrorCode.MANIFEST_VALIDATION_ERROR: "MANIFEST",
    ErrorCode.MANIFEST_PARSE_ERROR: "MANIFEST",
    ErrorCode.INVALID_REQUEST: "VALIDATION",
    ErrorCode.INTERNAL_ERROR: "INTERNAL",
}


def parse_error_code(value: Any) -> ErrorCode:
    """Coerce a raw value into an ErrorCode, defaulting to INTERNAL_ERROR."""
    if isinstance(value, ErrorCode):
        return value
    try:
        return ErrorCode(str(value).strip().upper())
    except ValueError:
        return ErrorCode.INTERNAL_ERROR


def error_code_group(value: Any) -> str:
    """Return the coarse group name for an error code."""
    return _CODE_GROUPS[parse_error_code(value)]
