"""Sanitization helpers for user-facing error surfaces."""

from __future__ import annotations

from typing import Any

from common.errors.error_codes import ErrorCode, parse_error_code
from common.sanitization.text import redact_sensitive_info

MAX_PUBLIC_ERROR_LENGTH = 2048

_SAFE_ERROR_TEMPLATES: dict[ErrorCode, str] = {
    ErrorCode.INTERNAL_ERROR: "An internal error occurred.",
}


def sanitize_error_message(
    message: Any,
    *,
    error_code: Any = None,
    fallback: str = "Request failed.",
) -> str:
    """Return error text safe to hand back to a caller (credentials redacted)."""
    if error_code is not None:
        template = _SAFE_ERROR_TEMPLATES.get(parse_error_code(error_code))
        if template:
            return template

    raw_text = "" if message is None else str(message)
    safe_text = redact_sensitive_info(raw_text.strip())
    if not safe_text:
        safe_text = (fallback or "Request failed.").strip()
    return safe_text[:MAX_PUBLIC_ERROR_LENGTH]


def sanitize_exception(exc: Exception, *, fallback: str = "Request failed.") -> str:
    """Sanitize an exception, using its error code when it carries one."""
    return sanitize_error_message(
        str(exc),
        error_code=getattr(exc, "error_code", ErrorCode.INTERNAL_ERROR),
        fallback=fallback,
    )
