"""Text sanitization: credential redaction and SQL definition normalization."""

from common.sanitization.sql_definitions import (
    PREFIX_EXPRESSION,
    inject_prefix_token,
    is_current_timestamp_literal,
    normalize_current_timestamp_default,
    remove_definer_clauses,
    resolve_prefix_token,
    sanitize_routine_definition,
    sanitize_view_definition,
    unwrap_versioned_comments,
)
from common.sanitization.text import redact_sensitive_info

__all__ = [
    "PREFIX_EXPRESSION",
    "inject_prefix_token",
    "is_current_timestamp_literal",
    "normalize_current_timestamp_default",
    "redact_sensitive_info",
    "remove_definer_clauses",
    "resolve_prefix_token",
    "sanitize_routine_definition",
    "sanitize_view_definition",
    "unwrap_versioned_comments",
]
