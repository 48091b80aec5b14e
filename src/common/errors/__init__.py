"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, error_code_group, parse_error_code
from common.errors.exceptions import (
    ConnectivityError,
    IntrospectionError,
    ManifestParseError,
    ManifestValidationError,
    SchemaCompilerError,
)
from common.errors.sanitization import sanitize_error_message, sanitize_exception

__all__ = [
    "ConnectivityError",
    "ErrorCode",
    "IntrospectionError",
    "ManifestParseError",
    "ManifestValidationError",
    "SchemaCompilerError",
    "error_code_group",
    "parse_error_code",
    "sanitize_error_message",
    "sanitize_exception",
]
