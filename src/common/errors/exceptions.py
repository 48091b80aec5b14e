"""Exception hierarchy for the schema-to-installer compiler."""

from typing import List, Optional

from common.errors.error_codes import ErrorCode


class SchemaCompilerError(Exception):
    """Base error carrying a canonical error code."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR


class ConnectivityError(SchemaCompilerError):
    """The schema source could not be reached, authenticated against, or timed out."""

    error_code = ErrorCode.DB_CONNECTION_ERROR


class IntrospectionError(SchemaCompilerError):
    """A catalog query failed after a connection was established."""

    error_code = ErrorCode.INTROSPECTION_ERROR


class ManifestValidationError(SchemaCompilerError):
    """A manifest is missing a field required for compilation."""

    error_code = ErrorCode.MANIFEST_VALIDATION_ERROR

    def __init__(self, message: str, problems: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.problems = list(problems or [message])


class ManifestParseError(ManifestValidationError):
    """A manifest document could not be decoded."""

    error_code = ErrorCode.MANIFEST_PARSE_ERROR
