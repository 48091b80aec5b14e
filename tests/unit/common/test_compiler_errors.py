"""Tests for the error taxonomy and user-facing error text."""

from common.errors import (
    ConnectivityError,
    ErrorCode,
    IntrospectionError,
    ManifestParseError,
    ManifestValidationError,
    SchemaCompilerError,
    error_code_group,
    parse_error_code,
    sanitize_error_message,
    sanitize_exception,
)


def test_errors_carry_canonical_codes():
    """Each error class maps to one error code."""
    assert ConnectivityError("x").error_code is ErrorCode.DB_CONNECTION_ERROR
    assert IntrospectionError("x").error_code is ErrorCode.INTROSPECTION_ERROR
    assert ManifestValidationError("x").error_code is ErrorCode.MANIFEST_VALIDATION_ERROR
    assert ManifestParseError("x").error_code is ErrorCode.MANIFEST_PARSE_ERROR


def test_parse_error_is_a_validation_error():
    """Parse failures can be handled as validation failures."""
    err = ManifestParseError("bad json", ["tables: not a list"])
    assert isinstance(err, ManifestValidationError)
    assert isinstance(err, SchemaCompilerError)
    assert err.problems == ["tables: not a list"]


def test_validation_error_defaults_problems_to_message():
    """Without explicit problems the message is the only problem."""
    assert ManifestValidationError("missing class").problems == ["missing class"]


def test_parse_error_code_defaults_to_internal():
    """Unknown codes coerce to INTERNAL_ERROR."""
    assert parse_error_code("db_connection_error") is ErrorCode.DB_CONNECTION_ERROR
    assert parse_error_code("nope") is ErrorCode.INTERNAL_ERROR
    assert error_code_group(ErrorCode.MANIFEST_PARSE_ERROR) == "MANIFEST"


def test_sanitize_error_message_redacts_connection_credentials():
    """Passwords in connection strings never reach the caller."""
    message = "Could not connect: server=db;uid=admin;pwd=hunter2;database=shop"
    safe = sanitize_error_message(message, error_code=ErrorCode.DB_CONNECTION_ERROR)
    assert "hunter2" not in safe
    assert "pwd=<redacted>" in safe


def test_sanitize_error_message_redacts_url_credentials():
    """URL user:password pairs are masked."""
    safe = sanitize_error_message("failed for mysql://admin:s3cret@db:3306/shop")
    assert "s3cret" not in safe
    assert "mysql://<user>:<password>@db:3306/shop" in safe


def test_sanitize_error_message_uses_fallback_for_blank_text():
    """Blank messages fall back to a generic sentence."""
    assert sanitize_error_message("   ", fallback="Compile failed.") == "Compile failed."


def test_sanitize_exception_hides_internal_details():
    """Unclassified exceptions get the internal-error template."""
    safe = sanitize_exception(RuntimeError("stack detail with password=abc"))
    assert safe == "An internal error occurred."


def test_sanitize_exception_keeps_classified_message():
    """Classified errors keep their (redacted) text."""
    err = ConnectivityError("Access denied for user 'app' (using password: YES)")
    assert sanitize_exception(err).startswith("Access denied for user 'app'")
