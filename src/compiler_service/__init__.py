"""Command surface for the compiler: typed requests, dispatch and CLI."""

from compiler_service.dispatcher import dispatch, dispatch_raw, parse_envelope
from compiler_service.requests import (
    CommandEnvelope,
    CommandRequest,
    CommandResponse,
    CompileRequest,
    IntrospectRequest,
    ValidateManifestRequest,
)

__all__ = [
    "CommandEnvelope",
    "CommandRequest",
    "CommandResponse",
    "CompileRequest",
    "IntrospectRequest",
    "ValidateManifestRequest",
    "dispatch",
    "dispatch_raw",
    "parse_envelope",
]
