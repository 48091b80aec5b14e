"""Command dispatch: one typed request in, one ``CommandResponse`` out."""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from common.config.settings import CompilerSettings
from common.errors import ErrorCode, SchemaCompilerError, sanitize_error_message, sanitize_exception
from compiler_service.requests import (
    CommandEnvelope,
    CommandResponse,
    CompileRequest,
    IntrospectRequest,
    ValidateManifestRequest,
)
from dal.mysql.schema_introspector import introspect_schema
from installer.compiler import compile_manifest, validate_manifest
from installer.php_installer import DEFAULT_CORE_TABLES
from manifest.serialization import manifest_to_dict

logger = logging.getLogger(__name__)


def parse_envelope(data: Union[str, bytes, Dict[str, Any]]) -> CommandEnvelope:
    """Validate raw input into a command envelope; unknown kinds are rejected."""
    if isinstance(data, (str, bytes)):
        return CommandEnvelope.model_validate_json(data)
    return CommandEnvelope.model_validate(data)


async def _introspect(request: IntrospectRequest, settings: CompilerSettings) -> Dict[str, Any]:
    prefix = request.prefix or settings.table_prefix
    manifest = await introspect_schema(
        request.descriptor(),
        prefix,
        include_seed_data=request.include_seed_data,
        installer_class=request.installer_class or settings.installer_class,
        settings=settings,
    )
    return {
        "manifest": manifest_to_dict(manifest),
        "counts": manifest.object_counts(),
    }


def _compile(request: CompileRequest) -> Dict[str, Any]:
    core_tables = (
        DEFAULT_CORE_TABLES if request.core_tables is None else frozenset(request.core_tables)
    )
    compiled = compile_manifest(
        request.manifest,
        installer_class_override=request.installer_class_override,
        core_tables=core_tables,
    )
    return {
        "className": compiled.class_name,
        "slug": compiled.slug,
        "installerClassSource": compiled.installer_class_source,
        "installerStubSource": compiled.installer_stub_source,
        "mainModuleSource": compiled.main_module_source,
        "counts": compiled.counts,
        "files": [output.model_dump() for output in compiled.files],
    }


def _validate(request: ValidateManifestRequest) -> Dict[str, Any]:
    class_name = validate_manifest(
        request.manifest,
        installer_class_override=request.installer_class_override,
        selected_tables=request.selected_tables,
    )
    return {"valid": True, "className": class_name, "counts": request.manifest.object_counts()}


def _failure(
    request_id: Optional[str], error: str, error_code: ErrorCode
) -> CommandResponse:
    return CommandResponse(
        success=False,
        error=error,
        error_code=error_code.value,
        request_id=request_id,
    )


async def dispatch(
    envelope: CommandEnvelope, settings: Optional[CompilerSettings] = None
) -> CommandResponse:
    """Run one command. Failures come back as sanitized error responses."""
    settings = settings or CompilerSettings.from_env()
    request = envelope.request
    request_id = envelope.request_id
    logger.info("Dispatching %s request %s", request.kind, request_id)

    try:
        if isinstance(request, IntrospectRequest):
            payload = await _introspect(request, settings)
        elif isinstance(request, CompileRequest):
            payload = _compile(request)
        elif isinstance(request, ValidateManifestRequest):
            payload = _validate(request)
        else:
            raise TypeError(f"Unsupported request type: {type(request).__name__}")
    except SchemaCompilerError as exc:
        logger.warning("%s request %s failed: %s", request.kind, request_id, exc.error_code.value)
        return _failure(request_id, sanitize_exception(exc), exc.error_code)
    except ValueError as exc:
        # malformed connection strings and other caller input
        logger.warning("%s request %s rejected: %s", request.kind, request_id, exc)
        return _failure(
            request_id,
            sanitize_error_message(exc, error_code=ErrorCode.INVALID_REQUEST),
            ErrorCode.INVALID_REQUEST,
        )
    except Exception:
        logger.error("%s request %s failed", request.kind, request_id, exc_info=True)
        return _failure(
            request_id,
            sanitize_error_message(None, error_code=ErrorCode.INTERNAL_ERROR),
            ErrorCode.INTERNAL_ERROR,
        )

    return CommandResponse(success=True, payload=payload, request_id=request_id)


async def dispatch_raw(
    data: Union[str, bytes, Dict[str, Any]], settings: Optional[CompilerSettings] = None
) -> CommandResponse:
    """Validate and dispatch raw input, answering invalid requests with an error response."""
    try:
        envelope = parse_envelope(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raw_id = data.get("request_id") if isinstance(data, dict) else None
        request_id = str(raw_id) if raw_id is not None else None
        return _failure(
            request_id,
            sanitize_error_message(f"Invalid request: {problems}"),
            ErrorCode.INVALID_REQUEST,
        )
    return await dispatch(envelope, settings)
