"""Typed request/response envelopes for compiler commands."""

import uuid
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from dal.mysql.descriptor import ConnectionDescriptor
from manifest.models import Manifest


class IntrospectRequest(BaseModel):
    """Capture a live schema into a manifest."""

    kind: Literal["introspect"] = "introspect"
    connection: Union[ConnectionDescriptor, str] = Field(
        ..., description="Connection string, mysql:// URL or structured descriptor"
    )
    prefix: Optional[str] = Field(
        None, description="Table prefix to capture; falls back to TABLE_PREFIX"
    )
    include_seed_data: bool = False
    installer_class: Optional[str] = Field(
        None, description="Installer class name recorded in the manifest"
    )

    def descriptor(self) -> ConnectionDescriptor:
        if isinstance(self.connection, ConnectionDescriptor):
            return self.connection
        return ConnectionDescriptor.parse(self.connection)


class CompileRequest(BaseModel):
    """Compile a manifest into installer artifacts."""

    kind: Literal["compile"] = "compile"
    manifest: Manifest
    installer_class_override: Optional[str] = None
    core_tables: Optional[List[str]] = Field(
        None, description="Prefix-free host-owned table names; defaults to the WordPress core set"
    )


class ValidateManifestRequest(BaseModel):
    """Check a manifest without compiling it."""

    kind: Literal["validate_manifest"] = "validate_manifest"
    manifest: Manifest
    installer_class_override: Optional[str] = None
    selected_tables: List[str] = Field(default_factory=list)


CommandRequest = Annotated[
    Union[IntrospectRequest, CompileRequest, ValidateManifestRequest],
    Field(discriminator="kind"),
]


def _new_request_id() -> str:
    return uuid.uuid4().hex


class CommandEnvelope(BaseModel):
    """A command plus the id used to correlate its response."""

    request_id: str = Field(default_factory=_new_request_id)
    request: CommandRequest


class CommandResponse(BaseModel):
    """Outcome of one command; ``payload`` is set on success, ``error`` on failure."""

    success: bool
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    request_id: Optional[str] = None
