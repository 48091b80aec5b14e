"""Manifest models and their JSON interchange format."""

from manifest.models import (
    ColumnDef,
    ConstraintDef,
    ForeignKeyDef,
    ForeignKeyReference,
    IndexDef,
    Manifest,
    ProcedureParameter,
    SeedRow,
    SeedValue,
    StoredProcedureDef,
    TableDef,
    TriggerDef,
    ViewDef,
)
from manifest.serialization import (
    deserialize_manifest,
    load_manifest,
    manifest_to_dict,
    save_manifest,
    serialize_manifest,
)

__all__ = [
    "ColumnDef",
    "ConstraintDef",
    "ForeignKeyDef",
    "ForeignKeyReference",
    "IndexDef",
    "Manifest",
    "ProcedureParameter",
    "SeedRow",
    "SeedValue",
    "StoredProcedureDef",
    "TableDef",
    "TriggerDef",
    "ViewDef",
    "deserialize_manifest",
    "load_manifest",
    "manifest_to_dict",
    "save_manifest",
    "serialize_manifest",
]
