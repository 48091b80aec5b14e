"""Manifest entity models.

The manifest is the prefix-stripped, language-neutral description of a
schema's tables, views, stored procedures and triggers. Field names are
snake_case in Python and camelCase on the wire; reads accept any casing.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from common.sanitization.sql_definitions import (
    sanitize_routine_definition,
    sanitize_view_definition,
)

# A single seed cell: string, number, boolean, or SQL NULL.
SeedValue = Optional[Union[bool, int, float, str]]
SeedRow = Dict[str, SeedValue]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ManifestModel(BaseModel):
    """Base for manifest entities: camelCase aliases, case-insensitive field matching."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=False)

    @model_validator(mode="before")
    @classmethod
    def _match_field_names_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup: Dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            lookup[name.lower()] = alias
            lookup[alias.lower()] = alias
        normalized: Dict[Any, Any] = {}
        for key, value in data.items():
            target = lookup.get(key.lower()) if isinstance(key, str) else None
            normalized[target or key] = value
        return normalized


class ColumnDef(ManifestModel):
    """Definition of a table column; ``type`` and ``default`` are raw dialect text."""

    name: str = ""
    type: str = ""
    nullable: bool = False
    auto_increment: bool = False
    primary_key: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None


class IndexDef(ManifestModel):
    """An index and its ordered member columns."""

    name: str = ""
    columns: List[str] = Field(default_factory=list)
    unique: bool = False


class ConstraintDef(ManifestModel):
    """A table constraint as reported by the catalog."""

    name: str = ""
    type: str = ""
    columns: List[str] = Field(default_factory=list)


class ForeignKeyReference(ManifestModel):
    """Referenced side of a foreign key (table name is prefix-free)."""

    table: str = ""
    column: str = ""


class ForeignKeyDef(ManifestModel):
    """A single-column foreign key mapping with its referential rules."""

    name: str = ""
    column: str = ""
    references: ForeignKeyReference = Field(default_factory=ForeignKeyReference)
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


class TableDef(ManifestModel):
    """A base table. ``skip`` keeps it in the manifest but out of install/uninstall."""

    name: str = ""
    name_original: str = ""
    full_name: str = ""
    comment: Optional[str] = None
    row_limit: int = 0
    skip: bool = False
    columns: List[ColumnDef] = Field(default_factory=list)
    indexes: List[IndexDef] = Field(default_factory=list)
    constraints: List[ConstraintDef] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyDef] = Field(default_factory=list)
    seed_data: List[SeedRow] = Field(default_factory=list)

    @property
    def primary_key_columns(self) -> List[str]:
        """Primary-key column names in declaration order."""
        return [col.name for col in self.columns if col.primary_key]


class ViewDef(ManifestModel):
    """A view with its captured ``CREATE VIEW`` text."""

    name: str = ""
    name_original: str = ""
    full_name: str = ""
    definition: str = ""
    comment: Optional[str] = None

    @property
    def sanitized_definition(self) -> str:
        """Definition with ALGORITHM/DEFINER/SQL SECURITY removed; recomputed on access."""
        return sanitize_view_definition(self.definition)


class ProcedureParameter(ManifestModel):
    """A stored procedure parameter; ``type`` is raw (e.g. ``VARCHAR(255)``)."""

    mode: str = "IN"
    name: str = ""
    type: str = ""


class StoredProcedureDef(ManifestModel):
    """A stored procedure with its captured ``CREATE PROCEDURE`` text."""

    name: str = ""
    name_original: str = ""
    full_name: str = ""
    parameters: List[ProcedureParameter] = Field(default_factory=list)
    definition: str = ""
    comment: Optional[str] = None

    @property
    def sanitized_definition(self) -> str:
        return sanitize_routine_definition(self.definition)


class TriggerDef(ManifestModel):
    """A trigger; ``event`` is ``"<TIMING> <EVENT>"`` and ``table`` is prefix-free."""

    name: str = ""
    name_original: str = ""
    full_name: str = ""
    event: str = ""
    table: str = ""
    definition: str = ""
    comment: Optional[str] = None

    @property
    def sanitized_definition(self) -> str:
        return sanitize_routine_definition(self.definition)


class Manifest(ManifestModel):
    """Root aggregate of a captured schema."""

    database: str = ""
    generated_at: str = Field(default_factory=_utc_now_iso)
    default_prefix: str = "wp_"
    installer_class: str = "MyPluginInstaller"
    include_seed_data: bool = False
    tables: List[TableDef] = Field(default_factory=list)
    views: List[ViewDef] = Field(default_factory=list)
    stored_procedures: List[StoredProcedureDef] = Field(default_factory=list)
    triggers: List[TriggerDef] = Field(default_factory=list)

    def object_counts(self) -> Dict[str, int]:
        """Count of each object kind, as reported back to callers."""
        return {
            "tables": len(self.tables),
            "views": len(self.views),
            "procedures": len(self.stored_procedures),
            "triggers": len(self.triggers),
        }
