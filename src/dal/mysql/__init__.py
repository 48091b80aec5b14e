"""MySQL-backed schema introspection."""

from .connection import MysqlSchemaSource
from .descriptor import ConnectionDescriptor
from .procedure_parameters import parse_procedure_parameters
from .schema_introspector import MysqlSchemaIntrospector, introspect_schema

__all__ = [
    "ConnectionDescriptor",
    "MysqlSchemaIntrospector",
    "MysqlSchemaSource",
    "introspect_schema",
    "parse_procedure_parameters",
]
