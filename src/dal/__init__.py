"""Data access for live schema introspection."""

from dal.mysql import ConnectionDescriptor, MysqlSchemaIntrospector, MysqlSchemaSource

__all__ = ["ConnectionDescriptor", "MysqlSchemaIntrospector", "MysqlSchemaSource"]
