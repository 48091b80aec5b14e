import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional

from common.config.settings import DEFAULT_SEED_ROW_LIMIT, CompilerSettings
from dal.mysql.connection import MysqlSchemaSource
from dal.mysql.descriptor import ConnectionDescriptor
from dal.mysql.procedure_parameters import parse_procedure_parameters
from dal.mysql.seed_values import to_seed_row
from manifest.models import (
    ColumnDef,
    ConstraintDef,
    ForeignKeyDef,
    ForeignKeyReference,
    IndexDef,
    Manifest,
    SeedRow,
    StoredProcedureDef,
    TableDef,
    TriggerDef,
    ViewDef,
)

logger = logging.getLogger(__name__)

_CONSTRAINTS_QUERY = """
    SELECT
        tc.CONSTRAINT_NAME AS constraint_name,
        tc.CONSTRAINT_TYPE AS constraint_type,
        kcu.COLUMN_NAME AS column_name
    FROM information_schema.TABLE_CONSTRAINTS tc
    LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu
      ON kcu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
     AND kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
     AND kcu.TABLE_NAME = tc.TABLE_NAME
    WHERE tc.TABLE_SCHEMA = DATABASE()
    AND tc.TABLE_NAME = %s
    ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
"""

_FOREIGN_KEYS_QUERY = """
    SELECT
        rc.CONSTRAINT_NAME AS constraint_name,
        kcu.COLUMN_NAME AS column_name,
        kcu.REFERENCED_TABLE_NAME AS referenced_table_name,
        kcu.REFERENCED_COLUMN_NAME AS referenced_column_name,
        rc.UPDATE_RULE AS update_rule,
        rc.DELETE_RULE AS delete_rule
    FROM information_schema.REFERENTIAL_CONSTRAINTS rc
    JOIN information_schema.KEY_COLUMN_USAGE kcu
      ON rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
     AND rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
     AND rc.TABLE_NAME = kcu.TABLE_NAME
    WHERE rc.CONSTRAINT_SCHEMA = DATABASE()
    AND rc.TABLE_NAME = %s
    ORDER BY rc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
"""


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"


def strip_prefix(name: str, prefix: str) -> str:
    """Remove ``prefix`` from the start of ``name`` when present."""
    if prefix and name.startswith(prefix):
        return name[len(prefix) :]
    return name


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


async def _gather_or_cancel(*operations: Awaitable) -> List[Any]:
    """Run operations concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(op) for op in operations]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class MysqlSchemaIntrospector:
    """Reads tables, views, procedures and triggers from MySQL into manifest models.

    Queries for different tables (and the sub-object queries of one table)
    run concurrently, bounded by ``max_concurrency``; every query takes its
    own pooled connection.
    """

    def __init__(
        self,
        source: MysqlSchemaSource,
        max_concurrency: int = 4,
        seed_row_limit: int = DEFAULT_SEED_ROW_LIMIT,
    ) -> None:
        self._source = source
        self._limit = asyncio.Semaphore(max(1, max_concurrency))
        self._seed_row_limit = seed_row_limit

    async def _fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async with self._limit:
            async with self._source.get_connection() as conn:
                return await conn.fetch(sql, *params)

    async def _fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        async with self._limit:
            async with self._source.get_connection() as conn:
                return await conn.fetchrow(sql, *params)

    async def get_database_name(self) -> str:
        """Name of the connected database."""
        row = await self._fetchrow("SELECT DATABASE() AS database_name")
        return _text(row.get("database_name")) if row else ""

    async def _list_full_tables(self, table_type: str) -> List[str]:
        rows = await self._fetch(f"SHOW FULL TABLES WHERE Table_type = '{table_type}'")
        # First column is "Tables_in_<database>", so read it positionally.
        return [_text(next(iter(row.values()))) for row in rows if row]

    # ------------------------------------------------------------------ tables

    async def list_tables(
        self,
        prefix: str,
        include_seed_data: bool = False,
        row_limit: Optional[int] = None,
    ) -> List[TableDef]:
        """Base tables whose name starts with ``prefix``, fully resolved."""
        names = [name for name in await self._list_full_tables("BASE TABLE") if name.startswith(prefix)]
        limit = self._seed_row_limit if row_limit is None else row_limit
        tables = await _gather_or_cancel(
            *(self._build_table(name, prefix, include_seed_data, limit) for name in names)
        )
        logger.info("Introspected %d tables with prefix '%s'", len(tables), prefix)
        return tables

    async def _build_table(
        self, original_name: str, prefix: str, include_seed_data: bool, row_limit: int
    ) -> TableDef:
        operations = [
            self.list_columns(original_name),
            self.list_indexes(original_name),
            self.list_constraints(original_name),
            self.list_foreign_keys(original_name, prefix),
        ]
        if include_seed_data:
            operations.append(self.list_seed_rows(original_name, row_limit))
        results = await _gather_or_cancel(*operations)

        table = TableDef(
            name=strip_prefix(original_name, prefix),
            name_original=original_name,
            full_name=original_name,
            comment=None,
            columns=results[0],
            indexes=results[1],
            constraints=results[2],
            foreign_keys=results[3],
        )
        if include_seed_data:
            table.row_limit = row_limit
            table.seed_data = results[4]
        return table

    async def list_columns(self, table_name: str) -> List[ColumnDef]:
        rows = await self._fetch(f"SHOW FULL COLUMNS FROM {quote_identifier(table_name)}")
        return [
            ColumnDef(
                name=_text(row.get("Field")),
                type=_text(row.get("Type")),
                nullable=_text(row.get("Null")) == "YES",
                auto_increment="auto_increment" in _text(row.get("Extra")).lower(),
                primary_key=_text(row.get("Key")) == "PRI",
                default=_optional_text(row.get("Default")),
                comment=_optional_text(row.get("Comment")),
            )
            for row in rows
        ]

    async def list_indexes(self, table_name: str) -> List[IndexDef]:
        """Indexes grouped from per-column ``SHOW INDEX`` rows, in first-seen order."""
        rows = await self._fetch(f"SHOW INDEX FROM {quote_identifier(table_name)}")
        groups: Dict[str, IndexDef] = {}
        for row in rows:
            key_name = _text(row.get("Key_name"))
            index = groups.get(key_name)
            if index is None:
                index = IndexDef(name=key_name, unique=_text(row.get("Non_unique")) == "0")
                groups[key_name] = index
            index.columns.append(_text(row.get("Column_name")))
        return list(groups.values())

    async def list_constraints(self, table_name: str) -> List[ConstraintDef]:
        rows = await self._fetch(_CONSTRAINTS_QUERY, table_name)
        groups: Dict[str, ConstraintDef] = {}
        for row in rows:
            name = _text(row.get("constraint_name"))
            constraint = groups.get(name)
            if constraint is None:
                constraint = ConstraintDef(name=name, type=_text(row.get("constraint_type")))
                groups[name] = constraint
            if row.get("column_name") is not None:
                constraint.columns.append(_text(row.get("column_name")))
        return list(groups.values())

    async def list_foreign_keys(self, table_name: str, prefix: str = "") -> List[ForeignKeyDef]:
        rows = await self._fetch(_FOREIGN_KEYS_QUERY, table_name)
        return [
            ForeignKeyDef(
                name=_text(row.get("constraint_name")),
                column=_text(row.get("column_name")),
                references=ForeignKeyReference(
                    table=strip_prefix(_text(row.get("referenced_table_name")), prefix),
                    column=_text(row.get("referenced_column_name")),
                ),
                on_update=_optional_text(row.get("update_rule")),
                on_delete=_optional_text(row.get("delete_rule")),
            )
            for row in rows
        ]

    async def list_seed_rows(self, table_name: str, limit: int) -> List[SeedRow]:
        """Up to ``limit`` rows (all rows when ``limit <= 0``) as column -> cell maps."""
        sql = f"SELECT * FROM {quote_identifier(table_name)}"
        if limit > 0:
            rows = await self._fetch(f"{sql} LIMIT %s", limit)
        else:
            rows = await self._fetch(sql)
        return [to_seed_row(row) for row in rows]

    # ------------------------------------------------------------ routines

    async def list_views(self, prefix: str) -> List[ViewDef]:
        names = [name for name in await self._list_full_tables("VIEW") if name.startswith(prefix)]
        definitions = await _gather_or_cancel(
            *(self._show_create("VIEW", name, "Create View") for name in names)
        )
        return [
            ViewDef(
                name=strip_prefix(name, prefix),
                name_original=name,
                full_name=name,
                definition=definition,
            )
            for name, definition in zip(names, definitions)
        ]

    async def list_stored_procedures(self, prefix: str) -> List[StoredProcedureDef]:
        rows = await self._fetch("SHOW PROCEDURE STATUS WHERE Db = DATABASE()")
        names = [_text(row.get("Name")) for row in rows]
        names = [name for name in names if name.startswith(prefix)]
        definitions = await _gather_or_cancel(
            *(self._show_create("PROCEDURE", name, "Create Procedure") for name in names)
        )
        return [
            StoredProcedureDef(
                name=strip_prefix(name, prefix),
                name_original=name,
                full_name=name,
                definition=definition,
                parameters=parse_procedure_parameters(definition),
            )
            for name, definition in zip(names, definitions)
        ]

    async def list_triggers(self, prefix: str) -> List[TriggerDef]:
        """Triggers attached to tables whose name carries ``prefix``."""
        rows = await self._fetch("SHOW TRIGGERS")
        triggers = []
        for row in rows:
            table_name = _text(row.get("Table"))
            if not table_name.startswith(prefix):
                continue
            trigger_name = _text(row.get("Trigger"))
            triggers.append(
                TriggerDef(
                    name=strip_prefix(trigger_name, prefix),
                    name_original=trigger_name,
                    full_name=trigger_name,
                    event=f"{_text(row.get('Timing'))} {_text(row.get('Event'))}".strip(),
                    table=strip_prefix(table_name, prefix),
                    definition=_text(row.get("Statement")),
                )
            )
        return triggers

    async def _show_create(self, kind: str, name: str, column: str) -> str:
        row = await self._fetchrow(f"SHOW CREATE {kind} {quote_identifier(name)}")
        if not row:
            return ""
        return _text(row.get(column))

    # ------------------------------------------------------------ manifest

    async def generate_manifest(
        self,
        prefix: str,
        include_seed_data: bool = False,
        installer_class: Optional[str] = None,
    ) -> Manifest:
        """Introspect everything carrying ``prefix`` into a Manifest."""
        database, tables, views, procedures, triggers = await _gather_or_cancel(
            self.get_database_name(),
            self.list_tables(prefix, include_seed_data=include_seed_data),
            self.list_views(prefix),
            self.list_stored_procedures(prefix),
            self.list_triggers(prefix),
        )
        manifest = Manifest(
            database=database,
            default_prefix=prefix,
            include_seed_data=include_seed_data,
            tables=tables,
            views=views,
            stored_procedures=procedures,
            triggers=triggers,
        )
        if installer_class:
            manifest.installer_class = installer_class
        logger.info(
            "Manifest for '%s' built: %s",
            database,
            ", ".join(f"{count} {kind}" for kind, count in manifest.object_counts().items()),
        )
        return manifest


async def introspect_schema(
    descriptor: ConnectionDescriptor,
    prefix: str,
    include_seed_data: bool = False,
    installer_class: Optional[str] = None,
    settings: Optional[CompilerSettings] = None,
) -> Manifest:
    """Open a schema source for ``descriptor``, build the manifest and close it."""
    settings = settings or CompilerSettings.from_env()
    source = MysqlSchemaSource(
        descriptor,
        query_timeout=settings.query_timeout_seconds,
        connect_timeout=settings.connect_timeout_seconds,
        max_connections=settings.max_concurrency,
    )
    async with source:
        introspector = MysqlSchemaIntrospector(
            source,
            max_concurrency=settings.max_concurrency,
            seed_row_limit=settings.seed_row_limit,
        )
        return await introspector.generate_manifest(
            prefix, include_seed_data=include_seed_data, installer_class=installer_class
        )
