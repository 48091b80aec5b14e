"""PHP installer class emission.

The generated class exposes ``install()``, ``populate()`` and
``uninstall()`` for a WordPress plugin. Every object name is written
against ``{$this->prefix}`` (resolved from ``$wpdb`` at runtime), never a
literal prefix, and every statement that could touch a host-owned table
goes through a core-table guard.
"""

import re
from typing import AbstractSet, Iterable, List, Optional, Tuple

from common.sanitization.sql_definitions import (
    PREFIX_EXPRESSION,
    inject_prefix_token,
    is_current_timestamp_literal,
)
from installer.php import escape_heredoc_fragment, escape_php_string, quote_sql_literal
from manifest.models import ColumnDef, Manifest, SeedValue, TableDef, TriggerDef

# $wpdb properties holding the runtime names of core tables.
_WPDB_CORE_TABLE_PROPERTIES = (
    "users",
    "usermeta",
    "posts",
    "postmeta",
    "comments",
    "commentmeta",
    "terms",
    "term_taxonomy",
    "term_relationships",
    "termmeta",
    "links",
    "options",
)
_WPDB_MULTISITE_TABLE_PROPERTIES = (
    "blogs",
    "blog_versions",
    "registration_log",
    "signups",
    "site",
    "sitemeta",
)

# WordPress-owned tables (prefix-free) that generated code never creates or drops.
DEFAULT_CORE_TABLES: AbstractSet[str] = frozenset(
    _WPDB_CORE_TABLE_PROPERTIES + _WPDB_MULTISITE_TABLE_PROPERTIES
)

TRIGGER_TIMINGS = ("BEFORE", "AFTER")
DEFAULT_TRIGGER_TIMING = "AFTER"
DEFAULT_TRIGGER_EVENT = "INSERT"

_PROCEDURE_HEADER_RE = re.compile(
    r"(?is)\bCREATE\s+PROCEDURE\s+(?:`[^`]*`|[^\s(`]+)(?:\s*\.\s*(?:`[^`]*`|[^\s(`]+))?"
)
_BEGIN_RE = re.compile(r"(?is)^\s*BEGIN\b")

_INDENT = "    "


def prefixed(name: str) -> str:
    """Runtime-prefixed object name."""
    return f"{PREFIX_EXPRESSION}{name}"


def prefixed_quoted(name: str) -> str:
    return f"`{PREFIX_EXPRESSION}{name}`"


def build_trigger_names(manifest: Manifest) -> List[str]:
    """Collision-free trigger names, aligned with ``manifest.triggers``.

    Table, view and procedure names are reserved (case-insensitively). A
    trigger whose name is reserved or already assigned becomes
    ``<name>_trg``, then ``<name>_trg2``, ``<name>_trg3``, ...
    """
    used = {t.name.lower() for t in manifest.tables}
    used.update(v.name.lower() for v in manifest.views)
    used.update(sp.name.lower() for sp in manifest.stored_procedures)

    names: List[str] = []
    for trigger in manifest.triggers:
        base = trigger.name if trigger.name and trigger.name.strip() else "trigger"
        candidate = base
        attempt = 1
        while candidate.lower() in used:
            candidate = f"{base}_trg" if attempt == 1 else f"{base}_trg{attempt}"
            attempt += 1
        used.add(candidate.lower())
        names.append(candidate)
    return names


def parse_trigger_event(event: Optional[str]) -> Tuple[str, str]:
    """Split ``"AFTER INSERT"``-style text into (timing, event) with defaults."""
    timing, action = DEFAULT_TRIGGER_TIMING, DEFAULT_TRIGGER_EVENT
    parts = (event or "").split()
    if len(parts) >= 2:
        timing, action = parts[0].upper(), parts[1].upper()
    elif len(parts) == 1:
        token = parts[0].upper()
        if token in TRIGGER_TIMINGS:
            timing = token
        else:
            action = token
    return timing, action


def is_core_table(table: TableDef, core_tables: AbstractSet[str]) -> bool:
    return table.name.lower() in core_tables


def emitted_tables(manifest: Manifest, core_tables: AbstractSet[str]) -> List[TableDef]:
    """Tables that get CREATE/DROP statements: not skipped and not host-owned."""
    return [t for t in manifest.tables if not t.skip and not is_core_table(t, core_tables)]


def column_sql(column: ColumnDef) -> str:
    """One column line of a CREATE TABLE statement."""
    parts = [column.name, column.type]
    if not column.nullable:
        parts.append("NOT NULL")
    if column.auto_increment:
        parts.append("AUTO_INCREMENT")
    if column.default is not None and column.default.strip():
        default = column.default.strip()
        if is_current_timestamp_literal(default):
            parts.append("DEFAULT CURRENT_TIMESTAMP")
        else:
            parts.append("DEFAULT " + quote_sql_literal(default))
    return " ".join(part for part in parts if part)


def seed_literal(value: SeedValue) -> str:
    """SQL literal for one seed cell."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "'1'" if value else "'0'"
    return quote_sql_literal(str(value))


def trigger_body(trigger: TriggerDef, default_prefix: str) -> str:
    """Sanitized, prefix-tokenized trigger body wrapped in BEGIN ... END."""
    text = inject_prefix_token(trigger.sanitized_definition.strip(), default_prefix)
    text = text.strip().rstrip(";").rstrip()
    if _BEGIN_RE.match(text):
        return text
    return f"BEGIN {text}; END" if text else "BEGIN END"


def procedure_create_sql(sql: str, name: str) -> str:
    """Force the ``CREATE PROCEDURE`` header onto the runtime-prefixed name."""
    return _PROCEDURE_HEADER_RE.sub(
        lambda _m: f"CREATE PROCEDURE {prefixed_quoted(name)}", sql, count=1
    )


class _Writer:
    def __init__(self) -> None:
        self._lines: List[str] = []

    def line(self, text: str = "", depth: int = 0) -> None:
        self._lines.append(f"{_INDENT * depth}{text}" if text else "")

    def lines(self, texts: Iterable[str], depth: int = 0) -> None:
        for text in texts:
            self.line(text, depth)

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"


def _run_sql(sql: str) -> str:
    return f'$this->run_sql("{escape_php_string(sql)}");'


def _wpdb_query(sql: str) -> str:
    return f'$this->wpdb->query("{escape_php_string(sql)}");'


class InstallerClassGenerator:
    """Renders the installer class for one manifest.

    The generator only reads the manifest. Trigger names are resolved once
    in the constructor so install and uninstall agree on them.
    """

    def __init__(
        self,
        manifest: Manifest,
        class_name: str,
        core_tables: AbstractSet[str] = DEFAULT_CORE_TABLES,
    ) -> None:
        self.manifest = manifest
        self.class_name = class_name
        self.core_tables = frozenset(name.lower() for name in core_tables)
        self.trigger_names = build_trigger_names(manifest)
        self.tables = emitted_tables(manifest, self.core_tables)

    def render(self) -> str:
        out = _Writer()
        out.line("<?php")
        out.line(f"class {self.class_name} {{")
        out.lines(
            [
                "/** @var wpdb */",
                "private $wpdb;",
                "/** @var string */",
                "private $prefix;",
                "",
                "public function __construct($wpdb) {",
                f"{_INDENT}$this->wpdb   = $wpdb;",
                f"{_INDENT}$this->prefix = $wpdb->get_blog_prefix();",
                "}",
            ],
            depth=1,
        )
        out.line()
        self._install(out)
        out.line()
        self._populate(out)
        out.line()
        self._uninstall(out)
        out.line()
        self._helpers(out)
        out.line()
        out.line("}")
        return out.render()

    # ------------------------------------------------------------ install

    def _install(self, out: _Writer) -> None:
        out.line("public function install() {", 1)
        out.line("$charset_collate = $this->wpdb->get_charset_collate();", 2)
        out.line("require_once(ABSPATH . 'wp-admin/includes/upgrade.php');", 2)
        for table in self.tables:
            self._create_table(out, table)
        for view in self.manifest.views:
            out.line()
            out.line(f"// View: {view.name}", 2)
            out.line(_wpdb_query(f"DROP VIEW IF EXISTS {prefixed(view.name)}"), 2)
            sql = inject_prefix_token(view.sanitized_definition, self.manifest.default_prefix)
            out.line(_run_sql(sql), 2)
        for procedure in self.manifest.stored_procedures:
            out.line()
            out.line(f"// Stored Procedure: {procedure.name}", 2)
            sql = inject_prefix_token(procedure.sanitized_definition, self.manifest.default_prefix)
            out.line(_run_sql(f"DROP PROCEDURE IF EXISTS {prefixed_quoted(procedure.name)}"), 2)
            out.line(_run_sql(procedure_create_sql(sql, procedure.name)), 2)
        for trigger, final_name in zip(self.manifest.triggers, self.trigger_names):
            out.line()
            out.line(f"// Trigger: {trigger.name}", 2)
            timing, action = parse_trigger_event(trigger.event)
            body = trigger_body(trigger, self.manifest.default_prefix)
            out.line(_run_sql(f"DROP TRIGGER IF EXISTS {prefixed_quoted(final_name)}"), 2)
            out.line(
                _run_sql(
                    f"CREATE TRIGGER {prefixed_quoted(final_name)} {timing} {action} "
                    f"ON {prefixed_quoted(trigger.table)} FOR EACH ROW {body}"
                ),
                2,
            )
        out.line("}", 1)

    def _create_table(self, out: _Writer, table: TableDef) -> None:
        definitions = [escape_heredoc_fragment(column_sql(col)) for col in table.columns]
        if table.primary_key_columns:
            pk = ", ".join(table.primary_key_columns)
            definitions.append(escape_heredoc_fragment(f"PRIMARY KEY ({pk})"))

        out.line()
        out.line(f"// Table: {table.name}", 2)
        out.line("$sql = <<<SQL", 2)
        out.line(f"CREATE TABLE {prefixed(escape_heredoc_fragment(table.name))} (")
        for idx, definition in enumerate(definitions):
            comma = "," if idx < len(definitions) - 1 else ""
            out.line(f"{definition}{comma}", 1)
        out.line(") $charset_collate;")
        out.line("SQL;")
        out.line(f'if ( $this->is_core_table("{escape_php_string(prefixed(table.name))}") ) {{', 2)
        out.line("// host-owned table: leave untouched", 3)
        out.line("} else {", 2)
        out.line("dbDelta($sql);", 3)
        out.line("}", 2)

    # ------------------------------------------------------------ populate

    def _populate(self, out: _Writer) -> None:
        out.line("public function populate() {", 1)
        for table in self.tables:
            if table.row_limit <= 0 or not table.seed_data:
                continue
            out.line(f"// Seed data for table: {table.name}", 2)
            for row in table.seed_data[: table.row_limit]:
                columns = ", ".join(row.keys())
                values = ", ".join(seed_literal(value) for value in row.values())
                out.line(
                    _wpdb_query(f"INSERT INTO {prefixed(table.name)} ({columns}) VALUES ({values});"),
                    2,
                )
        out.line("}", 1)

    # ------------------------------------------------------------ uninstall

    def _uninstall(self, out: _Writer) -> None:
        out.line("public function uninstall() {", 1)
        for table in self.tables:
            out.line(f'if ( !$this->is_core_table("{escape_php_string(prefixed(table.name))}") ) {{', 2)
            out.line(_wpdb_query(f"DROP TABLE IF EXISTS {prefixed(table.name)}"), 3)
            out.line("}", 2)
        for view in self.manifest.views:
            out.line(_wpdb_query(f"DROP VIEW IF EXISTS {prefixed(view.name)}"), 2)
        for procedure in self.manifest.stored_procedures:
            out.line(_run_sql(f"DROP PROCEDURE IF EXISTS {prefixed_quoted(procedure.name)}"), 2)
        for trigger, final_name in zip(self.manifest.triggers, self.trigger_names):
            out.line(_run_sql(f"DROP TRIGGER IF EXISTS {prefixed_quoted(final_name)}"), 2)
            if final_name != trigger.name and trigger.name:
                # installers generated before disambiguation used the bare name
                out.line(_run_sql(f"DROP TRIGGER IF EXISTS {prefixed_quoted(trigger.name)}"), 2)
        out.line("}", 1)

    # ------------------------------------------------------------ helpers

    def _helpers(self, out: _Writer) -> None:
        core = [f"isset($w->{prop}) ? $w->{prop} : null," for prop in _WPDB_CORE_TABLE_PROPERTIES]
        multisite = [f"isset($w->{prop}) ? $w->{prop} : null," for prop in _WPDB_MULTISITE_TABLE_PROPERTIES]
        multisite[-1] = multisite[-1].rstrip(",")

        out.lines(
            [
                "/** Resolve prefix tokens left in a statement to the runtime prefix. */",
                "private function apply_prefix($sql) {",
                "    // literal prefix tokens, any case",
                "    $sql = preg_replace('/\\{wp\\x5f\\}/i', $this->prefix, $sql);",
                "    return $sql;",
                "}",
                "",
                "/** Core table names resolved from $wpdb (single-site + multisite), lowercased. */",
                "private function core_tables() {",
                "    $w = $this->wpdb;",
                "    return array_values(array_filter(array_map('strtolower', array_filter(array(",
            ],
            depth=1,
        )
        out.lines(core, depth=3)
        out.line("// Multisite (if present)", 3)
        out.lines(multisite, depth=3)
        out.lines(
            [
                "    )))));",
                "}",
                "",
                "private function is_core_table($fullTableName) {",
                "    return in_array(strtolower($fullTableName), $this->core_tables(), true);",
                "}",
                "",
                "private function is_core_table_alter($sql) {",
                "    $tables = $this->core_tables();",
                "    if (empty($tables)) { return false; }",
                "    $quoted = array();",
                "    foreach ($tables as $t) { $quoted[] = preg_quote($t, '/'); }",
                "    $alts = implode('|', $quoted);",
                "    $pattern = '/^\\s*ALTER\\s+TABLE\\s+`?(?:' . $alts . ')`?(?:\\s|$)/i';",
                "    return (bool) preg_match($pattern, $sql);",
                "}",
                "",
                "/** Single entry point for generated statements; never alters core tables. */",
                "private function run_sql($sql) {",
                "    $sql = $this->apply_prefix($sql);",
                "    if ($this->is_core_table_alter($sql)) {",
                "        return;",
                "    }",
                "    $this->wpdb->query($sql);",
                "}",
            ],
            depth=1,
        )


def generate_installer_class(
    manifest: Manifest,
    class_name: str,
    core_tables: AbstractSet[str] = DEFAULT_CORE_TABLES,
) -> str:
    """Render the installer class source for ``manifest``."""
    return InstallerClassGenerator(manifest, class_name, core_tables).render()
