import pytest

from installer.php import escape_heredoc_fragment, escape_php_string, quote_sql_literal
from installer.php_installer import (
    DEFAULT_CORE_TABLES,
    build_trigger_names,
    column_sql,
    generate_installer_class,
    parse_trigger_event,
    procedure_create_sql,
    seed_literal,
    trigger_body,
)
from manifest.models import (
    ColumnDef,
    Manifest,
    StoredProcedureDef,
    TableDef,
    TriggerDef,
    ViewDef,
)

PREFIX = "{$this->prefix}"


def _table(name, **kwargs):
    columns = kwargs.pop(
        "columns",
        [
            ColumnDef(
                name="id",
                type="bigint(20) unsigned",
                nullable=False,
                auto_increment=True,
                primary_key=True,
            ),
            ColumnDef(name="note", type="text", nullable=True),
        ],
    )
    return TableDef(name=name, name_original=f"wp_{name}", full_name=f"wp_{name}", columns=columns, **kwargs)


def _shop_manifest(**kwargs):
    data = dict(
        database="shop",
        default_prefix="wp_",
        installer_class="ShopInstaller",
        tables=[_table("orders"), _table("orders_meta")],
        views=[
            ViewDef(
                name="orders_v",
                name_original="wp_orders_v",
                full_name="wp_orders_v",
                definition=(
                    "CREATE ALGORITHM=UNDEFINED DEFINER=`root`@`localhost` SQL SECURITY DEFINER "
                    "VIEW `wp_orders_v` AS select `wp_orders`.`id` AS `id` from `wp_orders`"
                ),
            )
        ],
    )
    data.update(kwargs)
    return Manifest(**data)


def _install_section(source):
    return source.split("public function install() {", 1)[1].split("public function populate() {", 1)[0]


def _uninstall_section(source):
    return source.split("public function uninstall() {", 1)[1].split("private function apply_prefix", 1)[0]


def test_install_creates_tables_then_views():
    source = generate_installer_class(_shop_manifest(), "ShopInstaller")
    install = _install_section(source)

    assert source.startswith("<?php\nclass ShopInstaller {")
    assert install.count(f"CREATE TABLE {PREFIX}") == 2
    assert install.count(f'$this->wpdb->query("DROP VIEW IF EXISTS {PREFIX}orders_v");') == 1
    assert install.count("CREATE VIEW") == 1
    assert install.index("DROP VIEW") < install.index("CREATE VIEW")
    assert f"CREATE VIEW `{PREFIX}orders_v` AS select `{PREFIX}orders`.`id`" in install
    assert "DEFINER" not in install


def test_generated_source_never_contains_literal_prefix():
    source = generate_installer_class(_shop_manifest(), "ShopInstaller")
    assert "wp_" not in source


def test_create_table_heredoc_and_core_guard():
    source = generate_installer_class(_shop_manifest(), "ShopInstaller")

    assert f"$sql = <<<SQL\nCREATE TABLE {PREFIX}orders (\n" in source
    assert "    id bigint(20) unsigned NOT NULL AUTO_INCREMENT,\n" in source
    assert "    note text,\n" in source
    assert "    PRIMARY KEY (id)\n) $charset_collate;\nSQL;" in source
    assert f'if ( $this->is_core_table("{PREFIX}orders") ) {{' in source
    assert "dbDelta($sql);" in source


def test_column_sql_defaults():
    assert (
        column_sql(ColumnDef(name="status", type="varchar(20)", default="new"))
        == "status varchar(20) NOT NULL DEFAULT 'new'"
    )
    assert (
        column_sql(
            ColumnDef(name="created", type="datetime", nullable=True, default="current_timestamp()")
        )
        == "created datetime DEFAULT CURRENT_TIMESTAMP"
    )
    assert column_sql(ColumnDef(name="n", type="int", nullable=True, default="  ")) == "n int"


def test_populate_caps_rows_at_row_limit():
    seed = [{"id": i, "note": f"row {i}"} for i in range(10)]
    manifest = _shop_manifest(tables=[_table("orders", row_limit=3, seed_data=seed)])
    source = generate_installer_class(manifest, "ShopInstaller")

    assert source.count("INSERT INTO") == 3
    assert f"INSERT INTO {PREFIX}orders (id, note) VALUES ('0', 'row 0');" in source
    assert "row 3" not in source


def test_populate_skips_tables_without_row_limit():
    manifest = _shop_manifest(tables=[_table("orders", row_limit=0, seed_data=[{"id": 1}])])
    assert "INSERT INTO" not in generate_installer_class(manifest, "ShopInstaller")


def test_seed_literals():
    assert seed_literal(None) == "NULL"
    assert seed_literal(True) == "'1'"
    assert seed_literal(False) == "'0'"
    assert seed_literal(5) == "'5'"
    assert seed_literal("O'Brien") == "'O''Brien'"


def test_core_and_skipped_tables_are_excluded():
    manifest = _shop_manifest(
        tables=[_table("orders"), _table("options"), _table("legacy", skip=True)]
    )
    source = generate_installer_class(manifest, "ShopInstaller")

    assert f"CREATE TABLE {PREFIX}orders (" in source
    assert f"{PREFIX}options" not in source
    assert f"{PREFIX}legacy" not in source


def test_custom_core_table_set():
    source = generate_installer_class(_shop_manifest(), "ShopInstaller", core_tables={"Orders"})

    assert f"CREATE TABLE {PREFIX}orders (" not in source
    assert f"CREATE TABLE {PREFIX}orders_meta (" in source


def test_trigger_names_avoid_collisions():
    manifest = _shop_manifest(
        triggers=[
            TriggerDef(name="orders", table="orders"),
            TriggerDef(name="orders", table="orders"),
            TriggerDef(name="Orders_V", table="orders"),
            TriggerDef(name="orders_audit", table="orders"),
        ]
    )
    assert build_trigger_names(manifest) == ["orders_trg", "orders_trg2", "Orders_V_trg", "orders_audit"]


def test_trigger_install_and_uninstall():
    manifest = _shop_manifest(
        triggers=[
            TriggerDef(
                name="orders",
                table="orders",
                event="AFTER INSERT",
                definition="UPDATE wp_orders_meta SET note = NEW.note",
            )
        ]
    )
    source = generate_installer_class(manifest, "ShopInstaller")

    assert (
        f"CREATE TRIGGER `{PREFIX}orders_trg` AFTER INSERT ON `{PREFIX}orders` FOR EACH ROW "
        f"BEGIN UPDATE {PREFIX}orders_meta SET note = NEW.note; END"
    ) in _install_section(source)

    uninstall = _uninstall_section(source)
    assert f'$this->run_sql("DROP TRIGGER IF EXISTS `{PREFIX}orders_trg`");' in uninstall
    assert f'$this->run_sql("DROP TRIGGER IF EXISTS `{PREFIX}orders`");' in uninstall
    assert f'$this->wpdb->query("DROP TABLE IF EXISTS {PREFIX}orders");' in uninstall
    assert f'$this->wpdb->query("DROP VIEW IF EXISTS {PREFIX}orders_v");' in uninstall


@pytest.mark.parametrize(
    "event,expected",
    [
        (None, ("AFTER", "INSERT")),
        ("before", ("BEFORE", "INSERT")),
        ("update", ("AFTER", "UPDATE")),
        ("before delete", ("BEFORE", "DELETE")),
    ],
)
def test_parse_trigger_event(event, expected):
    assert parse_trigger_event(event) == expected


def test_trigger_body_keeps_existing_begin_block():
    trigger = TriggerDef(name="t", table="orders", definition="BEGIN\n SET NEW.x = 1;\nEND")
    assert trigger_body(trigger, "wp_") == "BEGIN\n SET NEW.x = 1;\nEND"


def test_procedure_header_uses_runtime_prefix():
    manifest = _shop_manifest(
        stored_procedures=[
            StoredProcedureDef(
                name="order_total",
                definition=(
                    "CREATE DEFINER=`root`@`localhost` PROCEDURE `wp_order_total`(IN p_id INT)"
                    "\nBEGIN\nSELECT 1;\nEND"
                ),
            )
        ]
    )
    source = generate_installer_class(manifest, "ShopInstaller")

    assert f'$this->run_sql("DROP PROCEDURE IF EXISTS `{PREFIX}order_total`");' in source
    assert (
        f'$this->run_sql("CREATE PROCEDURE `{PREFIX}order_total`(IN p_id INT)\\nBEGIN\\nSELECT 1;\\nEND");'
        in source
    )
    assert (
        procedure_create_sql("CREATE PROCEDURE other.p(x INT) BEGIN END", "p")
        == f"CREATE PROCEDURE `{PREFIX}p`(x INT) BEGIN END"
    )


def test_runtime_helpers_are_emitted():
    source = generate_installer_class(_shop_manifest(), "ShopInstaller")

    assert "$this->prefix = $wpdb->get_blog_prefix();" in source
    assert "private function run_sql($sql) {" in source
    assert "private function is_core_table($fullTableName) {" in source
    assert "private function is_core_table_alter($sql) {" in source
    assert "isset($w->sitemeta) ? $w->sitemeta : null\n" in source


def test_output_is_deterministic():
    manifest = _shop_manifest()
    assert generate_installer_class(manifest, "ShopInstaller") == generate_installer_class(
        manifest, "ShopInstaller"
    )


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("", ""),
        ('say "hi"', 'say \\"hi\\"'),
        ("cost $5", "cost \\$5"),
        ("a\\b", "a\\\\b"),
        ("line1\r\nline2", "line1\\nline2"),
        ("SELECT * FROM {$this->prefix}t", "SELECT * FROM {$this->prefix}t"),
    ],
)
def test_escape_php_string(raw, expected):
    assert escape_php_string(raw) == expected


def test_heredoc_and_literal_escaping():
    assert escape_heredoc_fragment("price $x \\ y") == "price \\$x \\\\ y"
    assert quote_sql_literal("it's") == "'it''s'"


def test_populate_escapes_trailing_backslash():
    """A seed value ending in a backslash still yields a terminated literal."""
    manifest = _shop_manifest(
        tables=[_table("paths", row_limit=1, seed_data=[{"p": "C:\\dir\\"}])], views=[]
    )
    source = generate_installer_class(manifest, "ShopInstaller")

    # PHP unescapes to 'C:\\dir\\', which MySQL reads back as C:\dir\
    assert f"INSERT INTO {PREFIX}paths (p) VALUES " + r"('C:\\\\dir\\\\');" in source


def test_column_default_with_backslash_and_newline():
    assert (
        column_sql(ColumnDef(name="p", type="varchar(20)", default="C:\\dir\\"))
        == r"p varchar(20) NOT NULL DEFAULT 'C:\\dir\\'"
    )
    assert quote_sql_literal("a\nb\r\0") == r"'a\nb\r\0'"


def test_multiline_default_cannot_close_heredoc():
    columns = [ColumnDef(name="note", type="text", default="x\nSQL;\ny")]
    manifest = _shop_manifest(tables=[_table("notes", columns=columns)], views=[])
    source = generate_installer_class(manifest, "ShopInstaller")

    assert source.count("\nSQL;") == 1
    assert r"    note text NOT NULL DEFAULT 'x\\nSQL;\\ny'" in source
    assert escape_heredoc_fragment("varchar(20)\r\nSQL;") == "varchar(20) SQL;"


def test_default_core_tables_cover_wpdb_properties():
    assert "options" in DEFAULT_CORE_TABLES
    assert "sitemeta" in DEFAULT_CORE_TABLES
    assert len(DEFAULT_CORE_TABLES) == 18
