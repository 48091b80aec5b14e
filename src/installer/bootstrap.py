"""Thin PHP wrappers around a generated installer class."""

from installer.naming import installer_class_file_name, plugin_slug

PLUGIN_VERSION = "0.1.0"
PLUGIN_DESCRIPTION = "Database installer generated from a captured schema manifest"


def create_installer_stub(class_name: str, class_file: str) -> str:
    """Standalone script that runs ``install()`` and ``populate()`` against a site."""
    lines = [
        "<?php",
        f"// Auto-generated test stub for {class_name}",
        "",
        "require_once( dirname(__FILE__) . '/wp-load.php' );",
        f"require_once( dirname(__FILE__) . '/{class_file}' );",
        "",
        "global $wpdb;",
        f"$installer = new {class_name}($wpdb);",
        "",
        'echo "Running install...\\n";',
        "$installer->install();",
        "",
        'echo "Populating seed data...\\n";',
        "$installer->populate();",
        "",
        '// echo "Uninstalling...\\n";',
        "// $installer->uninstall();",
        "",
        'echo "Done!\\n";',
    ]
    return "\n".join(lines) + "\n"


def create_main_plugin_file(class_name: str) -> str:
    """Main plugin file: header plus activation, deactivation and uninstall hooks.

    Uninstall hooks are persisted by WordPress, so the callback is a named
    function rather than a closure.
    """
    slug = plugin_slug(class_name)
    uninstall_func = slug.replace("-", "_") + "_uninstall"
    plugin_name = class_name.replace("_", " ")
    instance = f"(new {class_name}($GLOBALS['wpdb']))"

    lines = [
        "<?php",
        "/*",
        f"Plugin Name: {plugin_name}",
        f"Description: {PLUGIN_DESCRIPTION}",
        f"Version: {PLUGIN_VERSION}",
        "Requires at least: 6.0",
        "Requires PHP: 7.4",
        "Author: You",
        "License: GPLv2 or later",
        f"Text Domain: {slug}",
        "*/",
        "",
        "if ( ! defined( 'ABSPATH' ) ) exit;",
        "",
        f"require_once __DIR__ . '/{installer_class_file_name(class_name)}';",
        "",
        "register_activation_hook( __FILE__, function() { "
        f"{instance}->install(); {instance}->populate(); }} );",
        "register_deactivation_hook( __FILE__, function() { } );",
        "",
        f"register_uninstall_hook( __FILE__, '{uninstall_func}' );",
        f"function {uninstall_func}() {{ {instance}->uninstall(); }}",
    ]
    return "\n".join(lines) + "\n"
