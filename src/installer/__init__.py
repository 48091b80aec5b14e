"""Installer emission: manifest in, PHP plugin sources out."""

from installer.bootstrap import create_installer_stub, create_main_plugin_file
from installer.compiler import (
    CompiledInstaller,
    InstallerOutputFile,
    compile_manifest,
    resolve_class_name,
    validate_manifest,
    write_installer_files,
)
from installer.naming import class_name_to_slug, is_valid_class_name, plugin_slug
from installer.php_installer import (
    DEFAULT_CORE_TABLES,
    build_trigger_names,
    generate_installer_class,
)

__all__ = [
    "CompiledInstaller",
    "DEFAULT_CORE_TABLES",
    "InstallerOutputFile",
    "build_trigger_names",
    "class_name_to_slug",
    "compile_manifest",
    "create_installer_stub",
    "create_main_plugin_file",
    "generate_installer_class",
    "is_valid_class_name",
    "plugin_slug",
    "resolve_class_name",
    "validate_manifest",
    "write_installer_files",
]
