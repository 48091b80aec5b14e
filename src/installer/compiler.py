"""Manifest → installer artifacts.

``compile_manifest`` is a pure function of its inputs: the same manifest,
override and core-table set always yield byte-identical sources.
"""

import logging
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from common.errors import ManifestValidationError
from installer.bootstrap import create_installer_stub, create_main_plugin_file
from installer.naming import (
    installer_class_file_name,
    installer_stub_file_name,
    is_valid_class_name,
    main_plugin_file_name,
    plugin_slug,
)
from installer.php_installer import DEFAULT_CORE_TABLES, generate_installer_class
from manifest.models import Manifest

logger = logging.getLogger(__name__)

OutputFileType = Literal["InstallerStub", "MainPlugin", "InstallerClass"]


class InstallerOutputFile(BaseModel):
    """One generated file, as shown in previews and written to disk."""

    name: str
    content: str
    type: OutputFileType


class CompiledInstaller(BaseModel):
    """The three artifacts of one compile call."""

    class_name: str
    slug: str
    installer_class_source: str
    installer_stub_source: str
    main_module_source: str
    counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def files(self) -> List[InstallerOutputFile]:
        """Preview files in display order: stub, main plugin, installer class."""
        return [
            InstallerOutputFile(
                name=installer_stub_file_name(self.class_name),
                content=self.installer_stub_source,
                type="InstallerStub",
            ),
            InstallerOutputFile(
                name=main_plugin_file_name(self.class_name),
                content=self.main_module_source,
                type="MainPlugin",
            ),
            InstallerOutputFile(
                name=installer_class_file_name(self.class_name),
                content=self.installer_class_source,
                type="InstallerClass",
            ),
        ]


def resolve_class_name(manifest: Manifest, installer_class_override: Optional[str] = None) -> str:
    """Override when given and non-blank, else the manifest's class name."""
    if installer_class_override and installer_class_override.strip():
        return installer_class_override.strip()
    return (manifest.installer_class or "").strip()


def validate_manifest(
    manifest: Manifest,
    installer_class_override: Optional[str] = None,
    selected_tables: Optional[Iterable[str]] = None,
) -> str:
    """Check that ``manifest`` can be compiled and return the class name to use.

    Raises:
        ManifestValidationError: listing every problem found.
    """
    problems: List[str] = []
    class_name = resolve_class_name(manifest, installer_class_override)
    if not class_name:
        problems.append("Installer class name is missing and no override was supplied.")
    elif not is_valid_class_name(class_name):
        problems.append(f"Installer class name '{class_name}' is not a valid PHP class name.")

    if not manifest.default_prefix:
        problems.append("Manifest default prefix is empty.")

    known = {table.name.lower() for table in manifest.tables}
    for name in selected_tables or ():
        if name.lower() not in known:
            problems.append(f"Selected table '{name}' does not exist in the manifest.")

    for table in manifest.tables:
        if table.row_limit < 0:
            problems.append(f"Table '{table.name}' has a negative row limit ({table.row_limit}).")

    if problems:
        raise ManifestValidationError("; ".join(problems), problems)
    return class_name


def compile_manifest(
    manifest: Manifest,
    installer_class_override: Optional[str] = None,
    core_tables: AbstractSet[str] = DEFAULT_CORE_TABLES,
) -> CompiledInstaller:
    """Generate the installer class, test stub and main plugin file for ``manifest``."""
    class_name = validate_manifest(manifest, installer_class_override)
    logger.info(
        "Compiling installer %s (%s)",
        class_name,
        ", ".join(f"{count} {kind}" for kind, count in manifest.object_counts().items()),
    )
    return CompiledInstaller(
        class_name=class_name,
        slug=plugin_slug(class_name),
        installer_class_source=generate_installer_class(manifest, class_name, core_tables),
        installer_stub_source=create_installer_stub(
            class_name, installer_class_file_name(class_name)
        ),
        main_module_source=create_main_plugin_file(class_name),
        counts=manifest.object_counts(),
    )


def write_installer_files(
    compiled: CompiledInstaller,
    directory: Union[str, Path],
    include_stub: bool = True,
    include_main_file: bool = True,
) -> List[Path]:
    """Write the compiled artifacts into ``directory`` (UTF-8, no BOM)."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for output in compiled.files:
        if output.type == "InstallerStub" and not include_stub:
            continue
        if output.type == "MainPlugin" and not include_main_file:
            continue
        path = target_dir / output.name
        # newline="" keeps the generated \n line endings on every platform
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(output.content)
        written.append(path)
    logger.info("Wrote %d installer file(s) to %s", len(written), target_dir)
    return written
