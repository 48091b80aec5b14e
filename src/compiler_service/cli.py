import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from common.config.settings import CompilerSettings
from common.errors import SchemaCompilerError, sanitize_error_message, sanitize_exception
from dal.mysql.descriptor import ConnectionDescriptor
from dal.mysql.schema_introspector import introspect_schema
from installer.compiler import compile_manifest, validate_manifest, write_installer_files
from manifest.serialization import load_manifest, save_manifest

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schema to WordPress installer compiler")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Manifest Command
    manifest_parser = subparsers.add_parser(
        "manifest", help="Introspect a live schema into a manifest JSON file"
    )
    manifest_parser.add_argument(
        "--connection",
        default=None,
        help="Connection string or mysql:// URL (default: DB_* environment variables)",
    )
    manifest_parser.add_argument(
        "--prefix", default=None, help="Table prefix to capture (default: TABLE_PREFIX or wp_)"
    )
    manifest_parser.add_argument(
        "--include-seed-data", action="store_true", help="Capture table rows as seed data"
    )
    manifest_parser.add_argument(
        "--installer-class", default=None, help="Installer class name recorded in the manifest"
    )
    manifest_parser.add_argument(
        "--output", default="manifest.json", help="Manifest file to write (default: manifest.json)"
    )

    # Installer Command
    installer_parser = subparsers.add_parser(
        "installer", help="Compile a manifest into PHP installer files"
    )
    installer_parser.add_argument("manifest", help="Manifest JSON file")
    installer_parser.add_argument(
        "--output-dir", default=".", help="Directory for generated files (default: .)"
    )
    installer_parser.add_argument(
        "--class-name", default=None, help="Override the manifest's installer class name"
    )
    installer_parser.add_argument(
        "--create-stub", action="store_true", help="Also write the standalone test stub"
    )
    installer_parser.add_argument(
        "--main-file", action="store_true", help="Also write the main plugin file"
    )

    # Validate Command
    validate_parser = subparsers.add_parser("validate", help="Check a manifest can be compiled")
    validate_parser.add_argument("manifest", help="Manifest JSON file")
    validate_parser.add_argument(
        "--class-name", default=None, help="Override the manifest's installer class name"
    )
    validate_parser.add_argument(
        "--table",
        dest="tables",
        action="append",
        default=[],
        help="Table expected in the manifest (repeatable)",
    )
    return parser


def _run_manifest(args: argparse.Namespace, settings: CompilerSettings) -> None:
    if args.connection:
        descriptor = ConnectionDescriptor.parse(args.connection)
    else:
        descriptor = ConnectionDescriptor.from_settings(settings)
    prefix = args.prefix or settings.table_prefix
    logger.info(f"Introspecting {descriptor.describe()} (prefix: {prefix})")
    manifest = asyncio.run(
        introspect_schema(
            descriptor,
            prefix,
            include_seed_data=args.include_seed_data,
            installer_class=args.installer_class or settings.installer_class,
            settings=settings,
        )
    )
    save_manifest(manifest, args.output)


def _run_installer(args: argparse.Namespace) -> None:
    manifest = load_manifest(args.manifest)
    compiled = compile_manifest(manifest, installer_class_override=args.class_name)
    paths = write_installer_files(
        compiled,
        args.output_dir,
        include_stub=args.create_stub,
        include_main_file=args.main_file,
    )
    for path in paths:
        print(path)


def _run_validate(args: argparse.Namespace) -> None:
    manifest = load_manifest(args.manifest)
    class_name = validate_manifest(
        manifest, installer_class_override=args.class_name, selected_tables=args.tables
    )
    counts = manifest.object_counts()
    logger.info(f"Manifest is valid for {class_name}: {counts}")


def main(argv=None) -> None:
    """Run the compiler CLI."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    settings = CompilerSettings.from_env()
    try:
        if args.command == "manifest":
            _run_manifest(args, settings)
        elif args.command == "installer":
            _run_installer(args)
        elif args.command == "validate":
            _run_validate(args)
    except SchemaCompilerError as e:
        logger.error(f"{args.command} failed: {sanitize_exception(e)}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"{args.command} failed: {sanitize_error_message(e)}")
        sys.exit(2)
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
