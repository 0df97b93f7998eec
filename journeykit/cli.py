"""Command-line interface for journeykit.

Usage:
    journeykit export <journey-id> [-f FILE] [--no-deps] [--blob-scripts]
    journeykit export --all [-f FILE]
    journeykit import <file> [--re-uuid] [--no-deps]
    journeykit delete <journey-id> [--deep]
    journeykit delete --all [--deep]
    journeykit orphans [--remove]
    journeykit enable|disable <journey-id>
    journeykit classify <file>

Connection settings come from JOURNEYKIT_* environment variables or .env.
Exit status is 0 on success, 1 when some objects failed, 2 when the
operation could not run at all.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from journeykit import __version__
from journeykit.application.dtos import (
    BatchResult,
    DeleteOptions,
    ExportBundle,
    ExportOptions,
    ImportOptions,
    OperationResult,
)
from journeykit.application.services.bundle_codec import dumps, loads, loads_any
from journeykit.application.services.journey_classification import (
    get_journey_classification,
)
from journeykit.application.use_cases.journeys import (
    JourneyDeletionService,
    JourneyExportService,
    JourneyImportService,
    JourneyMaintenanceService,
)
from journeykit.core.config import Settings, get_settings
from journeykit.domain.exceptions import JourneyKitException
from journeykit.infrastructure.platform import open_platform
from journeykit.shared.telemetry import get_logger, setup_from_settings, setup_logging
from journeykit.shared.utils.concurrency import OperationContext

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FAILED = 2


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="journeykit", description="Journey export/import/delete")
    cli.add_argument("--version", action="version", version=f"journeykit {__version__}")
    cli.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = cli.add_subparsers(dest="command", required=True)

    export_cmd = sub.add_parser("export", help="Export a journey (or all journeys) to JSON")
    export_target = export_cmd.add_mutually_exclusive_group(required=True)
    export_target.add_argument("journey_id", nargs="?")
    export_target.add_argument("--all", action="store_true", help="Export every journey")
    export_cmd.add_argument("-f", "--file", type=Path, help="Output file (stdout if omitted)")
    export_cmd.add_argument("--no-deps", action="store_true", help="Skip dependencies")
    export_cmd.add_argument(
        "--blob-scripts",
        action="store_true",
        help="Keep script sources as a single string instead of line arrays",
    )

    import_cmd = sub.add_parser("import", help="Import a journey bundle file")
    import_cmd.add_argument("file", type=Path)
    import_cmd.add_argument("--re-uuid", action="store_true", help="Assign fresh node ids")
    import_cmd.add_argument("--no-deps", action="store_true", help="Skip dependencies")

    delete_cmd = sub.add_parser("delete", help="Delete a journey (or all journeys)")
    delete_target = delete_cmd.add_mutually_exclusive_group(required=True)
    delete_target.add_argument("journey_id", nargs="?")
    delete_target.add_argument("--all", action="store_true", help="Delete every journey")
    delete_cmd.add_argument(
        "--deep", action="store_true", help="Also delete nodes and unshared dependencies"
    )

    orphans_cmd = sub.add_parser("orphans", help="List nodes no journey references")
    orphans_cmd.add_argument("--remove", action="store_true", help="Delete them")

    for name in ("enable", "disable"):
        toggle_cmd = sub.add_parser(name, help=f"{name.capitalize()} a journey")
        toggle_cmd.add_argument("journey_id")

    classify_cmd = sub.add_parser("classify", help="Classify an exported journey bundle")
    classify_cmd.add_argument("file", type=Path)
    return cli


def _exit_code(result: OperationResult) -> int:
    if isinstance(result, BatchResult) and result.skipped:
        return EXIT_PARTIAL
    return EXIT_OK if result.ok else EXIT_PARTIAL


def _report(result: OperationResult) -> int:
    for error in result.errors:
        print(f"  {error}", file=sys.stderr)
    print(result.summary(), file=sys.stderr)
    return _exit_code(result)


def _write_output(text: str, path: Path | None) -> None:
    if path is None:
        sys.stdout.write(text + "\n")
        return
    path.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {path}", file=sys.stderr)


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    ctx = OperationContext(settings.max_concurrency)

    if args.command == "classify":
        bundle = loads(args.file.read_text(encoding="utf-8"))
        labels = get_journey_classification(bundle, settings.am_version)
        print(f"{bundle.journey_id}: {', '.join(label.value for label in labels)}")
        return EXIT_OK

    async with open_platform(settings) as collaborators:
        if args.command == "export":
            service = JourneyExportService(collaborators, settings, ctx)
            options = ExportOptions(
                deps=not args.no_deps, use_string_arrays=not args.blob_scripts
            )
            if args.all:
                result = await service.export_journeys(options)
            else:
                result = await service.export_journey(args.journey_id, options)
            if result.bundle is not None:
                _write_output(dumps(result.bundle), args.file)
            return _report(result)

        if args.command == "import":
            bundle = loads_any(args.file.read_text(encoding="utf-8"))
            service = JourneyImportService(collaborators, settings, ctx)
            options = ImportOptions(re_uuid=args.re_uuid, deps=not args.no_deps)
            if isinstance(bundle, ExportBundle):
                result = await service.import_journey(bundle, options)
            else:
                result = await service.import_journeys(bundle, options)
            return _report(result)

        if args.command == "delete":
            service = JourneyDeletionService(collaborators, settings, ctx)
            options = DeleteOptions(deep=args.deep)
            if args.all:
                result = await service.delete_journeys(options)
            else:
                result = await service.delete_journey(args.journey_id, options)
            return _report(result)

        maintenance = JourneyMaintenanceService(collaborators, settings, ctx)
        if args.command == "orphans":
            report = await maintenance.find_orphaned_nodes()
            for node in report.nodes:
                print(f"{node.get('_id')}\t{(node.get('_type') or {}).get('_id', '')}")
            if not args.remove:
                return EXIT_OK if not report.skipped_types else EXIT_PARTIAL
            errors = await maintenance.remove_orphaned_nodes(report.nodes)
            for error in errors:
                print(f"  {error}", file=sys.stderr)
            return EXIT_OK if not errors and not report.skipped_types else EXIT_PARTIAL

        if args.command == "enable":
            await maintenance.enable_journey(args.journey_id)
        else:
            await maintenance.disable_journey(args.journey_id)
        print(f"Journey {args.journey_id} {args.command}d", file=sys.stderr)
        return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILED
    setup_logging(settings, verbose=args.verbose)
    telemetry = setup_from_settings(settings)
    try:
        return asyncio.run(_run(args, settings))
    except JourneyKitException as e:
        logger.error("%s: %s", e.error_code, e.message)
        return EXIT_FAILED
    finally:
        telemetry.shutdown()


if __name__ == "__main__":
    sys.exit(main())
