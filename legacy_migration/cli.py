"""Command line interface for the legacy migration."""

import argparse
import json
import logging
import sys
from typing import Optional

from .exceptions import MigrationError
from .models.migration import MigrationConfig
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def build_config(args) -> MigrationConfig:
    """Config from --config (JSON) or the environment, with flag overrides."""
    if getattr(args, "config", None):
        with open(args.config) as f:
            config = MigrationConfig.from_dict(json.load(f))
    else:
        config = MigrationConfig.from_env()

    if getattr(args, "dump", None):
        config.dump_path = args.dump
    if getattr(args, "database_url", None):
        config.database_url = args.database_url
    if getattr(args, "mapping", None):
        config.mapping_file = args.mapping
    if getattr(args, "report_dir", None):
        config.report_dir = args.report_dir
    if getattr(args, "dry_run", False):
        config.dry_run = True

    return config


def run_migration(args) -> int:
    """Run the legacy import."""
    orchestrator = MigrationOrchestrator(build_config(args))
    run = orchestrator.run_migration()
    summary = run.summary()

    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" + (" (DRY RUN)" if run.dry_run else ""))
    print("=" * 60)
    print(f"Status: {run.status.value}")
    for step in run.steps:
        print(
            f"  {step.source_table} -> {step.target_table}: "
            f"{step.records_succeeded} migrated, {step.records_skipped} skipped, "
            f"{step.records_failed} failed"
        )
    print(f"Log entries: {summary['total_operations']}")
    print(f"Successful: {summary['success_count']}")
    print(f"Warnings: {summary['warning_count']}")
    print(f"Errors: {summary['error_count']}")
    if run.duration_seconds:
        print(f"Duration: {run.duration_seconds:.2f} seconds")

    if args.show_log:
        for entry in run.log.entries:
            print(f"[{entry.timestamp.isoformat()}] {entry.severity.value.upper()}: {entry.message}")

    return 1 if summary["error_count"] else 0


def run_status(args) -> int:
    """Show which migrated tables exist."""
    orchestrator = MigrationOrchestrator(build_config(args))
    status = orchestrator.migration_status()
    print(json.dumps(status, indent=2))
    return 0


def run_preview(args) -> int:
    """Print the first rows of a migrated table."""
    orchestrator = MigrationOrchestrator(build_config(args))
    rows = orchestrator.preview_table(args.table, args.limit)
    print(json.dumps(rows, indent=2, default=str))
    return 0


def run_inspect(args) -> int:
    """Parse the dump and list its tables without loading anything."""
    orchestrator = MigrationOrchestrator(build_config(args))
    result = orchestrator.inspect_dump()

    print(f"\n=== {result.source_path} ===")
    print(f"Statements: {result.statements_seen} "
          f"({result.statements_skipped} skipped, {result.statements_malformed} malformed)")
    for name, table in sorted(result.tables.items()):
        mapped = orchestrator.mapping.get(name)
        target = f" -> {mapped.target_table}" if mapped else ""
        print(f"  {name}: {len(table)} rows, {len(table.columns)} columns{target}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Legacy Migration Tool - Import the legacy MySQL dump into the new schema"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_common(sub):
        sub.add_argument("--config", help="Path to migration config file (JSON)")
        sub.add_argument("--database-url", help="Destination database URL")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Import the legacy dump")
    add_common(run_parser)
    run_parser.add_argument("--dump", help="Path to the legacy dump file")
    run_parser.add_argument("--mapping", help="Path to a mapping file")
    run_parser.add_argument("--report-dir", help="Directory for the JSON run report")
    run_parser.add_argument("--dry-run", action="store_true", help="Map rows without writing")
    run_parser.add_argument("--show-log", action="store_true", help="Print the migration log")

    # Status
    status_parser = subparsers.add_parser("status", help="List migrated tables")
    add_common(status_parser)

    # Preview
    preview_parser = subparsers.add_parser("preview", help="Preview a migrated table")
    add_common(preview_parser)
    preview_parser.add_argument("table", help="Table name")
    preview_parser.add_argument("--limit", type=int, default=None, help="Number of rows")

    # Inspect dump
    inspect_parser = subparsers.add_parser("inspect", help="Summarize the tables in a dump")
    add_common(inspect_parser)
    inspect_parser.add_argument("--dump", help="Path to the legacy dump file")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    commands = {
        "run": run_migration,
        "status": run_status,
        "preview": run_preview,
        "inspect": run_inspect,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    try:
        return command(args)
    except MigrationError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
