"""CLI for table backup and restore.

Provides commands to export tables to a JSON artifact, import an artifact
back (optionally clearing the destination tables first), validate an
artifact offline, and list configured database profiles.

Usage:
    DB_PROFILE=local table-backup export backups/shop.json --tables customers,orders
    table-backup --profile local export --no-blobs
    table-backup --profile staging import backups/shop.json --clobber --yes
    table-backup --profile staging import backups/shop.json --map customer_ref=customer_id
    table-backup --profile staging import backups/shop.json --dry-run
    table-backup validate backups/shop.json
    table-backup profiles

Commands:
    export    - Export tables to a JSON backup artifact
    import    - Import a backup artifact into the database
    validate  - Validate a backup artifact without touching the database
    profiles  - List available profiles

Exit codes:
    0 - success
    1 - fatal error (nothing or only part of the work was done)
    2 - import finished, but some records failed
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import psycopg
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from table_backup.backup.export import export_tables
from table_backup.backup.progress import ThrottledReporter
from table_backup.backup.restore import ImportReport, import_backup
from table_backup.backup.validate import validate_backup
from table_backup.config.loader import load_db_config
from table_backup.config.models import DatabaseConfig
from table_backup.errors import BackupError
from table_backup.factory import ProfileNotFoundError, get_client

console = Console()

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ROW_FAILURES = 2


# ============================================================================
# Argument helpers
# ============================================================================


def _parse_mapping(value: str) -> dict[str, str]:
    """Parse ``a=b,c=d`` into ``{"a": "b", "c": "d"}``.

    Example:
        >>> _parse_mapping("customer_ref=customer_id, note=comment")
        {'customer_ref': 'customer_id', 'note': 'comment'}
    """
    mapping: dict[str, str] = {}
    for pair in value.split(","):
        if not pair.strip():
            continue
        key, sep, target = pair.partition("=")
        key, target = key.strip(), target.strip()
        if not sep or not key or not target:
            raise argparse.ArgumentTypeError(
                f"Invalid mapping '{pair.strip()}' (expected name=name)"
            )
        mapping[key] = target
    return mapping


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated list, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(args: argparse.Namespace) -> DatabaseConfig:
    """Load db.toml, or defaults when no config file is given or present.

    Raises:
        FileNotFoundError: If ``--config`` names a missing file.
    """
    config_path = args.config
    if config_path is None and not (Path.cwd() / "db.toml").exists():
        return DatabaseConfig()
    return load_db_config(config_path)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_export(args: argparse.Namespace) -> int:
    """Async implementation for export command.

    Args:
        args: Parsed arguments with output, tables, no_blobs and the
            global profile options.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        settings = config.backup
        client = get_client(args.profile, args.env_prefix, args.config, settings)
    except (ProfileNotFoundError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FATAL

    tables = _parse_list(args.tables) if args.tables else None

    try:
        async with client:
            summary = await export_tables(
                client,
                args.output,
                tables=tables,
                include_blobs=settings.include_blobs and not args.no_blobs,
                blob_extension=settings.blob_extension,
                chunk_size=settings.chunk_size,
                inline_limit=settings.inline_limit,
                default_schema=settings.default_schema,
                progress=ThrottledReporter(settings.progress_interval),
            )
    except (BackupError, psycopg.Error, OSError) as e:
        console.print(f"\n[bold red]x[/bold red] Export failed: {e}")
        return EXIT_FATAL

    table = Table(title="Export Summary", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Records", justify="right")
    for name, count in summary.tables.items():
        table.add_row(name, str(count))
    console.print(table)

    if summary.blobs_written or summary.blobs_skipped:
        console.print(
            f"  Blobs: {summary.blobs_written} written, "
            f"{summary.blobs_skipped} skipped"
        )
    console.print(
        f"\n[bold green]v[/bold green] Backup written to "
        f"[bold cyan]{summary.path}[/bold cyan]"
    )
    return EXIT_OK


async def _async_import(args: argparse.Namespace) -> int:
    """Async implementation for import command.

    Args:
        args: Parsed arguments with backup_path, map, table_map, clobber,
            dry_run, yes and the global profile options.

    Returns:
        0 on success, 1 on fatal failure, 2 when some records failed.
    """
    if args.clobber and not args.yes and not args.dry_run:
        console.print(
            f"[yellow]This will delete all rows from every table in "
            f"{args.backup_path} before importing.[/yellow]"
        )
        if not Confirm.ask("Continue?", default=False, console=console):
            console.print("Cancelled.")
            return EXIT_OK

    try:
        config = _load_config(args)
        settings = config.backup
        client = get_client(args.profile, args.env_prefix, args.config, settings)
    except (ProfileNotFoundError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FATAL

    try:
        async with client:
            report = await import_backup(
                client,
                args.backup_path,
                column_map=args.map,
                table_map=args.table_map,
                clobber=args.clobber,
                dry_run=args.dry_run,
                default_schema=settings.default_schema,
                chunk_size=settings.chunk_size,
                progress=ThrottledReporter(settings.progress_interval),
            )
    except (BackupError, psycopg.Error, OSError) as e:
        console.print(f"\n[bold red]x[/bold red] Import failed: {e}")
        return EXIT_FATAL

    _print_import_report(report)
    return EXIT_OK if report.success else EXIT_ROW_FAILURES


def _print_import_report(report: ImportReport) -> None:
    """Print per-table counters and every record-level failure."""
    title = "Import Summary (dry run)" if report.dry_run else "Import Summary"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Deleted", justify="right")
    table.add_column("Inserted", justify="right")
    table.add_column("Failed", justify="right")

    for name in report.order:
        result = report.tables[name]
        label = f"{name} [dim](from {result.source})[/dim]" if result.source != name else name
        if result.skipped:
            label += " [yellow](skipped)[/yellow]"
        failed = f"[red]{result.failed}[/red]" if result.failed else "0"
        table.add_row(label, str(result.deleted), str(result.inserted), failed)
    console.print(table)

    if report.failures:
        failures = Table(
            title=f"Failed Records ({len(report.failures)})",
            show_header=True,
            header_style="bold",
        )
        failures.add_column("Table", style="dim")
        failures.add_column("Record", justify="right")
        failures.add_column("Error")
        for failure in report.failures:
            failures.add_row(failure.table, str(failure.index), failure.error)
        console.print(failures)
        console.print(
            f"\n[bold yellow]![/bold yellow] Import completed with "
            f"{len(report.failures)} failed records"
        )
    else:
        console.print("\n[bold green]v[/bold green] Import completed")


# ============================================================================
# Command handlers
# ============================================================================


def cmd_export(args: argparse.Namespace) -> int:
    """Export tables to a backup artifact.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_export(args))


def cmd_import(args: argparse.Namespace) -> int:
    """Import a backup artifact.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_import(args))


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a backup artifact.

    Reads only the local artifact and blob files -- no database calls.

    Returns:
        0 when valid, 1 otherwise.
    """
    result = validate_backup(args.backup_path)

    console.print(f"Validating: [bold]{args.backup_path}[/bold]")

    if result["errors"]:
        console.print(f"\n[red]Found {len(result['errors'])} errors:[/red]")
        for error in result["errors"]:
            console.print(f"   - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]Found {len(result['warnings'])} warnings:[/yellow]")
        for warning in result["warnings"]:
            console.print(f"   - {warning}")

    if result["valid"]:
        suffix = " (with warnings)" if result["warnings"] else ""
        console.print(f"\n[bold green]v[/bold green] Backup is valid{suffix}")
        return EXIT_OK

    console.print("\n[bold red]x[/bold red] Backup is invalid")
    return EXIT_FATAL


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    try:
        config = load_db_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FATAL

    current = args.profile or os.environ.get(f"{args.env_prefix}DB_PROFILE")

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current in config.profiles:
        console.print("\n[bold green]*[/bold green] = current profile")

    return EXIT_OK


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="table-backup",
        description="Back up and restore database tables",
    )

    # Global options
    parser.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Profile name from db.toml (overrides {env_prefix}DB_PROFILE)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE and APP_DATABASE_URL)"
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # export command
    p_export = subparsers.add_parser("export", help="Export tables to a backup artifact")
    p_export.add_argument(
        "output",
        nargs="?",
        default=None,
        help="Artifact path (default: backups/backup-{timestamp}.json)",
    )
    p_export.add_argument(
        "--tables",
        default=None,
        help="Comma-separated tables to export (default: every table in the default schema)",
    )
    p_export.add_argument(
        "--no-blobs",
        action="store_true",
        help="Export binary columns as empty values",
    )
    p_export.set_defaults(func=cmd_export)

    # import command
    p_import = subparsers.add_parser("import", help="Import a backup artifact")
    p_import.add_argument("backup_path", help="Path to backup JSON file")
    p_import.add_argument(
        "--map",
        type=_parse_mapping,
        default=None,
        help="Column renames as destination=source pairs (e.g., customer_ref=customer_id)",
    )
    p_import.add_argument(
        "--table-map",
        type=_parse_mapping,
        default=None,
        help="Table renames as source=destination pairs (e.g., public.orders=archive.orders)",
    )
    p_import.add_argument(
        "--clobber",
        action="store_true",
        help="Delete all rows from the destination tables first",
    )
    p_import.add_argument(
        "--dry-run",
        action="store_true",
        help="Decode every record without deleting or inserting",
    )
    p_import.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_import.set_defaults(func=cmd_import)

    # validate command
    p_validate = subparsers.add_parser("validate", help="Validate a backup artifact")
    p_validate.add_argument("backup_path", help="Path to backup JSON file")
    p_validate.set_defaults(func=cmd_validate)

    # profiles command
    p_profiles = subparsers.add_parser("profiles", help="List available profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, 1 for fatal errors, 2 for row failures).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
