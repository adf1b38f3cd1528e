"""Command-line interface for the index tool.

Subcommands:

1. `neo4j-index dump`: Write the live index catalog to a file
2. `neo4j-index load`: Create indexes and constraints from a dump file,
   skipping those that already exist by name
3. `neo4j-index rebuild`: Drop and recreate every index one at a time,
   resumable through a checkpoint file
4. `neo4j-index drop`: Drop every index and constraint named in a dump file
"""

import argparse
import asyncio
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console

from .config import DEFAULT_CHECKPOINT_FILE, DEFAULT_DUMP_FILE, ConnectionSettings
from .connection import open_driver
from .console import Reporter
from .exceptions import IndexToolError
from .orchestrator import IndexOrchestrator

console = Console()


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the connection options shared by every subcommand.

    Defaults come from NEO4J_* environment variables (after .env loading).

    Args:
        parser: Subcommand parser.
    """
    defaults = ConnectionSettings.from_env()
    parser.add_argument("-a", "--uri", default=defaults.uri, help="Neo4j URI")
    parser.add_argument("-u", "--username", default=defaults.username, help="Neo4j username")
    parser.add_argument("-p", "--password", default=defaults.password, help="Neo4j password")
    parser.add_argument("--database", default=defaults.database, help="Neo4j database name")
    parser.add_argument(
        "-n",
        "--no-auth",
        action="store_true",
        help="Connect without authentication",
    )


def _create_dump_parser(subparsers: argparse._SubParsersAction) -> None:
    """Create the dump subcommand parser.

    Args:
        subparsers: Subparsers action to add the command to.
    """
    dump_parser = subparsers.add_parser(
        "dump",
        help="Dump all indexes and constraints to a file for load",
    )
    dump_parser.add_argument(
        "-f",
        "--filename",
        type=Path,
        default=Path(DEFAULT_DUMP_FILE),
        help=f"File to write (default: {DEFAULT_DUMP_FILE})",
    )
    dump_parser.add_argument(
        "-l",
        "--lucene",
        nargs="+",
        default=[],
        metavar="PROPERTY",
        help="Use a Lucene-backed provider for any index covering these properties",
    )
    _add_connection_arguments(dump_parser)


def _create_load_parser(subparsers: argparse._SubParsersAction) -> None:
    """Create the load subcommand parser.

    Args:
        subparsers: Subparsers action to add the command to.
    """
    load_parser = subparsers.add_parser(
        "load",
        help="Create indexes and constraints from a dump file, skipping existing names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Create every index and constraint in a dump file, waiting for each batch to
come online before submitting the next. Batches are sized by label row count:
  <1k rows      100 per batch
  <100k rows    10 per batch
  larger        1 per batch
        """,
    )
    load_parser.add_argument(
        "-f",
        "--filename",
        type=Path,
        default=Path(DEFAULT_DUMP_FILE),
        help=f"File to load (default: {DEFAULT_DUMP_FILE})",
    )
    load_parser.add_argument(
        "-r",
        "--recreate",
        action="store_true",
        help="Drop and recreate entries that already exist",
    )
    load_parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Just print all the create statements",
    )
    load_parser.add_argument(
        "--individual",
        nargs="+",
        default=[],
        metavar="NAME",
        help="Build these entries one at a time instead of in batches",
    )
    _add_connection_arguments(load_parser)


def _create_rebuild_parser(subparsers: argparse._SubParsersAction) -> None:
    """Create the rebuild subcommand parser.

    Args:
        subparsers: Subparsers action to add the command to.
    """
    rebuild_parser = subparsers.add_parser(
        "rebuild",
        help="Rebuild all indexes and constraints one by one",
    )
    rebuild_parser.add_argument(
        "-r",
        "--resume",
        type=Path,
        default=Path(DEFAULT_CHECKPOINT_FILE),
        help=f"File storing the last index started (default: {DEFAULT_CHECKPOINT_FILE})",
    )
    _add_connection_arguments(rebuild_parser)


def _create_drop_parser(subparsers: argparse._SubParsersAction) -> None:
    """Create the drop subcommand parser.

    Args:
        subparsers: Subparsers action to add the command to.
    """
    drop_parser = subparsers.add_parser(
        "drop",
        help="Drop indexes and constraints listed in a dump file",
    )
    drop_parser.add_argument(
        "-f",
        "--filename",
        type=Path,
        required=True,
        help="Dump file naming the entries to drop",
    )
    _add_connection_arguments(drop_parser)


def _settings_from_args(args: argparse.Namespace) -> ConnectionSettings:
    return ConnectionSettings(
        uri=args.uri,
        username=args.username,
        password=args.password,
        database=args.database,
        no_auth=args.no_auth,
    )


async def _run_command(args: argparse.Namespace) -> None:
    """Connect and dispatch to the orchestrator.

    Args:
        args: Parsed command-line arguments.
    """
    settings = _settings_from_args(args)
    console.print(f"Database: {settings.uri}")

    driver = await open_driver(settings)
    try:
        orchestrator = IndexOrchestrator(
            driver,
            settings.database,
            reporter=Reporter(console),
        )

        if args.command == "dump":
            descriptors = await orchestrator.dump(args.filename, args.lucene)
            console.print(f"[green]Wrote {len(descriptors)} entries to {args.filename}[/]")
        elif args.command == "load":
            report = await orchestrator.load(
                args.filename,
                recreate=args.recreate,
                dry_run=args.dry_run,
                force_individual=args.individual,
            )
            if not args.dry_run:
                console.print()
                console.print("Summary:")
                console.print(f"  - Created: {len(report.created)}")
                console.print(f"  - Skipped (existing): {len(report.skipped)}")
                console.print(f"  - Invalid: {len(report.invalid)}")
                console.print(f"  - Failed: {len(report.failed)}")
                for name in report.failed:
                    console.print(f"    [red]{name}[/]")
        elif args.command == "rebuild":
            rebuilt = await orchestrator.rebuild(args.resume)
            console.print(f"[green]Rebuilt {len(rebuilt)} entries[/]")
        elif args.command == "drop":
            dropped = await orchestrator.drop(args.filename)
            console.print(f"[green]Dropped {len(dropped)} entries[/]")
    finally:
        await driver.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="neo4j-index",
        description="Dump, load and rebuild Neo4j indexes and constraints safely",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  neo4j-index dump -f dump.json
  neo4j-index load -f dump.json
  neo4j-index load -f dump.json --recreate
  neo4j-index rebuild --resume lastIndex

Environment variables:
  NEO4J_URI          - Database URI (default: bolt://localhost:7687)
  NEO4J_USERNAME     - Database username
  NEO4J_PASSWORD     - Database password
  NEO4J_DATABASE     - Database name (default: neo4j)
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    _create_dump_parser(subparsers)
    _create_load_parser(subparsers)
    _create_rebuild_parser(subparsers)
    _create_drop_parser(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the index tool CLI."""
    load_dotenv()

    args = build_parser().parse_args(argv)

    try:
        asyncio.run(_run_command(args))
    except IndexToolError as e:
        console.print(f"\n[red]Error: {e}[/]")
        raise SystemExit(1) from None
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/]")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
