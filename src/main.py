# src/main.py - v1
"""CLI entry point: serve, batches, solutions, parse, export commands.

Usage:
    primedash serve [--host H] [--port P]
    primedash batches [--batch-range R] [--limit N] [--json]
    primedash solutions [--batch-range R] [--limit N] [--json]
    primedash parse <file>
    primedash export <batches|solutions> [-o file]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from primedash.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _setup_logging(args.verbose)

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="primedash",
        description=f"primedash v{__version__} - prime cubes search dashboard backend",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--logs-path", type=Path, default=None,
        help="Logs directory (default: LOGS_PATH or ./logs)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP/WebSocket server")
    p_serve.add_argument("--host", default=None, help="Bind address")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port")
    p_serve.add_argument(
        "--no-watch", action="store_true",
        help="Do not watch the logs directory for changes",
    )
    p_serve.set_defaults(func=_cmd_serve)

    # --- batches / solutions ---
    for name, func in (("batches", _cmd_batches), ("solutions", _cmd_solutions)):
        p_list = subparsers.add_parser(name, help=f"List {name}")
        p_list.add_argument("--batch-range", default=None, help="Range token, e.g. 1-100")
        p_list.add_argument("--limit", type=int, default=None, help="Maximum records")
        p_list.add_argument(
            "--json", action="store_true", dest="as_json",
            help="Print JSON instead of a table",
        )
        p_list.set_defaults(func=func)

    # --- parse ---
    p_parse = subparsers.add_parser("parse", help="Parse one run-log bottom-up")
    p_parse.add_argument("file", type=Path, help="Path to run-log")
    p_parse.set_defaults(func=_cmd_parse)

    # --- export ---
    p_export = subparsers.add_parser("export", help="Export records as CSV")
    p_export.add_argument("kind", choices=["batches", "solutions"])
    p_export.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output file (default: stdout)",
    )
    p_export.set_defaults(func=_cmd_export)

    return parser


def _settings(args: argparse.Namespace, **overrides: object):
    from primedash.config.settings import load_settings

    if args.logs_path is not None:
        overrides["logs_path"] = args.logs_path
    return load_settings(**overrides)


def _list_query(args: argparse.Namespace):
    from primedash.query.models import FilterCriteria, PageCriteria, RecordQuery

    return RecordQuery(
        filter=FilterCriteria(batch_range=args.batch_range),
        page=PageCriteria(limit=args.limit),
    )


async def _cmd_serve(args: argparse.Namespace) -> int:
    """Run uvicorn with the application factory."""
    import uvicorn

    from primedash.logging.logger import setup_logging_from_settings
    from primedash.server.app import create_app

    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.no_watch:
        overrides["watch_enabled"] = False
    settings = _settings(args, **overrides)
    setup_logging_from_settings(settings)

    config = uvicorn.Config(
        create_app(settings), host=settings.host, port=settings.port, log_config=None,
    )
    await uvicorn.Server(config).serve()
    return 0


async def _cmd_batches(args: argparse.Namespace) -> int:
    from primedash.batch.scanner import LogDirectoryScanner
    from primedash.streaming.generators import iter_batches

    scanner = LogDirectoryScanner.from_settings(_settings(args))
    batches = [b async for b in iter_batches(scanner, _list_query(args))]

    if args.as_json:
        print(json.dumps([b.model_dump(mode="json") for b in batches], indent=2))
        return 0

    print(f"\n{len(batches)} batches in {scanner.logs_path}:")
    for b in batches:
        print(
            f"  {b.range_token:<20} found={b.parameters.found!s:<6} "
            f"checked={b.parameters.checked!s:<16} end={b.end_time}"
        )
    return 0


async def _cmd_solutions(args: argparse.Namespace) -> int:
    from primedash.batch.scanner import LogDirectoryScanner
    from primedash.streaming.generators import iter_solutions

    scanner = LogDirectoryScanner.from_settings(_settings(args))
    solutions = [s async for s in iter_solutions(scanner, _list_query(args))]

    if args.as_json:
        print(json.dumps([s.model_dump(mode="json") for s in solutions], indent=2))
        return 0

    print(f"\n{len(solutions)} solutions:")
    for s in solutions:
        marker = "" if s.is_unique else f" (duplicates: {s.duplicate_count})"
        print(f"  {s.batch_range:<20} {s.parameters}  sum={s.cube_value}{marker}")
    return 0


async def _cmd_parse(args: argparse.Namespace) -> int:
    """Print the LogFileInfo of one run-log as JSON."""
    from primedash.parsing.bottom_up import parse_log_file_from_bottom

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    info = await parse_log_file_from_bottom(file_path)
    if info is None:
        logger.error("No terminal line found in %s", file_path)
        return 1
    print(info.model_dump_json(indent=2))
    return 0


async def _cmd_export(args: argparse.Namespace) -> int:
    """Stream all batches or solutions as CSV."""
    from primedash.batch.scanner import LogDirectoryScanner
    from primedash.streaming import generators
    from primedash.streaming.transport import FileTransport
    from primedash.streaming.writers import CsvStreamWriter

    scanner = LogDirectoryScanner.from_settings(_settings(args))
    if args.kind == "batches":
        records = generators.iter_batches(scanner)
    else:
        records = generators.iter_solutions(scanner)

    if args.output is None:
        await CsvStreamWriter(FileTransport(sys.stdout.buffer)).write_all(records)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("wb") as f:
            count = await CsvStreamWriter(FileTransport(f)).write_all(records)
        logger.info("Exported %d %s to %s", count, args.kind, args.output)
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from primedash.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else "INFO",
        log_format="text",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
