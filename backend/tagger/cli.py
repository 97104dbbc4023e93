#!/usr/bin/env python3
"""
Match Tagger CLI - thin entrypoint for operator commands.

- show:   print the stored session
- export: write the ledger as CSV
- reset:  clear the stored session (needs --yes)
- roster: parse a roster file and print the names
- serve:  run the local HTTP server for the browser UI

Design Principles:
==================
- CLI is a dispatcher only; every change goes through SessionController
- No interactive prompts; destructive commands need --yes
- Errors go to stderr, exit non-zero on failure

Exit Codes:
===========
- 0: Success
- 1: Nothing to do (empty export, reset declined)
- 2: Configuration error
- 4: System error (file not found, permissions, etc.)
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

from . import __version__
from .config import ConfigError, TaggerSettings, load_settings
from .controller import SessionController
from .ledger.variants import RecordVariant, get_variant
from .persistence.storage import JsonFileStorage
from .persistence.store import SessionStore
from .roster import load_roster_file
from .session.display import format_time, record_meta, record_title
from .session.errors import ConfirmationDenied
from .session.intents import ExportCsv, Reset


def _settings(args: argparse.Namespace) -> TaggerSettings:
    """
    Resolve settings from command line flags and environment.

    Raises:
        SystemExit(2): Invalid configuration
    """
    try:
        return load_settings(
            variant=args.variant,
            storage_dir=args.storage_dir,
            log_level=args.log_level,
            host=getattr(args, "host", None),
            port=getattr(args, "port", None),
        )
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)


def _controller(settings: TaggerSettings, confirm=None) -> SessionController:
    storage = JsonFileStorage(settings.storage_dir)
    store = SessionStore(storage, get_variant(settings.variant), match_host=settings.match_host)
    return SessionController(store, confirm=confirm, match_host=settings.match_host)


def _refuse(prompt: str) -> bool:
    raise ConfirmationDenied(prompt)


def cmd_show(args: argparse.Namespace) -> NoReturn:
    """
    Print the stored session, newest record first.

    Exit codes:
        0: Always (an unreadable store shows the empty session)
    """
    settings = _settings(args)
    controller = _controller(settings)
    session = controller.snapshot()

    print(f"Variant: {settings.variant.value}")
    print(f"Match:   {session.match_id or '-'}  {session.match_url}")
    print(f"Player:  {session.player or '-'}")
    print(f"Mode:    {session.mode or '-'}")
    if session.video_id:
        print(f"Video:   {session.video_url} (start {format_time(session.video_start_offset_seconds)})")
    else:
        print("Video:   -")
    print(f"{controller.schema.noun.capitalize()}: {len(session.records)}")

    for _, record in session.records_by_recency():
        print(f"  #{record.sequence_number} {record_title(record)}")
        print(f"      {record_meta(record)}")

    if controller.last_load.error:
        print(f"WARNING: stored session not restored: {controller.last_load.error}", file=sys.stderr)
    sys.exit(0)


def cmd_export(args: argparse.Namespace) -> NoReturn:
    """
    Export the ledger as CSV.

    Writes to --output, to the suggested file name in the current
    directory, or to stdout with --output -.

    Exit codes:
        0: CSV written
        1: Nothing to export
        4: Output file could not be written
    """
    settings = _settings(args)
    controller = _controller(settings)
    result = controller.dispatch(ExportCsv())

    if result.export is None:
        for notice in result.notices:
            print(notice.message, file=sys.stderr)
        sys.exit(1)

    if args.output == "-":
        sys.stdout.write(result.export.text)
        sys.stdout.write("\n")
        sys.exit(0)

    out_path = Path(args.output) if args.output else Path(result.export.file_name)
    try:
        out_path.write_text(result.export.text, encoding="utf-8")
    except OSError as e:
        print(f"ERROR: Could not write {out_path}: {e}", file=sys.stderr)
        sys.exit(4)

    print(f"✓ Exported {result.export.row_count - 1} {controller.schema.noun} to {out_path}")
    sys.exit(0)


def cmd_reset(args: argparse.Namespace) -> NoReturn:
    """
    Clear the stored session.

    Exit codes:
        0: Session cleared
        1: Declined (no --yes)
    """
    settings = _settings(args)
    controller = _controller(settings, confirm=(lambda prompt: True) if args.yes else _refuse)

    try:
        controller.dispatch(Reset())
    except ConfirmationDenied as e:
        print(f"{e.prompt}", file=sys.stderr)
        print("Re-run with --yes to confirm.", file=sys.stderr)
        sys.exit(1)

    print(f"✓ Session cleared ({controller.schema.storage_key})")
    sys.exit(0)


def cmd_roster(args: argparse.Namespace) -> NoReturn:
    """
    Print the player names a roster file offers.

    Exit codes:
        0: Roster parsed
        4: File not found or unreadable
    """
    path = Path(args.file)
    try:
        names = load_roster_file(path)
    except (OSError, UnicodeDecodeError) as e:
        print(f"ERROR: Failed to read {path}: {e}", file=sys.stderr)
        sys.exit(4)

    for name in names:
        print(name)
    print(f"Loaded {len(names)} players from {path.name}", file=sys.stderr)
    sys.exit(0)


def cmd_serve(args: argparse.Namespace) -> NoReturn:
    """
    Run the local HTTP server for the browser UI.

    Exit codes:
        0: Server stopped
    """
    settings = _settings(args)
    if args.roster:
        settings = settings.model_copy(update={"roster_path": Path(args.roster).expanduser()})

    from .main import run_server

    try:
        run_server(settings)
    except KeyboardInterrupt:
        print("\nServer stopped by user.", file=sys.stderr)
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tagger',
        description='Match Tagger - tag gameplay moments against a match video',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--variant',
        choices=[v.value for v in RecordVariant],
        default=None,
        help='Ledger variant (default: TAGGER_VARIANT or event)'
    )
    parser.add_argument(
        '--storage-dir',
        default=None,
        help='Directory holding the stored session (default: TAGGER_STORAGE_DIR or ~/.match_tagger)'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (default: TAGGER_LOG_LEVEL or INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True, help='Command to execute')

    parser_show = subparsers.add_parser('show', help='Print the stored session')
    parser_show.set_defaults(func=cmd_show)

    parser_export = subparsers.add_parser('export', help='Export the ledger as CSV')
    parser_export.add_argument(
        '--output', '-o',
        default=None,
        help='Output file, or - for stdout (default: suggested file name)'
    )
    parser_export.set_defaults(func=cmd_export)

    parser_reset = subparsers.add_parser('reset', help='Clear the stored session')
    parser_reset.add_argument(
        '--yes',
        action='store_true',
        help='Confirm clearing all records and session settings'
    )
    parser_reset.set_defaults(func=cmd_reset)

    parser_roster = subparsers.add_parser('roster', help='Print the names in a roster file')
    parser_roster.add_argument('file', help='Path to roster CSV')
    parser_roster.set_defaults(func=cmd_roster)

    parser_serve = subparsers.add_parser('serve', help='Run the local HTTP server')
    parser_serve.add_argument('--host', default=None, help='Bind host (default: 127.0.0.1)')
    parser_serve.add_argument('--port', type=int, default=None, help='Bind port (default: 8085)')
    parser_serve.add_argument('--roster', default=None, help='Roster file loaded at startup')
    parser_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments, configures logging and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    level = (args.log_level or os.environ.get("TAGGER_LOG_LEVEL") or "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == '__main__':
    main()
