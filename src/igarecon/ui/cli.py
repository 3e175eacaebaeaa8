from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from igarecon.app import (
    load_iga,
    report_drift,
    report_identity,
    report_leavers,
    report_orphans,
    report_totals,
)
from igarecon.config import (
    ConfigurationError,
    configure_logging,
    level_for_verbosity,
    load_settings,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from igarecon.app import ReportResult
    from igarecon.config import Settings

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile identities and target systems")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the TOML settings file (defaults to $IGARECON_CONFIG)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for JSON reports (overrides $IGARECON_OUTPUT_DIR and the file)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("totals", help="Category totals and entitlements per OU")
    subparsers.add_parser("orphans", help="Enabled accounts without an identity owner")
    leavers = subparsers.add_parser(
        "leavers", help="Enabled accounts whose owners have all left"
    )
    leavers.add_argument(
        "--as-of",
        type=str,
        help="ISO-8601 date used as 'today' (defaults to the current date)",
    )
    identity = subparsers.add_parser("identity", help="Accounts and ownership of one identity")
    identity.add_argument(
        "--uid",
        type=str,
        required=True,
        help="Identity unique id",
    )
    subparsers.add_parser("drift", help="Pair the sync systems and report membership drift")

    return parser.parse_args(list(argv))


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _run(args: argparse.Namespace, settings: Settings, as_of: date | None) -> ReportResult:
    iga = load_iga(settings)
    output_dir = settings.output_dir
    if args.command == "totals":
        return report_totals(iga, output_dir)
    if args.command == "orphans":
        return report_orphans(iga, output_dir)
    if args.command == "leavers":
        return report_leavers(iga, output_dir, today=as_of)
    if args.command == "identity":
        return report_identity(iga, output_dir, args.uid)
    if args.command == "drift":
        return report_drift(iga, output_dir)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=level_for_verbosity(parsed_args.verbose))
        as_of = (
            _parse_iso_date(parsed_args.as_of)
            if parsed_args.command == "leavers" and parsed_args.as_of
            else None
        )
        settings = load_settings(parsed_args.config, output_dir=parsed_args.output_dir)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        result = _run(parsed_args, settings, as_of)
        log.info("Report %s finished: records=%s, path=%s", result.name, result.count, result.path)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
