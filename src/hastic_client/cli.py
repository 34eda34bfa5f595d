"""Command-line interface argument parsing for the Hastic client.

Subcommands:
- check: probe the datasource and report availability
- info: print server build information
- status: poll the status of an analytic unit
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _positive_int(value: str) -> int:
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {count}")
    return count


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with ``command``, ``url``, ``log_level``,
        ``env_file`` and ``json_logs``, plus ``unit_id``, ``count`` and
        ``interval`` for the status command.
    """
    parser = argparse.ArgumentParser(
        prog="hastic-client",
        description="Hastic analytic client - talk to a Hastic server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--url",
        default=None,
        help="Hastic datasource URL (overrides HASTIC_DATASOURCE_URL)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides HASTIC_LOG_LEVEL)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Check that the datasource is a supported Hastic server")
    subparsers.add_parser("info", help="Print Hastic server build information as JSON")

    status = subparsers.add_parser("status", help="Poll the status of an analytic unit")
    status.add_argument("unit_id", help="Analytic unit id")
    status.add_argument(
        "--count",
        type=_positive_int,
        default=1,
        help="Number of status polls before exiting (default: 1)",
    )
    status.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls (overrides HASTIC_STATUS_POLL_INTERVAL)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
