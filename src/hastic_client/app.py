"""Command line entry point for the Hastic client."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys

from hastic_client.cli import parse_args
from hastic_client.config import Config, load_config
from hastic_client.exceptions import HasticClientError
from hastic_client.logging import get_logger, setup_logging
from hastic_client.notifications import ALERT_ERROR, ALERT_SUCCESS, ALERT_WARNING
from hastic_client.service import AnalyticService

logger = get_logger(__name__)


def _print_alert(lines: list[str]) -> None:
    print("\n".join(lines), file=sys.stderr)


async def _run(command: str, service: AnalyticService, args: argparse.Namespace) -> int:
    for event in (ALERT_SUCCESS, ALERT_ERROR, ALERT_WARNING):
        service.bus.subscribe(event, _print_alert)

    if command == "check":
        return 0 if await service.check_datasource_availability() else 1

    if command == "info":
        info = await service.get_server_info()
        print(json.dumps(info.to_dict(), indent=2))
        return 0

    if command == "status":
        async with service.get_status_generator(
            args.unit_id, args.interval
        ) as statuses:
            async for status in statuses:
                print(json.dumps(dataclasses.asdict(status)))
                if statuses.fetch_count >= args.count:
                    break
        return 0

    raise ValueError(f"Unknown command: {command}")


async def run(config: Config, args: argparse.Namespace) -> int:
    async with AnalyticService.from_config(config) as service:
        return await _run(args.command, service, args)


def main(args: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)
    config = load_config(parsed.env_file)

    overrides: dict[str, object] = {}
    if parsed.url:
        overrides["datasource_url"] = parsed.url.rstrip("/")
    if parsed.log_level:
        overrides["log_level"] = parsed.log_level
    if parsed.json_logs:
        overrides["log_json"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)  # type: ignore[arg-type]

    setup_logging(config.log_level, json_format=config.log_json, diagnostic_tags=config.diagnostic_tags)

    try:
        return asyncio.run(run(config, parsed))
    except HasticClientError as e:
        logger.error("%s", e)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
