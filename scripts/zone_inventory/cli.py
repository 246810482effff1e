"""CLI entry point: run, scheduler, verify."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from scripts.zone_inventory import __version__
from scripts.zone_inventory.client import CloudflareClient
from scripts.zone_inventory.config import DEFAULT_CONFIG_PATH, load_config
from scripts.zone_inventory.errors import ApiError, ConfigError, NoTenantsProcessedError
from scripts.zone_inventory.logging_config import configure_logging
from scripts.zone_inventory.pagination import Deadline

logger = logging.getLogger("zone_inventory.cli")


def cmd_run(args: argparse.Namespace) -> int:
    """Run one report and write the CSV."""
    from scripts.zone_inventory.runner import run_report

    config = load_config(args.config, output_path=args.output)
    logger.info("Loaded config '%s' with %d accounts", args.config, len(config.accounts))
    try:
        result = run_report(config)
    except NoTenantsProcessedError as exc:
        for tenant_id, cause in exc.failures.items():
            logger.error("Account '%s' failed: %s", tenant_id, cause)
        logger.error("%s. Check the config and API tokens.", exc)
        return 1
    logger.info(
        "Report written to '%s': %d/%d accounts, %d DNS records",
        config.settings.output_path,
        result.processed_count,
        result.configured_count,
        len(result.rows),
    )
    return 0


def cmd_scheduler(args: argparse.Namespace) -> int:
    """Start the daily scheduling loop."""
    from scripts.zone_inventory.scheduler import start_scheduler

    config = load_config(args.config)
    start_scheduler(config)
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Check every account's API token and print a status table."""
    config = load_config(args.config)
    settings = config.settings

    fmt = "{:<30}  {:<8}  {}"
    print(fmt.format("ACCOUNT", "STATUS", "DETAIL"))
    print("-" * 80)
    failed = 0
    for account in config.accounts:
        client = CloudflareClient(
            account.api_token,
            base_url=settings.api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            deadline=Deadline(settings.timeout_seconds),
        )
        try:
            client.verify_token()
            print(fmt.format(account.name[:30], "OK", ""))
        except (ApiError, TimeoutError) as exc:
            failed += 1
            print(fmt.format(account.name[:30], "FAILED", str(exc)[:60]))
        finally:
            client.close()
    return 1 if failed else 0


def _add_common_options(parser: argparse.ArgumentParser, defaults: bool) -> None:
    """Options accepted both before and after the subcommand.

    Subcommand copies have SUPPRESS defaults: a value given before the
    subcommand is kept unless repeated after it.
    """
    parser.add_argument(
        "--config", "-c",
        default=os.environ.get("ZONE_INVENTORY_CONFIG", DEFAULT_CONFIG_PATH) if defaults else argparse.SUPPRESS,
        help=f"Path to the JSON config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO") if defaults else argparse.SUPPRESS,
        help="Log level (default: INFO)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zone-inventory",
        description="Cloudflare zone and DNS record inventory across accounts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_common_options(parser, defaults=True)
    common = argparse.ArgumentParser(add_help=False)
    _add_common_options(common, defaults=False)

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", parents=[common], help="Run one report")
    run_parser.add_argument(
        "--output", "-o",
        default=None,
        help="CSV output path (default: from config, cloudflare_domains.csv)",
    )
    run_parser.set_defaults(func=cmd_run)

    sched_parser = subparsers.add_parser("scheduler", parents=[common], help="Run the report every day")
    sched_parser.set_defaults(func=cmd_scheduler)

    verify_parser = subparsers.add_parser("verify", parents=[common], help="Check every account's API token")
    verify_parser.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.func(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
