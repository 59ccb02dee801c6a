"""Command-line interface for running the keeper against a deployed protocol."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import load_config
from .logging_setup import configure_logging
from .services import Keeper, deploy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="synthvault",
        description="Synthetic-asset vault keeper",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--liquidator",
        default=None,
        help="Account that repays debt when liquidating (default: report only)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("poke", help="Poke delayed prices for the configured keys")
    sub.add_parser("scan", help="Report every open position")

    keeper_parser = sub.add_parser("keeper", help="Continuous keeper loop")
    keeper_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Loop interval in seconds (overrides config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    protocol = await deploy(config)
    keeper = Keeper(protocol.vault, protocol.oracle, config.keeper, args.liquidator)

    if args.command == "poke":
        poked = await keeper.poke_prices()
        logger.info("Poked: %s", ", ".join(poked) or "nothing")
    elif args.command == "scan":
        for report in await keeper.scan():
            logger.info(
                "%s · collateral=%d debt=%d ratio=%d liquidatable=%s",
                report.account,
                report.collateral,
                report.debt,
                report.collateral_ratio,
                report.liquidatable,
            )
    elif args.command == "keeper":
        await keeper.run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
