import argparse
import asyncio
from typing import Optional, Sequence

from loguru import logger

from .config import load_config
from .core import run_once
from .exceptions import ConfigError, TransmissionRSSError
from .utils import init_logger
from .version import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transmission-rss",
        description="Add torrents from RSS feeds to Transmission",
    )
    parser.add_argument("-c", "--config", required=True, help="Path to the config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    init_logger("DEBUG" if args.verbose else "INFO")
    logger.info(f"transmission-rss 版本: {__version__}")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 2

    try:
        report = asyncio.run(run_once(config))
    except TransmissionRSSError as e:
        logger.error(f"Run aborted: {e}")
        return 1

    if report.failed:
        logger.warning(
            f"{len(report.failed)}/{len(report.results)} feeds failed, {report.total_added} torrents added"
        )
        return 1

    logger.success(f"All {len(report.results)} feeds processed, {report.total_added} torrents added")
    return 0
