# main.py

"""Entry point for the charmed_site static site build."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.config.logging_config import setup_logging
from src.config.settings import DISCOVERY_SOURCES, SCRAPE_MODES, Settings

logger = logging.getLogger("charmed_site.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="charmed_site",
        description=(
            "Scrape the shop's listings and generate the static site."
        ),
    )
    parser.add_argument(
        "--discovery",
        choices=DISCOVERY_SOURCES,
        default=None,
        help="Where to find listing URLs (default: from settings).",
    )
    parser.add_argument(
        "--scrape-mode",
        choices=SCRAPE_MODES,
        default=None,
        dest="scrape_mode",
        help="How to read each listing (default: from settings).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_dir",
        help="Site output root (default: site/).",
    )
    parser.add_argument(
        "--refresh-images",
        action="store_true",
        default=False,
        dest="refresh_images",
        help="Re-download images even when a cached file exists.",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply CLI flags on top of environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.discovery:
        overrides["DISCOVERY_SOURCE"] = args.discovery
    if args.scrape_mode:
        overrides["SCRAPE_MODE"] = args.scrape_mode
    if args.output_dir:
        overrides["OUTPUT_ROOT"] = Path(args.output_dir)
    if args.refresh_images:
        overrides["REFRESH_IMAGES"] = True
    return Settings.from_env().with_overrides(**overrides)


def main() -> None:
    """Parse flags, configure logging and run one build."""
    args = _build_parser().parse_args()
    settings = _settings_from_args(args)

    log_file = setup_logging(settings)
    logger.info("charmed_site starting, log file: %s", log_file)

    from src.cli.runner import run_build

    exit_code = asyncio.run(run_build(settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
