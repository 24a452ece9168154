"""Command-line interface for camerabot.

Loads the configuration, sets up logging and runs the bot until
interrupted. Startup failures abort the process with exit status 1.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="camerabot",
        description="Telegram bot for running a camera script on a Raspberry Pi",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML/JSON configuration file (default: config.json)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the camerabot CLI."""
    args = parse_args(argv)

    from camerabot.bot.bridge import CameraBot, StartupError
    from camerabot.config.settings import ConfigError, load_settings
    from camerabot.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        setup_logging(verbose=args.verbose)
        logger.critical("%s", e)
        sys.exit(1)

    setup_logging(settings.logging, verbose=args.verbose, client_debug=settings.is_verbose)

    bot = CameraBot.from_settings(settings)
    try:
        asyncio.run(bot.run())
    except StartupError as e:
        logger.critical("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
