"""Logging setup utilities for camerabot.

Configures logging for the entire application based on the logging
configuration settings.
"""

from __future__ import annotations

import logging
import sys

from camerabot.config.settings import LoggingConfig


def setup_logging(
    config: LoggingConfig | None = None,
    verbose: bool = False,
    client_debug: bool = False,
) -> None:
    """Configure logging for the camerabot application.

    Sets up the ``camerabot`` logger with the specified level, format,
    and optional file handler.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        verbose: Force DEBUG level regardless of ``config.level``.
        client_debug: Show DEBUG records from ``camerabot.messaging`` only,
                i.e. the Bot API request and response dumps.
    """
    if config is None:
        config = LoggingConfig()

    level = "DEBUG" if verbose else config.level
    root_logger = logging.getLogger("camerabot")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("camerabot.messaging").setLevel(
        logging.DEBUG if client_debug else logging.NOTSET
    )

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.info("Logging initialized at %s level", level.upper())
