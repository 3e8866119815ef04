import logging
import sys
from typing import Optional

from webhook_launcher.local import app_globals
from webhook_launcher.log.handler import LokiHandler

# `off` maps above CRITICAL so nothing reaches the console.
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}


def parse_log_level(name: str) -> int:
    """Maps a `WEBHOOK_LOG_LEVEL` value to a logging level. Unknown values mean `warn`."""
    return LOG_LEVELS.get((name or "").strip().lower(), LOG_LEVELS[app_globals.DEFAULT_LOG_LEVEL])


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw subprocess logs."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')

    def format(self, record):
        # Output relayed from provisioning and build commands is printed as-is.
        if record.name.startswith('proc.'):
            return record.getMessage()
        return super().format(record)


def setup_logging(console_level: Optional[int] = None) -> None:
    """
    Configures the root logger for the launcher.
    This sets up handlers for the console and optionally Loki, clearing any
    previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output. Defaults to `LOG_LEVEL`.
    """
    if console_level is None:
        console_level = parse_log_level(app_globals.LOG_LEVEL)

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- Loki Handler (conditional) ---
    if app_globals.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(url=app_globals.LOKI_URL, org_id=app_globals.LOKI_ORG_ID)
            loki_handler.setLevel(logging.INFO)
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {app_globals.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
