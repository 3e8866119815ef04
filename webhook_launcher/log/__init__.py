"""
Logging module for the launcher.
This module provides functionality to set up console and Loki logging.
"""

from .setup import parse_log_level, setup_logging

__all__ = ["setup_logging", "parse_log_level"]
