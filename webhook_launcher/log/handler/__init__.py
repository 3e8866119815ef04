"""
Logging handlers for the launcher.
This module provides handlers that ship log records to external backends.
"""

from .loki import LokiHandler

__all__ = ["LokiHandler"]
