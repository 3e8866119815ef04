"""
Local package for the webhook launcher.

This package provides launcher-level global configuration through the
app_globals module.
"""

from .global_config import app_globals

__all__ = ["app_globals"]
