"""
This module initializes the system package management used to install trust material.
It imports the `PackageManager` class from the `external` module.
"""

from .external import PackageManager

__all__ = ["PackageManager"]
