"""
Container entry point for the webhook service.

Prepares the execution environment, builds the webhook binary from source and
replaces its own process with it.
"""

__version__ = "0.1.0"
