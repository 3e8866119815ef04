"""Exceptions raised by the lifecycle steps. Each one knows its process exit code."""

from typing import Optional

from webhook_launcher.settings import (
    EXIT_ENVIRONMENT_ERROR,
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
)


class LauncherError(Exception):
    """Base class for every failure that ends the launch sequence."""

    default_exit_code = 1

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = self.default_exit_code if exit_code is None else exit_code


class EnvironmentSetupError(LauncherError):
    """The base image is unpinned or incompatible, or the working directory is unusable."""

    default_exit_code = EXIT_ENVIRONMENT_ERROR


class TrustInstallationError(LauncherError):
    """The package index refresh or the CA bundle install exited non-zero."""


class BuildError(LauncherError):
    """The build tool exited non-zero."""


class HandoffError(LauncherError):
    """The built executable is missing, not executable, or exec itself failed."""

    default_exit_code = EXIT_NOT_FOUND

    @classmethod
    def not_executable(cls, message: str) -> "HandoffError":
        return cls(message, exit_code=EXIT_NOT_EXECUTABLE)


class SignalAbort(LauncherError):
    """A termination signal arrived before handoff."""

    def __init__(self, signum: int, exit_code: int):
        super().__init__(f"Received signal {signum} before handoff.", exit_code=exit_code)
        self.signum = signum


class InvalidTransitionError(Exception):
    """A lifecycle state change not permitted by the state machine."""
