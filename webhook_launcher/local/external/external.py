import logging
from typing import List, Optional, Sequence

from webhook_launcher.local import app_globals
from webhook_launcher.local.supervisor.errors import TrustInstallationError
from webhook_launcher.local.supervisor.process_utils import RunCommand
from webhook_launcher.local.supervisor.state import ExecutionEnvironment, LifecycleState, StepResult

log = logging.getLogger(__name__)


class PackageManager:
    """Installs system packages through the base image's package manager."""

    def __init__(
        self,
        run_command: RunCommand,
        refresh_command: Optional[Sequence[str]] = None,
        install_command: Optional[Sequence[str]] = None,
    ):
        self.run_command = run_command
        self.refresh_command: List[str] = list(refresh_command or app_globals.PACKAGE_INDEX_REFRESH_COMMAND)
        self.install_command: List[str] = list(install_command or app_globals.PACKAGE_INSTALL_COMMAND)

    def refresh_index(self) -> int:
        """Refreshes the package index. Returns the command's exit status."""
        return self.run_command(self.refresh_command, "package-index", None)

    def install(self, package: str) -> int:
        """Installs a single package. Returns the command's exit status."""
        return self.run_command(self.install_command + [package], f"install-{package}", None)

    def install_trust_material(self, env: ExecutionEnvironment, package: str) -> StepResult:
        """
        BLOCKING: Refreshes the index, then installs the CA certificate bundle.

        The install never runs if the refresh fails, and a failure in either
        command ends the step with that command's exit status.

        :param env: The environment in state `EnvReady`.
        :param package: The trust-material package name.
        :return: A result in state `TrustInstalled`, or `Failed`.
        """
        log.info(f"--- Installing trust material ({package}) ---")
        code = self.refresh_index()
        if code != 0:
            return StepResult.failure(env, TrustInstallationError(
                f"Package index refresh failed with exit status {code}.", exit_code=code
            ))

        code = self.install(package)
        if code != 0:
            return StepResult.failure(env, TrustInstallationError(
                f"Installing '{package}' failed with exit status {code}.", exit_code=code
            ))

        log.info(f"Trust material '{package}' installed.")
        return StepResult.success(env.advance(
            LifecycleState.TRUST_INSTALLED,
            trusted_packages=env.trusted_packages + (package,),
        ))
