import time
import logging
from functools import partial
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from webhook_launcher.local import app_globals, external
from . import build, handoff, startup
from .errors import LauncherError
from .process_utils import CommandRunner, RunCommand
from .state import ExecutionEnvironment, LifecycleState, StepResult

log = logging.getLogger(__name__)

Step = Callable[[ExecutionEnvironment], StepResult]


class LifecycleSupervisor:
    """
    Prepares the container environment for the webhook service, builds it and
    replaces itself with it.

    The sequence is an ordered list of steps. Each step takes the current
    environment and returns the next one; the first failure ends the sequence
    and nothing after it runs.
    """

    def __init__(
        self,
        run_command: Optional[RunCommand] = None,
        exec_function: Optional[handoff.ExecFunction] = None,
        base_image: Optional[str] = None,
        workdir: Optional[Path] = None,
        build_command: Optional[Sequence[str]] = None,
    ) -> None:
        self.config = app_globals.get_all_settings()
        self.run_command = run_command or CommandRunner(self.config["GRACEFUL_SHUTDOWN_TIMEOUT"])
        self.exec_function = exec_function
        self.base_image = base_image or self.config["BASE_IMAGE"]
        self.workdir = Path(workdir or self.config["WORKDIR"])
        self.build_command: List[str] = list(build_command or self.config["BUILD_COMMAND"])
        self.package_manager = external.PackageManager(self.run_command)
        self.environment = ExecutionEnvironment()
        self.history: List[LifecycleState] = [self.environment.state]

    @property
    def state(self) -> LifecycleState:
        return self.environment.state

    def steps(self) -> List[Tuple[str, Step]]:
        """The provisioning steps, in order. Handoff is not one of them."""
        return [
            ("establish base environment", partial(
                startup.establish_base_environment,
                base_image=self.base_image,
                build_tool=self.build_command[0],
            )),
            ("set working context", partial(startup.set_working_context, workdir=self.workdir)),
            ("install trust material", partial(
                self.package_manager.install_trust_material,
                package=self.config["TRUST_PACKAGE"],
            )),
            ("build", partial(
                build.build_service,
                run_command=self.run_command,
                build_command=self.build_command,
                artifact_relative_path=self.config["ARTIFACT_RELATIVE_PATH"],
            )),
        ]

    def _record(self, environment: ExecutionEnvironment) -> None:
        if environment.state is not self.environment.state:
            self.history.append(environment.state)
        self.environment = environment

    def log_context(self, step: str) -> Dict[str, str]:
        """`extra=` fields that label log records with the step and current state."""
        return {"step": step, "state": self.state.value}

    def provision(self) -> StepResult:
        """
        Runs every provisioning step in order, stopping at the first failure.

        :return: The last step's result. On success the state is `Built`.
        """
        result = StepResult.success(self.environment)
        for name, step in self.steps():
            log.info(f"Step '{name}' started.", extra=self.log_context(name))
            start_time = time.monotonic()
            try:
                result = step(self.environment)
            except LauncherError as e:
                result = StepResult.failure(self.environment, e)
            self._record(result.environment)
            if not result.ok:
                log.critical(f"Step '{name}' failed: {result.error}", extra=self.log_context(name))
                return result
            log.debug(f"Step '{name}' finished in {time.monotonic() - start_time:.2f} seconds.", extra=self.log_context(name))
        return result

    def hand_off(self) -> ExecutionEnvironment:
        """
        Replaces the process with the built service and moves to `Running`.

        With the real `os.execv` this never returns. A substitute exec function
        that returns simulates a successful handoff.

        :raises HandoffError: If the executable cannot be started.
        """
        log.info("Step 'handoff' started.", extra=self.log_context("handoff"))
        try:
            if self.exec_function is None:
                handoff.handoff(self.environment.artifact)
            else:
                handoff.replace_process(self.environment.artifact, self.exec_function)
        except LauncherError:
            self._record(self.environment.advance(LifecycleState.FAILED))
            raise
        self._record(self.environment.advance(LifecycleState.RUNNING))
        return self.environment

    def run(self) -> ExecutionEnvironment:
        """
        Runs the whole launch sequence: provisioning steps, then handoff.

        :raises LauncherError: The failing step's error, carrying its exit code.
        """
        log.info("=" * 20 + " Webhook Launcher Starting " + "=" * 20)
        result = self.provision()
        if not result.ok:
            raise result.error
        return self.hand_off()
