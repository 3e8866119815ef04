import logging
from pathlib import Path
from typing import Sequence

from .errors import BuildError
from .process_utils import RunCommand
from .state import ExecutionEnvironment, LifecycleState, StepResult

log = logging.getLogger(__name__)


def resolve_artifact_path(workdir: Path, relative_path: Path) -> Path:
    """Returns the deterministic location of the built executable."""
    return workdir / relative_path


def build_service(
    env: ExecutionEnvironment,
    run_command: RunCommand,
    build_command: Sequence[str],
    artifact_relative_path: Path,
) -> StepResult:
    """
    Compiles the service from source in the working directory.

    A non-zero exit from the build tool ends the step with that status. The
    artifact path is recorded on success; its existence is verified at handoff.

    :param env: The environment in state `TrustInstalled`, with `workdir` set.
    :param run_command: Runner used to execute the build tool.
    :param build_command: The fixed build invocation.
    :param artifact_relative_path: Output path relative to the working directory.
    :return: A result in state `Built`, or `Failed`.
    """
    log.info("--- Building service ---")
    code = run_command(build_command, "build", env.workdir)
    if code != 0:
        return StepResult.failure(env, BuildError(
            f"Build failed with exit status {code}.", exit_code=code
        ))

    artifact = resolve_artifact_path(env.workdir, artifact_relative_path)
    log.info(f"Build complete. Artifact: '{artifact}'")
    return StepResult.success(env.advance(LifecycleState.BUILT, artifact=artifact))
