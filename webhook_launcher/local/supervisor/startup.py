import os
import shutil
import logging
from pathlib import Path

from webhook_launcher.local import app_globals
from .errors import EnvironmentSetupError
from .state import ExecutionEnvironment, LifecycleState, StepResult

log = logging.getLogger(__name__)


def is_pinned_image(reference: str) -> bool:
    """
    Checks that an image reference names a fixed version.

    A digest (`name@sha256:...`) is always pinned. A tag is pinned unless it is
    missing or one of the known floating tags such as `latest`.

    :param reference: An image reference like `rust:1.70-slim-bullseye`.
    :return: True if the reference is pinned.
    """
    if not reference:
        return False
    if "@" in reference:
        return True
    # The last colon after the last slash separates the tag; earlier ones are registry ports.
    name = reference.rsplit("/", 1)[-1]
    if ":" not in name:
        return False
    tag = name.rsplit(":", 1)[1]
    return bool(tag) and tag not in app_globals.FLOATING_IMAGE_TAGS


def establish_base_environment(env: ExecutionEnvironment, base_image: str, build_tool: str) -> StepResult:
    """
    Records the pinned base image and checks the image can build the service.

    :param env: The environment in state `Init`.
    :param base_image: The pinned base image reference.
    :param build_tool: The build tool that the image must provide on PATH.
    :return: A result in state `EnvReady`, or `Failed`.
    """
    if not is_pinned_image(base_image):
        return StepResult.failure(env, EnvironmentSetupError(
            f"Base image '{base_image}' is not pinned to a fixed version."
        ))

    tool_path = shutil.which(build_tool)
    if tool_path is None:
        return StepResult.failure(env, EnvironmentSetupError(
            f"Build tool '{build_tool}' not found on PATH. Base image '{base_image}' is incompatible."
        ))

    log.info(f"Base environment: {base_image} (build tool at '{tool_path}')")
    return StepResult.success(env.advance(LifecycleState.ENV_READY, base_image=base_image))


def set_working_context(env: ExecutionEnvironment, workdir: Path) -> StepResult:
    """
    Creates the working directory if needed and makes it the current one.

    :param env: The environment in state `EnvReady`.
    :param workdir: Absolute path of the working directory.
    """
    try:
        workdir.mkdir(parents=True, exist_ok=True)
        os.chdir(workdir)
    except OSError as e:
        return StepResult.failure(env, EnvironmentSetupError(
            f"Cannot use '{workdir}' as working directory: {e}"
        ))

    log.info(f"Working directory set to '{workdir}'.")
    return StepResult.success(env.evolve(workdir=workdir))
