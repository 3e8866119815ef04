import shlex
import shutil
import logging
from pathlib import Path
from typing import Optional

from webhook_launcher.local import app_globals
from .build import resolve_artifact_path
from .process_utils import is_pid_one
from .startup import is_pinned_image

log = logging.getLogger(__name__)


def render_startup_command() -> str:
    """
    Returns the container startup command: the build, then exec of the binary
    only if the build exited zero.
    """
    artifact = resolve_artifact_path(Path("."), app_globals.ARTIFACT_RELATIVE_PATH)
    build_command = shlex.join(app_globals.BUILD_COMMAND)
    return f"{build_command} && exec ./{artifact.as_posix()}"


def render_dockerfile(use_launcher: bool = False) -> str:
    """
    Renders the container descriptor from the current settings.

    :param use_launcher: If True, the container runs this launcher instead of the plain shell command.
    :return: The Dockerfile content.
    """
    template = app_globals.LAUNCHER_DOCKERFILE_TEMPLATE if use_launcher else app_globals.DOCKERFILE_TEMPLATE
    return template.format(
        base_image=app_globals.BASE_IMAGE,
        workdir=Path(app_globals.WORKDIR).as_posix(),
        refresh_command=shlex.join(app_globals.PACKAGE_INDEX_REFRESH_COMMAND),
        install_command=shlex.join(app_globals.PACKAGE_INSTALL_COMMAND),
        trust_package=app_globals.TRUST_PACKAGE,
        startup_command=render_startup_command(),
    )


def write_dockerfile(target: Path, use_launcher: bool = False) -> None:
    """Writes the rendered Dockerfile to `target`."""
    try:
        target.write_text(render_dockerfile(use_launcher))
        log.info(f"Dockerfile written to '{target}'.")
    except OSError as e:
        log.critical(f"Failed to write Dockerfile to '{target}': {e}", exc_info=True)
        raise


def check_configuration(workdir: Optional[Path] = None) -> bool:
    """
    Validates that the launch sequence can run in the current container.

    :param workdir: Working directory to check. Defaults to the configured `WORKDIR`.
    :return: True if every check passed, otherwise False.
    """
    log.info("Performing configuration and path validation...")
    all_ok = True

    if is_pinned_image(app_globals.BASE_IMAGE):
        log.info(f"Config Check OK: Base image '{app_globals.BASE_IMAGE}' is pinned")
    else:
        log.error(f"CONFIG CHECK FAILED: Base image '{app_globals.BASE_IMAGE}' is not pinned")
        all_ok = False

    checks = {
        "Package manager": app_globals.PACKAGE_INDEX_REFRESH_COMMAND[0],
        "Build tool": app_globals.BUILD_COMMAND[0],
    }
    for name, executable in checks.items():
        path = shutil.which(executable)
        if path is None:
            log.error(f"CONFIG CHECK FAILED: {name} '{executable}' not found on PATH")
            all_ok = False
        else:
            log.info(f"Config Check OK: Found {name} at '{path}'")

    workdir = Path(workdir or app_globals.WORKDIR)
    if workdir.is_dir():
        log.info(f"Config Check OK: Working directory '{workdir}' exists")
    else:
        log.error(f"CONFIG CHECK FAILED: Working directory '{workdir}' does not exist")
        all_ok = False

    if not is_pid_one():
        log.warning("Not running as PID 1. Signals will reach the service only if the parent forwards them.")
    return all_ok
