"""
Process replacement. Once `handoff` succeeds the launcher's code stops running:
the service binary takes over this PID, its signals and its exit status.
"""
import os
import logging
from pathlib import Path
from typing import Callable, NoReturn, Optional, Sequence

from .errors import HandoffError
from .process_utils import current_process, is_executable

log = logging.getLogger(__name__)

# Signature of os.execv. On success it does not return.
ExecFunction = Callable[[str, Sequence[str]], None]


def verify_artifact(artifact: Optional[Path]) -> Path:
    """
    Checks that the built executable exists and can be executed.

    :raises HandoffError: 127 if missing, 126 if present but not executable.
    """
    if artifact is None or not artifact.exists():
        raise HandoffError(f"Executable '{artifact}' does not exist despite a successful build.")
    if not is_executable(artifact):
        raise HandoffError.not_executable(f"'{artifact}' is not an executable file.")
    return artifact


def flush_logging() -> None:
    """
    Flushes every root handler. Nothing after exec would do it.

    Handlers stay open: if exec fails, the error explaining the exit status
    still has to be logged and shipped.
    """
    for handler in logging.getLogger().handlers:
        handler.flush()


def replace_process(artifact: Optional[Path], exec_function: ExecFunction) -> None:
    """
    Replaces the current process image with the built executable using
    `exec_function`.

    The process identifier is preserved and the environment is inherited.
    With `os.execv` this call never returns; only a substitute `exec_function`
    can hand control back.

    :param artifact: Path to the built executable.
    :param exec_function: The exec implementation.
    :raises HandoffError: If the executable is unusable or the exec call fails.
    """
    path = verify_artifact(artifact)
    proc = current_process()
    if proc.pid != 1:
        log.warning(f"Launcher is PID {proc.pid}, not 1. A parent process may intercept signals meant for the service.")
    log.info(f"Handing off PID {proc.pid} to '{path}'.")
    flush_logging()

    try:
        exec_function(str(path), [str(path)])
    except PermissionError as e:
        raise HandoffError.not_executable(f"exec of '{path}' failed: {e}") from e
    except OSError as e:
        raise HandoffError(f"exec of '{path}' failed: {e}") from e


def handoff(artifact: Optional[Path]) -> NoReturn:
    """Execs the built service in place of the launcher. Never returns."""
    replace_process(artifact, os.execv)
    raise HandoffError(f"exec of '{artifact}' returned.")
