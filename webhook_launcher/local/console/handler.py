import sys
import logging
from pathlib import Path
from typing import Callable, List, Optional

import setproctitle

from webhook_launcher.local import app_globals
from webhook_launcher.local.supervisor import LauncherError, LifecycleSupervisor
from webhook_launcher.local.supervisor.config_utils import (
    check_configuration,
    render_dockerfile,
    render_startup_command,
    write_dockerfile,
)
from webhook_launcher.local.supervisor.process_utils import CommandRunner

log = logging.getLogger(__name__)


def handle_run_command(
    args: List[str],
    supervisor_factory: Optional[Callable[[], LifecycleSupervisor]] = None,
) -> int:
    """
    Runs the launch sequence. On success the process becomes the webhook
    service and this function never returns.

    :param args: Unused.
    :param supervisor_factory: Builds the supervisor; tests substitute their own.
    :return: The failing step's exit code.
    """
    if supervisor_factory is None:
        setproctitle.setproctitle(app_globals.PROCESS_TITLE)
        runner = CommandRunner(app_globals.GRACEFUL_SHUTDOWN_TIMEOUT)
        runner.install_signal_handlers()
        supervisor = LifecycleSupervisor(run_command=runner)
    else:
        supervisor = supervisor_factory()

    log.debug(f"config: {app_globals.get_all_settings()}")
    try:
        supervisor.run()
    except LauncherError as e:
        log.critical(
            f"Launch aborted in state {supervisor.state.value}: {e} (exit status {e.exit_code})",
            extra={"state": supervisor.state.value},
        )
        return e.exit_code
    return 0


def handle_check_config_command(args: List[str]) -> int:
    return 0 if check_configuration() else 1


def handle_dockerfile_command(args: List[str]) -> int:
    """
    Prints the rendered Dockerfile, or writes it when a path is given.

    Usage: dockerfile [--launcher] [PATH]
    """
    use_launcher = "--launcher" in args
    paths = [a for a in args if a != "--launcher"]
    if paths:
        try:
            write_dockerfile(Path(paths[0]), use_launcher)
        except OSError:
            return 1
    else:
        sys.stdout.write(render_dockerfile(use_launcher))
    return 0


def handle_startup_command_command(args: List[str]) -> int:
    print(render_startup_command())
    return 0


def print_help(args: Optional[List[str]] = None) -> int:
    """Prints the help message with all available commands."""
    print("\nAvailable Commands:")
    print("  run                       - Install trust material, build the webhook and exec it.")
    print("  check-config              - Validate the base image pin, tool paths and working directory.")
    print("  dockerfile [--launcher] [PATH]")
    print("                            - Print the container descriptor, or write it to PATH.")
    print("  startup-command           - Print the shell startup command.")
    print("  help                      - Show this help message.")
    print("\nGlobal flags:")
    print("  --verbose                 - Log at DEBUG level regardless of WEBHOOK_LOG_LEVEL.")
    return 0
