import logging
from typing import List

from webhook_launcher.local.console.handler import (
    handle_check_config_command,
    handle_dockerfile_command,
    handle_run_command,
    handle_startup_command_command,
    print_help,
)

log = logging.getLogger(__name__)


def execute_command(command: str, args: List[str]) -> int:
    """
    Executes a single command.

    :param command: The main command string (e.g., 'run', 'dockerfile').
    :param args: A list of arguments for the command.
    :return int: The process exit status for the command.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "run": handle_run_command,
        "check-config": handle_check_config_command,
        "dockerfile": handle_dockerfile_command,
        "startup-command": handle_startup_command_command,
        "help": print_help,
    }

    if command in command_map:
        return command_map[command](args)

    log.error(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
    return 2
