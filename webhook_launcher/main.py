import sys
import logging

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)-8s - [launcher] - %(message)s',
    stream=sys.stdout
)

from webhook_launcher.log import setup_logging
from webhook_launcher.local.console import execute_command


def main(argv=None) -> int:
    """
    The main entry point for the launcher.

    :param argv: Command-line arguments without the program name. Defaults to `sys.argv[1:]`.
    :return: The exit status of the executed command.
    """
    args = list(sys.argv[1:] if argv is None else argv)

    verbose = "--verbose" in args
    if verbose:
        args.remove("--verbose")
    setup_logging(logging.DEBUG if verbose else None)

    # The container's default command is a plain `run`.
    command = args[0].lower() if args else "run"
    return execute_command(command, args[1:])


if __name__ == "__main__":
    sys.exit(main())
