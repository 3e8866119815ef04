import os
import signal
import psutil
import logging
import threading
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from webhook_launcher.settings import EXIT_NOT_FOUND, EXIT_SIGNAL_BASE
from .errors import SignalAbort

log = logging.getLogger(__name__)

# (args, name, cwd) -> exit status
RunCommand = Callable[[Sequence[str], str, Optional[Path]], int]

FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


#* --- Process Identity ---
def current_process() -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(os.getpid())

def is_pid_one() -> bool:
    """True when the launcher is the container's init process."""
    return current_process().pid == 1

def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


#* --- Output Relay ---
def _read_pipe(pipe, process_name: str, level: int) -> None:
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()

def log_process_output(process: subprocess.Popen, process_name: str) -> List[threading.Thread]:
    """
    Starts background threads to consume and log a process's stdout/stderr.

    :param process: The `subprocess.Popen` object to monitor.
    :param process_name: The logical name of the process for logging context.
    :return: The started reader threads, so the caller can wait for the pipes to drain.
    """
    readers = []
    if process.stdout:
        readers.append(threading.Thread(
            target=_read_pipe, args=(process.stdout, process_name, logging.INFO), daemon=True
        ))
    if process.stderr:
        readers.append(threading.Thread(
            target=_read_pipe, args=(process.stderr, process_name, logging.WARNING), daemon=True
        ))
    for reader in readers:
        reader.start()
    return readers


#* --- Process Termination ---
def terminate_process_tree(proc: psutil.Process, timeout: float) -> None:
    """
    Sends SIGTERM to a process and all of its children, then kills whatever
    is still alive after `timeout` seconds.
    """
    try:
        procs = [proc] + proc.children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for p in procs:
        try:
            log.debug(f"Sending SIGTERM to {p.name()} (PID {p.pid})")
            p.terminate()
        except psutil.NoSuchProcess:
            continue

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for p in alive:
        try:
            log.warning(f"Killing stubborn process {p.name()} (PID {p.pid}).")
            p.kill()
        except psutil.NoSuchProcess:
            continue


#* --- Command Execution ---
class CommandRunner:
    """
    Runs provisioning and build commands one at a time and relays their output.

    As PID 1 the launcher would otherwise ignore SIGTERM, so while a command
    runs the runner forwards termination signals to the command's process tree
    and aborts the sequence once it has exited.
    """

    def __init__(self, shutdown_timeout: float = 10):
        self.shutdown_timeout = shutdown_timeout
        self.active: Optional[psutil.Process] = None
        self.starting = False
        self.received_signal: Optional[int] = None

    def install_signal_handlers(self) -> None:
        for signum in FORWARDED_SIGNALS:
            signal.signal(signum, self._handle_signal)

    def _handle_signal(self, signum, frame) -> None:
        log.warning(f"Signal {signum} received before handoff.")
        self.received_signal = signum
        if self.active is not None:
            terminate_process_tree(self.active, self.shutdown_timeout)
        elif not self.starting:
            raise SignalAbort(signum, EXIT_SIGNAL_BASE + signum)
        # While a command is starting the signal is only recorded; `_run` forwards it.

    def __call__(self, args: Sequence[str], name: str, cwd: Optional[Path] = None) -> int:
        """
        Runs `args` to completion.

        :param args: The command line.
        :param name: Logical step name used for the `proc.<name>` logger.
        :param cwd: Working directory, defaults to the current one.
        :return: The command's exit status. 127 if it could not be started.
        :raises SignalAbort: If a termination signal arrived while the command ran.
        """
        log.info(f"Running [{name}]: {' '.join(args)}")
        self.starting = True
        try:
            returncode = self._run(args, name, cwd)
        finally:
            self.starting = False

        if self.received_signal is not None:
            raise SignalAbort(self.received_signal, EXIT_SIGNAL_BASE + self.received_signal)

        # Popen reports death-by-signal as -signum; report it the way a shell does.
        if returncode < 0:
            returncode = EXIT_SIGNAL_BASE - returncode
        log.debug(f"[{name}] exited with status {returncode}")
        return returncode

    def _run(self, args: Sequence[str], name: str, cwd: Optional[Path]) -> int:
        try:
            p = subprocess.Popen(
                list(args),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                cwd=str(cwd) if cwd else None,
            )
        except OSError as e:
            log.error(f"Failed to start '{args[0]}': {e}")
            return EXIT_NOT_FOUND

        self.active = psutil.Process(p.pid)
        readers = log_process_output(p, name)
        try:
            if self.received_signal is not None:
                terminate_process_tree(self.active, self.shutdown_timeout)
            return p.wait()
        finally:
            self.active = None
            for reader in readers:
                reader.join()
