"""Tests for the entry point and command dispatch."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeExec, FakeRunner
from webhook_launcher import main as entry
from webhook_launcher.local.console import execute_command
from webhook_launcher.local.console.handler import handle_run_command
from webhook_launcher.local.supervisor import LifecycleState
from webhook_launcher.log.handler import LokiHandler


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("webhook_launcher.main.setup_logging") as setup:
        yield setup


def test_main_defaults_to_run(no_logging_setup: MagicMock) -> None:
    with patch("webhook_launcher.main.execute_command", return_value=0) as execute:
        assert entry.main([]) == 0
    execute.assert_called_once_with("run", [])
    no_logging_setup.assert_called_once_with(None)


def test_main_verbose_flag(no_logging_setup: MagicMock) -> None:
    with patch("webhook_launcher.main.execute_command", return_value=0) as execute:
        entry.main(["--verbose", "Dockerfile", "out"])
    execute.assert_called_once_with("dockerfile", ["out"])
    no_logging_setup.assert_called_once_with(logging.DEBUG)


def test_unknown_command() -> None:
    assert execute_command("deploy", []) == 2


def test_startup_command_prints(capsys: pytest.CaptureFixture) -> None:
    assert execute_command("startup-command", []) == 0
    assert "&& exec ./target/release/webhook" in capsys.readouterr().out


def test_dockerfile_command_writes_file(tmp_path: Path) -> None:
    target = tmp_path / "Dockerfile"
    assert execute_command("dockerfile", ["--launcher", str(target)]) == 0
    assert 'CMD ["webhook-launcher", "run"]' in target.read_text()


def test_dockerfile_command_prints(capsys: pytest.CaptureFixture) -> None:
    assert execute_command("dockerfile", []) == 0
    assert capsys.readouterr().out.startswith("# This file is auto-generated")


def test_help_command(capsys: pytest.CaptureFixture) -> None:
    assert execute_command("help", []) == 0
    assert "startup-command" in capsys.readouterr().out


def test_run_returns_failing_step_exit_code(make_supervisor) -> None:
    """Test a failed install becomes the process exit status."""
    supervisor = make_supervisor(FakeRunner(codes={"package-index": 100}))

    assert handle_run_command([], supervisor_factory=lambda: supervisor) == 100
    assert supervisor.state is LifecycleState.FAILED


def test_run_success_returns_zero_after_simulated_handoff(make_supervisor) -> None:
    exec_function = FakeExec()
    supervisor = make_supervisor(FakeRunner(), exec_function)

    assert handle_run_command([], supervisor_factory=lambda: supervisor) == 0
    assert len(exec_function.calls) == 1
    assert supervisor.state is LifecycleState.RUNNING


def test_exec_failure_is_still_shipped_to_loki(make_supervisor) -> None:
    """Test the line explaining a failed exec reaches Loki after handoff flushed logging."""
    handler = LokiHandler("http://loki:3100")
    root = logging.getLogger()
    root.addHandler(handler)
    supervisor = make_supervisor(FakeRunner(), FakeExec(error=FileNotFoundError("gone")))

    try:
        with patch("webhook_launcher.log.handler.loki.requests.post") as post:
            post.return_value = MagicMock(status_code=204)
            assert handle_run_command([], supervisor_factory=lambda: supervisor) == 127
            handler.close()
    finally:
        root.removeHandler(handler)

    shipped = [
        (stream["stream"]["state"], value[1])
        for call in post.call_args_list
        for stream in call.kwargs["json"]["streams"]
        for value in stream["values"]
    ]
    assert any(state == "Failed" and "Launch aborted" in line for state, line in shipped)
