"""Tests for the build step."""

from pathlib import Path

from conftest import ARTIFACT, FakeRunner
from webhook_launcher.local.supervisor import BuildError, ExecutionEnvironment, LifecycleState
from webhook_launcher.local.supervisor.build import build_service, resolve_artifact_path

BUILD = ["cargo", "build", "--release", "--bin", "webhook"]


def test_resolve_artifact_path() -> None:
    assert resolve_artifact_path(Path("/usr/src/webhook"), ARTIFACT) == Path("/usr/src/webhook/target/release/webhook")


def test_build_success_records_artifact(tmp_path: Path) -> None:
    env = ExecutionEnvironment(workdir=tmp_path, state=LifecycleState.TRUST_INSTALLED)
    runner = FakeRunner()

    result = build_service(env, runner, BUILD, ARTIFACT)

    assert result.ok
    assert result.environment.state is LifecycleState.BUILT
    assert result.environment.artifact == tmp_path / ARTIFACT
    assert runner.calls == [(BUILD, "build", tmp_path)]


def test_build_failure_keeps_exit_code(tmp_path: Path) -> None:
    env = ExecutionEnvironment(workdir=tmp_path, state=LifecycleState.TRUST_INSTALLED)

    result = build_service(env, FakeRunner(codes={"build": 101}), BUILD, ARTIFACT)

    assert not result.ok
    assert result.exit_code == 101
    assert result.environment.artifact is None
    assert isinstance(result.error, BuildError)
