"""Shared fakes for the launch sequence tests."""

import os
import stat
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from webhook_launcher.local.supervisor import LifecycleSupervisor

ARTIFACT = Path("target") / "release" / "webhook"


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeRunner:
    """Stands in for CommandRunner. Exit codes are looked up by step name."""

    def __init__(self, codes: Optional[Dict[str, int]] = None, produce_artifact: bool = True):
        self.codes = codes or {}
        self.produce_artifact = produce_artifact
        self.calls: List[Tuple[List[str], str, Optional[Path]]] = []

    def __call__(self, args: Sequence[str], name: str, cwd: Optional[Path] = None) -> int:
        self.calls.append((list(args), name, cwd))
        code = self.codes.get(name, 0)
        if name == "build" and code == 0 and self.produce_artifact:
            make_executable(Path(cwd) / ARTIFACT)
        return code

    def count(self, name: str) -> int:
        return sum(1 for _, n, _ in self.calls if n == name)

    @property
    def names(self) -> List[str]:
        return [n for _, n, _ in self.calls]


class FakeExec:
    """Records exec calls instead of replacing the test process."""

    def __init__(self, error: Optional[OSError] = None):
        self.error = error
        self.calls: List[Tuple[str, List[str], int]] = []

    def __call__(self, path: str, argv: Sequence[str]) -> None:
        self.calls.append((path, list(argv), os.getpid()))
        if self.error is not None:
            raise self.error


@pytest.fixture
def toolchain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Puts fake `cargo` and `apt-get` executables first on PATH."""
    bin_dir = tmp_path / "toolchain"
    for tool in ("cargo", "apt-get"):
        make_executable(bin_dir / tool)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A fresh working directory. The original cwd is restored after the test."""
    monkeypatch.chdir(tmp_path)
    return tmp_path / "usr" / "src" / "webhook"


@pytest.fixture
def make_supervisor(toolchain: Path, workdir: Path):
    def factory(runner: FakeRunner, exec_function: Optional[FakeExec] = None, **kwargs) -> LifecycleSupervisor:
        kwargs.setdefault("workdir", workdir)
        return LifecycleSupervisor(run_command=runner, exec_function=exec_function or FakeExec(), **kwargs)
    return factory
