"""
Value types for the launch sequence.

The execution environment is an immutable value. Each lifecycle step receives
the current environment and returns a `StepResult` holding the next one, so a
step can be exercised against a fake environment without touching the real
filesystem or package database.
"""
import enum
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from .errors import InvalidTransitionError, LauncherError


class LifecycleState(enum.Enum):
    INIT = "Init"
    ENV_READY = "EnvReady"
    TRUST_INSTALLED = "TrustInstalled"
    BUILT = "Built"
    RUNNING = "Running"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[LifecycleState] = frozenset({LifecycleState.RUNNING, LifecycleState.FAILED})

# Forward edges only. FAILED is reachable from every non-terminal state.
TRANSITIONS: Dict[LifecycleState, LifecycleState] = {
    LifecycleState.INIT: LifecycleState.ENV_READY,
    LifecycleState.ENV_READY: LifecycleState.TRUST_INSTALLED,
    LifecycleState.TRUST_INSTALLED: LifecycleState.BUILT,
    LifecycleState.BUILT: LifecycleState.RUNNING,
}


def check_transition(current: LifecycleState, target: LifecycleState) -> None:
    """
    Validates a state change.

    :raises InvalidTransitionError: If the state machine does not allow it.
    """
    if current.is_terminal:
        raise InvalidTransitionError(f"No transition leaves terminal state {current.value}.")
    if target is LifecycleState.FAILED or TRANSITIONS.get(current) is target:
        return
    raise InvalidTransitionError(f"Invalid transition {current.value} -> {target.value}.")


@dataclass(frozen=True)
class ExecutionEnvironment:
    """The process-wide state the launch sequence prepares for the service."""

    base_image: Optional[str] = None
    workdir: Optional[Path] = None
    trusted_packages: Tuple[str, ...] = ()
    artifact: Optional[Path] = None
    state: LifecycleState = LifecycleState.INIT

    def advance(self, target: LifecycleState, **changes) -> "ExecutionEnvironment":
        """Returns a copy moved to `target`, with any field `changes` applied."""
        check_transition(self.state, target)
        return replace(self, state=target, **changes)

    def evolve(self, **changes) -> "ExecutionEnvironment":
        """Returns a copy with field `changes` applied and the state unchanged."""
        return replace(self, **changes)


@dataclass(frozen=True)
class StepResult:
    """Outcome of one lifecycle step."""

    environment: ExecutionEnvironment
    ok: bool = True
    exit_code: int = 0
    error: Optional[LauncherError] = field(default=None, compare=False)

    @classmethod
    def success(cls, environment: ExecutionEnvironment) -> "StepResult":
        return cls(environment=environment)

    @classmethod
    def failure(cls, environment: ExecutionEnvironment, error: LauncherError) -> "StepResult":
        return cls(
            environment=environment.advance(LifecycleState.FAILED),
            ok=False,
            exit_code=error.exit_code,
            error=error,
        )
