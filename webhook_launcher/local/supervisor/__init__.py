"""
The Supervisor package.
Runs the container launch sequence for the webhook service.

This package contains the LifecycleSupervisor class and its helper modules,
which together prepare the environment, install trust material, build the
service and hand the process over to it.
"""
from .errors import (
    BuildError,
    EnvironmentSetupError,
    HandoffError,
    InvalidTransitionError,
    LauncherError,
    SignalAbort,
    TrustInstallationError,
)
from .state import ExecutionEnvironment, LifecycleState, StepResult
from .supervisor import LifecycleSupervisor

__all__ = [
    'LifecycleSupervisor', 'ExecutionEnvironment', 'LifecycleState', 'StepResult',
    'LauncherError', 'EnvironmentSetupError', 'TrustInstallationError', 'BuildError',
    'HandoffError', 'SignalAbort', 'InvalidTransitionError',
]
