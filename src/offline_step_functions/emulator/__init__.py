"""Step Functions Local process management and registration."""

from offline_step_functions.emulator.client import StepFunctionsClient
from offline_step_functions.emulator.installer import EmulatorInstaller
from offline_step_functions.emulator.lifecycle import (
    IllegalTransitionError,
    LifecycleCoordinator,
    LifecycleState,
)
from offline_step_functions.emulator.process import EmulatorProcess, LaunchOptions
from offline_step_functions.emulator.registry import StateMachineRegistry

__all__ = [
    "EmulatorInstaller",
    "EmulatorProcess",
    "IllegalTransitionError",
    "LaunchOptions",
    "LifecycleCoordinator",
    "LifecycleState",
    "StateMachineRegistry",
    "StepFunctionsClient",
]
