"""Exceptions raised by the offline Step Functions tooling."""

from __future__ import annotations


class OfflineStepFunctionsError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(OfflineStepFunctionsError):
    pass


class EmulatorInstallError(OfflineStepFunctionsError):
    pass


class EmulatorStartError(OfflineStepFunctionsError):
    pass


class EventDeliveryError(OfflineStepFunctionsError):
    pass


class RegistrationError(OfflineStepFunctionsError):
    """One or more state machines failed to register.

    Every definition is attempted before this is raised, so `failures` holds
    the complete picture for the batch.
    """

    def __init__(self, failures: dict[str, Exception]) -> None:
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"Failed to register state machine(s): {names}")
