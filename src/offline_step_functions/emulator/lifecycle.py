"""Lifecycle of the local emulator: install, start, register, stop.

The coordinator is an explicit state machine; out-of-order calls such as
registering on a stopped emulator raise IllegalTransitionError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from types import TracebackType
from typing import Any

from offline_step_functions.config import EmulatorSettings
from offline_step_functions.definitions.loader import StateMachineDefinition
from offline_step_functions.definitions.rewriter import rewrite_resources
from offline_step_functions.emulator.client import StepFunctionsClient
from offline_step_functions.emulator.installer import EmulatorInstaller
from offline_step_functions.emulator.process import (
    EmulatorProcess,
    LaunchOptions,
    is_port_open,
    wait_for_port,
)
from offline_step_functions.emulator.registry import StateMachineRegistry
from offline_step_functions.errors import EmulatorStartError, RegistrationError
from offline_step_functions.events.forwarder import ExecutionEventForwarder

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNINSTALLED = "uninstalled"
    INSTALLED = "installed"
    STARTING = "starting"
    READY = "ready"
    REGISTERED = "registered"
    STOPPED = "stopped"


ALLOWED_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    # UNINSTALLED -> READY is the external-instance bypass.
    LifecycleState.UNINSTALLED: {
        LifecycleState.INSTALLED,
        LifecycleState.READY,
        LifecycleState.STOPPED,
    },
    LifecycleState.INSTALLED: {LifecycleState.STARTING, LifecycleState.STOPPED},
    LifecycleState.STARTING: {LifecycleState.READY, LifecycleState.STOPPED},
    LifecycleState.READY: {LifecycleState.REGISTERED, LifecycleState.STOPPED},
    LifecycleState.REGISTERED: {LifecycleState.REGISTERED, LifecycleState.STOPPED},
    LifecycleState.STOPPED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: LifecycleState, to: LifecycleState) -> LifecycleState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


class LifecycleCoordinator:
    """Run Step Functions Local for the duration of an offline session.

    Collaborators are injectable; by default they are built from `settings`.
    With `settings.external_instance` the coordinator never touches a process
    and starts out READY.
    """

    def __init__(
        self,
        settings: EmulatorSettings,
        *,
        installer: EmulatorInstaller | None = None,
        process: EmulatorProcess | None = None,
        client: StepFunctionsClient | None = None,
        forwarder: ExecutionEventForwarder | None = None,
        registry: StateMachineRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._installer = installer or EmulatorInstaller(settings.path)
        self._process = process or EmulatorProcess(settings.jar_file)
        self._client = client or StepFunctionsClient.from_settings(settings)
        self._forwarder = forwarder or ExecutionEventForwarder.from_settings(settings)
        if registry is None:
            registry = (
                StateMachineRegistry.with_process_environment()
                if settings.publish_environment
                else StateMachineRegistry()
            )
        self._registry = registry

        self._state = LifecycleState.UNINSTALLED
        if settings.external_instance:
            logger.info(
                "Using external Step Functions Local instance",
                extra={"endpoint": settings.step_functions_endpoint},
            )
            self._advance(LifecycleState.READY)

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def external(self) -> bool:
        return self._settings.external_instance

    @property
    def registry(self) -> StateMachineRegistry:
        return self._registry

    @property
    def client(self) -> StepFunctionsClient:
        return self._client

    def _advance(self, to: LifecycleState) -> None:
        self._state = transition(current=self._state, to=to)

    def launch_options(self) -> LaunchOptions:
        s = self._settings
        return LaunchOptions(
            account_id=s.account_id,
            region=s.region,
            lambda_endpoint=s.lambda_endpoint,
            wait_time_scale=s.wait_time_scale,
            sqs_endpoint=s.sqs_endpoint,
            sns_endpoint=s.sns_endpoint,
            dynamodb_endpoint=s.dynamodb_endpoint,
        )

    def install(self) -> None:
        if self.external or self._state is not LifecycleState.UNINSTALLED:
            return
        self._installer.install()
        self._advance(LifecycleState.INSTALLED)

    def start(self) -> None:
        """Launch the emulator and block until its port accepts connections.

        Raises:
            EmulatorStartError: if the port is already taken, or the process
                cannot be launched, exits early or does not open the port in
                time. A launched process is stopped first.
        """

        if self.external:
            return

        host, port = self._settings.host, self._settings.port
        if is_port_open(host, port):
            raise EmulatorStartError(
                f"Port {host}:{port} is already in use; stop the other process "
                "or set externalInstance"
            )

        self._advance(LifecycleState.STARTING)
        try:
            self._process.start(self.launch_options(), self._forwarder)
            wait_for_port(
                host,
                port,
                timeout_seconds=self._settings.start_timeout_seconds,
                poll_interval_seconds=self._settings.poll_interval_seconds,
                exit_code=lambda: self._process.returncode,
            )
        except Exception:
            logger.error("Step Functions Local failed to start")
            self._process.stop()
            self._advance(LifecycleState.STOPPED)
            raise

        self._advance(LifecycleState.READY)
        logger.info(
            "Step Functions Local ready",
            extra={"host": host, "port": port},
        )

    def prepare_definition(self, machine: StateMachineDefinition) -> dict[str, Any]:
        mapping = self._settings.task_resource_mapping
        if not mapping:
            return machine.definition
        return rewrite_resources(machine.definition, mapping)

    def register_all(self, machines: Iterable[StateMachineDefinition]) -> StateMachineRegistry:
        """Create every state machine and publish its ARN.

        All machines are attempted even if one fails.

        Raises:
            RegistrationError: listing every machine that failed.
        """

        # Validate before doing any work (e.g. registering on a stopped emulator).
        transition(current=self._state, to=LifecycleState.REGISTERED)

        failures: dict[str, Exception] = {}
        for machine in machines:
            name = machine.registered_name
            try:
                arn = self._client.create_state_machine(
                    name=name,
                    definition=self.prepare_definition(machine),
                    role_arn=self._settings.role_arn,
                )
            except Exception as e:
                logger.exception(
                    "Failed to register state machine", extra={"state_machine": name}
                )
                failures[name] = e
                continue
            self._registry.publish(name, arn)

        if failures:
            raise RegistrationError(failures)

        self._advance(LifecycleState.REGISTERED)
        return self._registry

    def startup(self, machines: Iterable[StateMachineDefinition]) -> StateMachineRegistry:
        """install -> start -> register, as the offline session begins."""

        self.install()
        self.start()
        return self.register_all(machines)

    def wait(self) -> int | None:
        """Block while the managed emulator runs (returns immediately when external)."""

        if self.external:
            return None
        return self._process.wait()

    def stop(self) -> None:
        if self.external or self._state is LifecycleState.STOPPED:
            return
        self._process.stop()
        self._advance(LifecycleState.STOPPED)

    def __enter__(self) -> LifecycleCoordinator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
