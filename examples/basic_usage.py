#!/usr/bin/env python3
"""Programmatic session example.

This demonstrates using the components directly:

* load state machines and emulator settings from `serverless.yml`
* install and start Step Functions Local
* register every state machine and start one execution

The service directory and the machine to execute are passed as arguments.
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path

from offline_step_functions.config import EmulatorSettings
from offline_step_functions.definitions.loader import load_service_file
from offline_step_functions.emulator.lifecycle import LifecycleCoordinator
from offline_step_functions.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one execution against Step Functions Local.")
    parser.add_argument("--service", default=".", help="Service directory or serverless.yml path")
    parser.add_argument("--state-machine", required=True, help="Registered state machine name")
    parser.add_argument("--input", default="{}", help="Execution input as a JSON document")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    service = load_service_file(Path(args.service))
    settings = EmulatorSettings.from_service_config(service.emulator_config)
    configure_logging(settings.log_level)

    with LifecycleCoordinator(settings) as coordinator:
        registry = coordinator.startup(service.state_machines.values())
        arn = registry.get(args.state_machine)
        if arn is None:
            print(f"Unknown state machine: {args.state_machine}")
            return 2

        execution_arn = coordinator.client.start_execution(
            state_machine_arn=arn, payload=json.loads(args.input)
        )
        print(f"Started execution: {execution_arn}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
