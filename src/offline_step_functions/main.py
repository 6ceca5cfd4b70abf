"""CLI entrypoint for running Step Functions Local offline."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from collections.abc import Iterable
from pathlib import Path
from types import FrameType
from typing import Any, TextIO

from pydantic import ValidationError

from offline_step_functions import __version__
from offline_step_functions.config import EmulatorSettings
from offline_step_functions.definitions.loader import ServiceDefinition, load_service_file
from offline_step_functions.definitions.rewriter import rewrite_resources
from offline_step_functions.emulator.lifecycle import LifecycleCoordinator
from offline_step_functions.errors import (
    ConfigurationError,
    EmulatorInstallError,
    EmulatorStartError,
    RegistrationError,
)
from offline_step_functions.events.translator import ExecutionStatusNotification, translate_line
from offline_step_functions.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="offline-step-functions",
        description="Run AWS Step Functions Local for offline development",
    )
    parser.add_argument(
        "--version", action="version", version=f"offline-step-functions {__version__}"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured logging level (e.g. DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser(
        "start",
        help="Install and start the emulator, register state machines, and run until stopped",
    )
    _add_service_argument(start)
    start.add_argument(
        "--external",
        action="store_true",
        help="Use an already running emulator (skip install/start/stop)",
    )

    register = subparsers.add_parser(
        "register",
        help="Register state machines against an already running emulator",
    )
    _add_service_argument(register)

    rewrite = subparsers.add_parser(
        "rewrite",
        help="Print state machine definitions after task resource substitution",
    )
    _add_service_argument(rewrite)
    rewrite.add_argument(
        "--state-machine",
        default=None,
        help="Only print this state machine (key under stepFunctions.stateMachines)",
    )

    translate = subparsers.add_parser(
        "translate",
        help="Read emulator output and print execution status events as JSON lines",
    )
    translate.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Log file to read ('-' for stdin)",
    )

    return parser


def _add_service_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--service",
        default=".",
        help="Service directory or serverless.yml path",
    )


def _load(args: argparse.Namespace, **overrides: Any) -> tuple[ServiceDefinition, EmulatorSettings]:
    service = load_service_file(Path(args.service))
    try:
        settings = EmulatorSettings.from_service_config(service.emulator_config, **overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
    return service, settings


def _translate_stream(lines: Iterable[str], out: TextIO) -> int:
    count = 0
    for line in lines:
        event = translate_line(line)
        if event is None:
            continue
        entry = ExecutionStatusNotification.from_event(event).to_put_events_entry()
        entry["Time"] = event.timestamp.isoformat()
        out.write(json.dumps(entry) + "\n")
        count += 1
    return count


def _install_stop_handler(coordinator: LifecycleCoordinator) -> None:
    def _handle(signum: int, _frame: FrameType | None) -> None:
        logger.info("Received signal; stopping", extra={"signal": signum})
        coordinator.stop()

    signal.signal(signal.SIGTERM, _handle)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or "INFO")

    try:
        if args.command == "translate":
            if args.input == "-":
                count = _translate_stream(sys.stdin, sys.stdout)
            else:
                with open(args.input, encoding="utf-8") as fh:
                    count = _translate_stream(fh, sys.stdout)
            logger.info("Translated emulator output", extra={"events": count})
            return 0

        if args.command == "rewrite":
            service, settings = _load(args)
            machines = service.state_machines
            if args.state_machine is not None:
                if args.state_machine not in machines:
                    raise ConfigurationError(f"Unknown state machine: {args.state_machine}")
                machines = {args.state_machine: machines[args.state_machine]}
            rewritten = {
                key: rewrite_resources(machine.definition, settings.task_resource_mapping)
                for key, machine in machines.items()
            }
            print(json.dumps(rewritten, indent=2, ensure_ascii=False))
            return 0

        if args.command == "register":
            service, settings = _load(args, external_instance=True)
            if args.log_level is None:
                configure_logging(settings.log_level)
            coordinator = LifecycleCoordinator(settings)
            registry = coordinator.register_all(service.state_machines.values())
            print(json.dumps(registry.as_environment(), indent=2))
            return 0

        if args.command == "start":
            overrides: dict[str, Any] = {"external_instance": True} if args.external else {}
            service, settings = _load(args, **overrides)
            if args.log_level is None:
                configure_logging(settings.log_level)

            with LifecycleCoordinator(settings) as coordinator:
                _install_stop_handler(coordinator)
                registry = coordinator.startup(service.state_machines.values())
                for key, arn in sorted(registry.as_environment().items()):
                    print(f"{key}={arn}")
                sys.stdout.flush()

                if coordinator.external:
                    return 0
                try:
                    coordinator.wait()
                except KeyboardInterrupt:
                    logger.info("Interrupted; stopping Step Functions Local")
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ConfigurationError as e:
        logger.error("Invalid configuration", extra={"error": str(e)})
        print(str(e), file=sys.stderr)
        return 2

    except (EmulatorInstallError, EmulatorStartError, RegistrationError) as e:
        logger.error("Startup failed", extra={"error": str(e)})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
