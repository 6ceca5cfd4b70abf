"""Run the emulator as a child process and stream its output."""

from __future__ import annotations

import logging
import shutil
import socket
import subprocess
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from offline_step_functions.errors import EmulatorStartError

logger = logging.getLogger(__name__)
output_logger = logging.getLogger("offline_step_functions.emulator.output")

LineHandler = Callable[[str], object]


@dataclass(frozen=True, slots=True)
class LaunchOptions:
    """Parameters passed on the emulator command line."""

    account_id: str
    region: str
    lambda_endpoint: str
    wait_time_scale: float = 1.0
    sqs_endpoint: str | None = None
    sns_endpoint: str | None = None
    dynamodb_endpoint: str | None = None

    def to_args(self) -> list[str]:
        args = [
            "--aws-account",
            self.account_id,
            "--aws-region",
            self.region,
            "--lambda-endpoint",
            self.lambda_endpoint,
            "--wait-time-scale",
            f"{self.wait_time_scale:g}",
        ]
        if self.sqs_endpoint:
            args += ["--sqs-endpoint", self.sqs_endpoint]
        if self.sns_endpoint:
            args += ["--sns-endpoint", self.sns_endpoint]
        if self.dynamodb_endpoint:
            args += ["--dynamodb-endpoint", self.dynamodb_endpoint]
        return args


def is_port_open(host: str, port: int, timeout: float = 1.0) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def wait_for_port(
    host: str,
    port: int,
    *,
    timeout_seconds: float,
    poll_interval_seconds: float,
    exit_code: Callable[[], int | None] | None = None,
) -> None:
    """Block until `host:port` accepts TCP connections.

    `exit_code`, when given, reports the child's exit status (None while it
    runs); an exited child fails the wait immediately, even if something else
    already holds the port.

    Raises:
        EmulatorStartError: if the child exits or the port is still closed
            after `timeout_seconds`.
    """

    deadline = time.monotonic() + timeout_seconds
    while True:
        code = exit_code() if exit_code is not None else None
        if code is not None:
            raise EmulatorStartError(
                f"Step Functions Local exited with code {code} before opening {host}:{port}"
            )
        if is_port_open(host, port, timeout=poll_interval_seconds):
            return
        if time.monotonic() >= deadline:
            raise EmulatorStartError(
                f"Step Functions Local did not open {host}:{port} within {timeout_seconds:g}s"
            )
        time.sleep(poll_interval_seconds)


def consume_lines(lines: Iterable[str], handler: LineHandler) -> None:
    """Feed every line to `handler` until the stream ends.

    A handler failure is logged and does not stop consumption.
    """

    for raw in lines:
        line = raw.rstrip("\r\n")
        output_logger.debug(line)
        try:
            handler(line)
        except Exception:
            logger.exception("Output handler failed", extra={"line": line})


class EmulatorProcess:
    """Own the `java -jar StepFunctionsLocal.jar` child process."""

    def __init__(self, jar_file: Path, *, java: str = "java") -> None:
        self._jar_file = jar_file
        self._java = java
        self._process: subprocess.Popen[str] | None = None
        self._reader: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def returncode(self) -> int | None:
        """Exit status of the child, or None while it runs (or was never started)."""

        if self._process is None:
            return None
        return self._process.poll()

    def build_command(self, options: LaunchOptions) -> list[str]:
        return [self._java, "-jar", str(self._jar_file), *options.to_args()]

    def start(self, options: LaunchOptions, on_line: LineHandler) -> None:
        """Spawn the emulator and start streaming its output to `on_line`."""

        if self.running:
            raise EmulatorStartError("Step Functions Local is already running")
        if shutil.which(self._java) is None:
            raise EmulatorStartError(f"Java runtime not found: {self._java}")

        command = self.build_command(options)
        logger.info("Starting Step Functions Local", extra={"command": command})
        try:
            self._process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise EmulatorStartError(f"Failed to launch Step Functions Local: {e}") from e

        stdout = self._process.stdout
        assert stdout is not None

        self._reader = threading.Thread(
            target=consume_lines,
            name=f"step-functions-local-output-{self._process.pid}",
            daemon=True,
            kwargs={"lines": stdout, "handler": on_line},
        )
        self._reader.start()

    def wait(self) -> int | None:
        """Block until the process exits; returns its exit code."""

        if self._process is None:
            return None
        return self._process.wait()

    def stop(self, *, timeout_seconds: float = 5.0) -> None:
        """Terminate the process; safe to call repeatedly."""

        process, self._process = self._process, None
        if process is None:
            return

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=timeout_seconds)
            except subprocess.TimeoutExpired:
                logger.warning("Step Functions Local did not exit; killing it")
                process.kill()
                process.wait()

        # Process exit closes stdout, which ends the reader loop.
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.join(timeout=timeout_seconds)

        if process.stdout is not None:
            process.stdout.close()

        logger.info("Step Functions Local stopped", extra={"returncode": process.returncode})
