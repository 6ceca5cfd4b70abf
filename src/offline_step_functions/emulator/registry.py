"""Registered state machine ARNs, keyed for downstream consumers."""

from __future__ import annotations

import logging
import os
import re
import threading
from collections.abc import MutableMapping

logger = logging.getLogger(__name__)

ENV_PREFIX = "OFFLINE_STEP_FUNCTIONS_ARN_"

_INVALID_KEY_CHARS = re.compile(r"[^A-Za-z0-9_]")


def environment_key(name: str) -> str:
    """`my-machine` -> `OFFLINE_STEP_FUNCTIONS_ARN_my_machine`."""

    return ENV_PREFIX + _INVALID_KEY_CHARS.sub("_", name)


class StateMachineRegistry:
    """Append-only map of state machine name -> ARN for one startup cycle.

    When `environ` is given, every publication is mirrored into it as an
    `OFFLINE_STEP_FUNCTIONS_ARN_<name>` variable (the hosting tooling reads
    `os.environ`).
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._arns: dict[str, str] = {}
        self._environ = environ

    @classmethod
    def with_process_environment(cls) -> StateMachineRegistry:
        return cls(environ=os.environ)

    def publish(self, name: str, arn: str) -> None:
        key = environment_key(name)
        with self._lock:
            clashing = [
                other for other in self._arns if other != name and environment_key(other) == key
            ]
            if clashing:
                logger.warning(
                    "State machine names share an environment variable; the later ARN wins",
                    extra={"state_machine": name, "other": clashing[0], "variable": key},
                )
            self._arns[name] = arn
            if self._environ is not None:
                self._environ[key] = arn

    def get(self, name: str) -> str | None:
        with self._lock:
            return self._arns.get(name)

    def as_dict(self) -> dict[str, str]:
        with self._lock:
            return dict(self._arns)

    def as_environment(self) -> dict[str, str]:
        with self._lock:
            return {environment_key(name): arn for name, arn in self._arns.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._arns)
