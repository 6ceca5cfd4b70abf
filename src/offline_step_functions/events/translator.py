"""Turn Step Functions Local log output into execution status events.

The emulator logs every history event of every execution as

    2023-01-01 10:00:00.000 : arn:aws:states:us-east-1:123:execution:Machine:run : {"Type":"ExecutionStarted",...}

Only the execution-level transitions are interesting to subscribers; they are
mapped onto the status values the real service reports in
`Step Functions Execution Status Change` events. Everything else the emulator
prints (startup banners, state-level history events, stack traces) is noise
and yields no event.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

DETAIL_TYPE = "Step Functions Execution Status Change"
EVENT_SOURCE = "aws.states"

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

_LINE_PATTERN = re.compile(
    r"(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})"
    r" : (?P<execution_arn>arn:aws:states:[^\s:]*:[^\s:]*:execution:[^\s:]+:[^\s:]+)"
    r" : (?P<payload>\{.*\})"
)


class ExecutionStatus(str, Enum):
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    ABORTED = "ABORTED"


STATUS_BY_EVENT_TYPE: dict[str, ExecutionStatus] = {
    "ExecutionStarted": ExecutionStatus.RUNNING,
    "ExecutionSucceeded": ExecutionStatus.SUCCEEDED,
    "ExecutionFailed": ExecutionStatus.FAILED,
    "ExecutionTimedOut": ExecutionStatus.TIMED_OUT,
    "ExecutionAborted": ExecutionStatus.ABORTED,
}


@dataclass(frozen=True, slots=True)
class ExecutionEvent:
    """A status transition of a single execution."""

    execution_arn: str
    state_machine_arn: str
    name: str
    status: ExecutionStatus
    timestamp: datetime
    start_date: datetime | None = None
    stop_date: datetime | None = None

    def to_detail(self) -> dict[str, object]:
        """Render the event detail the way the real service shapes it."""

        return {
            "executionArn": self.execution_arn,
            "stateMachineArn": self.state_machine_arn,
            "name": self.name,
            "status": self.status.value,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "stopDate": self.stop_date.isoformat() if self.stop_date else None,
        }


@dataclass(frozen=True, slots=True)
class ExecutionStatusNotification:
    """An event bus entry describing an `ExecutionEvent`."""

    detail: dict[str, object]
    resources: list[str]
    time: datetime
    detail_type: str = DETAIL_TYPE
    source: str = EVENT_SOURCE
    event_bus_name: str | None = None

    @staticmethod
    def from_event(
        event: ExecutionEvent, *, event_bus_name: str | None = None
    ) -> ExecutionStatusNotification:
        return ExecutionStatusNotification(
            detail=event.to_detail(),
            resources=[event.execution_arn],
            time=event.timestamp,
            event_bus_name=event_bus_name,
        )

    def to_put_events_entry(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "Source": self.source,
            "DetailType": self.detail_type,
            "Detail": json.dumps(self.detail),
            "Resources": list(self.resources),
            "Time": self.time,
        }
        if self.event_bus_name:
            entry["EventBusName"] = self.event_bus_name
        return entry


def state_machine_arn_for(execution_arn: str) -> str:
    """`...:execution:<machine>:<run>` -> `...:stateMachine:<machine>`."""

    segments = execution_arn.split(":")
    segments[5] = "stateMachine"
    return ":".join(segments[:-1])


def execution_name_for(execution_arn: str) -> str:
    return execution_arn.rsplit(":", 1)[-1]


def _parse_timestamp(raw: str) -> datetime | None:
    # The emulator logs local wall-clock time without an offset.
    try:
        return datetime.strptime(raw, _TIMESTAMP_FORMAT).astimezone()
    except (ValueError, OverflowError, OSError):
        return None


def translate_line(line: str) -> ExecutionEvent | None:
    """Classify one line of emulator output.

    Returns the execution event the line describes, or None when the line is
    not an execution-level transition. Never raises for malformed input.
    """

    match = _LINE_PATTERN.search(line)
    if match is None:
        return None

    timestamp = _parse_timestamp(match.group("timestamp"))
    if timestamp is None:
        return None

    try:
        payload = json.loads(match.group("payload"))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    event_type = payload.get("Type")
    status = STATUS_BY_EVENT_TYPE.get(event_type) if isinstance(event_type, str) else None
    if status is None:
        return None

    execution_arn = match.group("execution_arn")
    started = status is ExecutionStatus.RUNNING
    return ExecutionEvent(
        execution_arn=execution_arn,
        state_machine_arn=state_machine_arn_for(execution_arn),
        name=execution_name_for(execution_arn),
        status=status,
        timestamp=timestamp,
        start_date=timestamp if started else None,
        stop_date=None if started else timestamp,
    )
