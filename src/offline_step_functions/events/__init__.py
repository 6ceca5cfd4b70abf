"""Execution status events derived from emulator output."""

from offline_step_functions.events.forwarder import ExecutionEventForwarder
from offline_step_functions.events.sink import EventBridgeSink, EventSink, LoggingSink
from offline_step_functions.events.translator import (
    ExecutionEvent,
    ExecutionStatus,
    ExecutionStatusNotification,
    translate_line,
)

__all__ = [
    "EventBridgeSink",
    "EventSink",
    "ExecutionEvent",
    "ExecutionEventForwarder",
    "ExecutionStatus",
    "ExecutionStatusNotification",
    "LoggingSink",
    "translate_line",
]
