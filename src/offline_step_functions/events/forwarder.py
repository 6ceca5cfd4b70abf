"""Bridge emulator output lines to an event sink."""

from __future__ import annotations

import logging

from offline_step_functions.config import EmulatorSettings
from offline_step_functions.events.sink import EventBridgeSink, EventSink, LoggingSink
from offline_step_functions.events.translator import (
    ExecutionEvent,
    ExecutionStatusNotification,
    translate_line,
)

logger = logging.getLogger(__name__)


class ExecutionEventForwarder:
    """Translate each output line and publish resulting events.

    Delivery is best-effort: a failing sink is logged and the caller (the
    output reader loop) carries on with the next line.
    """

    def __init__(self, sink: EventSink, *, event_bus_name: str | None = None) -> None:
        self._sink = sink
        self._event_bus_name = event_bus_name

    @classmethod
    def from_settings(cls, settings: EmulatorSettings) -> ExecutionEventForwarder:
        sink: EventSink
        if settings.event_bridge_enabled:
            sink = EventBridgeSink.from_settings(settings)
        else:
            sink = LoggingSink()
        return cls(sink, event_bus_name=settings.event_bus_name)

    def __call__(self, line: str) -> ExecutionEvent | None:
        event = translate_line(line)
        if event is None:
            return None

        notification = ExecutionStatusNotification.from_event(
            event, event_bus_name=self._event_bus_name
        )
        try:
            self._sink.publish(notification)
        except Exception:
            logger.exception(
                "Failed to publish execution event",
                extra={"execution_arn": event.execution_arn, "status": event.status.value},
            )
        else:
            logger.debug(
                "Published execution event",
                extra={"execution_arn": event.execution_arn, "status": event.status.value},
            )
        return event
