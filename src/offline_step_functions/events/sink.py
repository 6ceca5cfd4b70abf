"""Event sinks for execution status notifications."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import boto3

from offline_step_functions.config import EmulatorSettings
from offline_step_functions.errors import EventDeliveryError
from offline_step_functions.events.translator import ExecutionStatusNotification

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def publish(self, notification: ExecutionStatusNotification) -> None:
        """Deliver one notification; raise on failure."""


class EventBridgeSink:
    """Publish notifications with EventBridge `PutEvents`.

    Works against AWS or any local EventBridge emulator reachable at
    `endpoint_url`.
    """

    def __init__(
        self,
        *,
        region: str,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        if client is not None:
            self._client = client
            logger.debug("Using injected EventBridge client")
            return

        self._client = boto3.client(
            "events",
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )
        logger.info(
            "EventBridge sink configured",
            extra={"endpoint": endpoint_url or "aws", "region": region},
        )

    @classmethod
    def from_settings(cls, settings: EmulatorSettings) -> EventBridgeSink:
        return cls(
            region=settings.region,
            endpoint_url=settings.event_bridge_endpoint,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )

    def publish(self, notification: ExecutionStatusNotification) -> None:
        response = self._client.put_events(Entries=[notification.to_put_events_entry()])

        failed = response.get("FailedEntryCount", 0)
        if failed:
            entries = response.get("Entries") or [{}]
            error = entries[0].get("ErrorMessage") or entries[0].get("ErrorCode") or "unknown"
            raise EventDeliveryError(f"EventBridge rejected the event: {error}")


class LoggingSink:
    """Sink that only logs notifications; used when EventBridge is disabled."""

    def publish(self, notification: ExecutionStatusNotification) -> None:
        logger.info(
            "Execution status changed",
            extra={
                "execution_arn": notification.detail.get("executionArn"),
                "status": notification.detail.get("status"),
            },
        )
