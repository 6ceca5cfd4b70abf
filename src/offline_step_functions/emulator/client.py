"""Step Functions management API client for the local emulator.

This intentionally wraps boto3 to keep SDK calls out of the lifecycle code and
make tests easy.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import ClientError

from offline_step_functions.config import EmulatorSettings

logger = logging.getLogger(__name__)


class StepFunctionsClient:
    """Small wrapper around the boto3 `stepfunctions` client."""

    def __init__(
        self,
        *,
        endpoint_url: str,
        region: str,
        account_id: str,
        aws_access_key_id: str = "local",
        aws_secret_access_key: str = "local",
        client: Any | None = None,
    ) -> None:
        if not region:
            raise ValueError("region is required")
        if not account_id:
            raise ValueError("account_id is required")

        self._region = region
        self._account_id = account_id
        self._endpoint_url = endpoint_url

        if client is not None:
            self._client = client
            logger.debug("Using injected Step Functions client")
            return

        self._client = boto3.client(
            "stepfunctions",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )

    @classmethod
    def from_settings(cls, settings: EmulatorSettings) -> StepFunctionsClient:
        return cls(
            endpoint_url=settings.step_functions_endpoint,
            region=settings.region,
            account_id=settings.account_id,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )

    def state_machine_arn(self, name: str) -> str:
        return f"arn:aws:states:{self._region}:{self._account_id}:stateMachine:{name}"

    def create_state_machine(
        self, *, name: str, definition: Mapping[str, Any], role_arn: str
    ) -> str:
        """Create (or update, if it already exists) a state machine.

        Returns:
            The state machine ARN.
        """

        if not name.strip():
            raise ValueError("State machine name is required")

        body = json.dumps(definition)
        try:
            resp = self._client.create_state_machine(
                name=name, definition=body, roleArn=role_arn
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code != "StateMachineAlreadyExists":
                raise
            # A long-lived external emulator keeps machines across runs.
            arn = self.state_machine_arn(name)
            logger.info("State machine exists; updating definition", extra={"arn": arn})
            self._client.update_state_machine(
                stateMachineArn=arn, definition=body, roleArn=role_arn
            )
            return arn

        arn = resp.get("stateMachineArn")
        if not isinstance(arn, str) or not arn:
            raise ValueError("Unexpected CreateStateMachine response: missing stateMachineArn")
        logger.info("State machine created", extra={"state_machine": name, "arn": arn})
        return arn

    def start_execution(
        self,
        *,
        state_machine_arn: str,
        payload: Mapping[str, Any] | None = None,
        name: str | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {
            "stateMachineArn": state_machine_arn,
            "input": json.dumps(dict(payload or {})),
        }
        if name:
            kwargs["name"] = name
        resp = self._client.start_execution(**kwargs)
        arn = resp.get("executionArn")
        if not isinstance(arn, str) or not arn:
            raise ValueError("Unexpected StartExecution response: missing executionArn")
        logger.info("Execution started", extra={"arn": arn})
        return arn
