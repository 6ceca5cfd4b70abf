"""Configuration for the offline Step Functions emulator.

Configuration is loaded from:
- environment variables prefixed with `STEP_FUNCTIONS_LOCAL_`
- a local `.env` file (if present)
- the `custom.stepFunctionsLocal` block of `serverless.yml`, via
  `EmulatorSettings.from_service_config`

Values passed explicitly (including the service block) take precedence over
the environment.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# camelCase keys used in `custom.stepFunctionsLocal` -> settings field names.
_SERVICE_CONFIG_KEYS: dict[str, str] = {
    "accountId": "account_id",
    "region": "region",
    "lambdaEndpoint": "lambda_endpoint",
    "path": "path",
    "TaskResourceMapping": "task_resource_mapping",
    "externalInstance": "external_instance",
    "waitTimeScale": "wait_time_scale",
    "stepFunctionsEndpoint": "step_functions_endpoint",
    "sqsEndpoint": "sqs_endpoint",
    "snsEndpoint": "sns_endpoint",
    "dynamoDbEndpoint": "dynamodb_endpoint",
    "startTimeoutSeconds": "start_timeout_seconds",
}


class EmulatorSettings(BaseSettings):
    """Settings for running Step Functions Local.

    Environment variables (all optional except the first two):
    - STEP_FUNCTIONS_LOCAL_ACCOUNT_ID
    - STEP_FUNCTIONS_LOCAL_REGION
    - STEP_FUNCTIONS_LOCAL_LAMBDA_ENDPOINT
    - STEP_FUNCTIONS_LOCAL_PATH
    - STEP_FUNCTIONS_LOCAL_EXTERNAL_INSTANCE
    - STEP_FUNCTIONS_LOCAL_EVENT_BRIDGE_ENABLED

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EmulatorSettings(_env_file=path_to_env)`.
    """

    # Defaults are empty so the validator below can produce a targeted message.
    account_id: str = Field(default="", description="AWS account id the emulator pretends to be")
    region: str = Field(default="", description="AWS region the emulator pretends to be")

    lambda_endpoint: str = Field(
        default="http://localhost:4000",
        description="Endpoint task states call back into (usually serverless-offline)",
    )
    path: Path = Field(
        default=Path("./.step-functions-local"),
        description="Directory where the emulator distribution is installed",
    )
    step_functions_endpoint: str = Field(
        default="http://localhost:8083",
        description="Management API endpoint of the emulator; its port is the readiness probe",
    )
    wait_time_scale: float = Field(
        default=1.0,
        ge=0.0,
        description="Scale factor for Wait states (0.1 runs waits ten times faster)",
    )
    external_instance: bool = Field(
        default=False,
        description="Use an already running emulator instead of managing one",
    )

    sqs_endpoint: str | None = Field(default=None, description="Optional SQS endpoint override")
    sns_endpoint: str | None = Field(default=None, description="Optional SNS endpoint override")
    dynamodb_endpoint: str | None = Field(
        default=None, description="Optional DynamoDB endpoint override"
    )

    task_resource_mapping: dict[str, str] = Field(
        default_factory=dict,
        description="State name -> replacement task resource (e.g. a local function ARN)",
    )

    event_bridge_enabled: bool = Field(
        default=False,
        description="Forward execution status changes to EventBridge",
    )
    event_bridge_endpoint: str | None = Field(
        default=None,
        description="EventBridge endpoint (e.g. a local EventBridge emulator)",
    )
    event_bus_name: str | None = Field(
        default=None,
        description="Target event bus; the account default bus when unset",
    )

    start_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="How long to wait for the emulator port to open",
    )
    poll_interval_seconds: float = Field(
        default=0.2,
        gt=0.0,
        description="Polling interval while waiting for the emulator port",
    )

    publish_environment: bool = Field(
        default=True,
        description="Export OFFLINE_STEP_FUNCTIONS_ARN_* variables into os.environ",
    )

    aws_access_key_id: str = Field(default="local", description="Dummy key for the local APIs")
    aws_secret_access_key: str = Field(
        default="local", description="Dummy secret for the local APIs"
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    model_config = SettingsConfigDict(
        env_prefix="STEP_FUNCTIONS_LOCAL_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_identity(self) -> EmulatorSettings:
        if not self.account_id.strip():
            raise ValueError("Step Functions Local: missing accountId")
        if not self.region.strip():
            raise ValueError("Step Functions Local: missing region")
        return self

    @classmethod
    def from_service_config(
        cls, custom: Mapping[str, Any] | None, **overrides: Any
    ) -> EmulatorSettings:
        """Build settings from a `custom.stepFunctionsLocal` block.

        Unknown keys are ignored. `overrides` win over the block.
        """

        values: dict[str, Any] = {}
        for key, value in (custom or {}).items():
            field_name = _SERVICE_CONFIG_KEYS.get(key)
            if field_name is not None and value is not None:
                values[field_name] = value

        events = (custom or {}).get("eventBridgeEvents")
        if isinstance(events, Mapping):
            if "enabled" in events:
                values["event_bridge_enabled"] = events["enabled"]
            if events.get("endpoint"):
                values["event_bridge_endpoint"] = events["endpoint"]
            if events.get("eventBusName"):
                values["event_bus_name"] = events["eventBusName"]

        if "account_id" in values:
            # YAML happily parses account ids as integers.
            values["account_id"] = str(values["account_id"])

        values.update(overrides)
        return cls(**values)

    @property
    def jar_file(self) -> Path:
        """Path of the emulator jar inside the install directory."""

        return self.path / "StepFunctionsLocal.jar"

    @property
    def host(self) -> str:
        return urlparse(self.step_functions_endpoint).hostname or "localhost"

    @property
    def port(self) -> int:
        return urlparse(self.step_functions_endpoint).port or 8083

    @property
    def role_arn(self) -> str:
        """Synthetic role used for registration; the emulator does not check IAM."""

        return f"arn:aws:iam::{self.account_id}:role/DummyRole"
