"""Unit tests for emulator settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from offline_step_functions.config import EmulatorSettings


def test_defaults() -> None:
    settings = EmulatorSettings(account_id="101010101010", region="us-east-1")

    assert settings.lambda_endpoint == "http://localhost:4000"
    assert settings.path == Path("./.step-functions-local")
    assert settings.jar_file == Path("./.step-functions-local") / "StepFunctionsLocal.jar"
    assert settings.host == "localhost"
    assert settings.port == 8083
    assert settings.wait_time_scale == 1.0
    assert settings.external_instance is False
    assert settings.task_resource_mapping == {}
    assert settings.role_arn == "arn:aws:iam::101010101010:role/DummyRole"


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"region": "us-east-1"}, "missing accountId"),
        ({"account_id": "101010101010"}, "missing region"),
    ],
)
def test_identity_is_required(kwargs: dict[str, str], message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        EmulatorSettings(**kwargs)


def test_settings_load_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "STEP_FUNCTIONS_LOCAL_ACCOUNT_ID=202020202020",
                "STEP_FUNCTIONS_LOCAL_REGION=eu-west-1",
                'STEP_FUNCTIONS_LOCAL_TASK_RESOURCE_MAPPING={"Hello": "hello-fn"}',
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = EmulatorSettings()

    assert settings.account_id == "202020202020"
    assert settings.region == "eu-west-1"
    assert settings.task_resource_mapping == {"Hello": "hello-fn"}


def test_from_service_config_maps_serverless_keys() -> None:
    settings = EmulatorSettings.from_service_config(
        {
            "accountId": 101010101010,
            "region": "us-east-1",
            "lambdaEndpoint": "http://localhost:3002",
            "path": "./.sfl",
            "TaskResourceMapping": {"Hello": "arn:aws:lambda:us-east-1:101010101010:function:hello"},
            "waitTimeScale": 0.5,
            "stepFunctionsEndpoint": "http://127.0.0.1:9083",
            "eventBridgeEvents": {"enabled": True, "endpoint": "http://localhost:4010"},
            "somethingElse": "ignored",
        }
    )

    assert settings.account_id == "101010101010"
    assert settings.lambda_endpoint == "http://localhost:3002"
    assert settings.path == Path("./.sfl")
    assert settings.task_resource_mapping == {
        "Hello": "arn:aws:lambda:us-east-1:101010101010:function:hello"
    }
    assert settings.wait_time_scale == 0.5
    assert settings.host == "127.0.0.1"
    assert settings.port == 9083
    assert settings.event_bridge_enabled is True
    assert settings.event_bridge_endpoint == "http://localhost:4010"


def test_from_service_config_overrides_win() -> None:
    settings = EmulatorSettings.from_service_config(
        {"accountId": "1", "region": "us-east-1", "externalInstance": False},
        external_instance=True,
    )

    assert settings.external_instance is True


def test_from_service_config_without_block_reports_missing_identity() -> None:
    with pytest.raises(ValidationError, match="missing accountId"):
        EmulatorSettings.from_service_config(None)
