"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from offline_step_functions.config import EmulatorSettings

ACCOUNT_ID = "101010101010"
REGION = "us-east-1"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep developer `.env` files and shell variables out of the tests."""

    monkeypatch.chdir(tmp_path)
    for name in (
        "STEP_FUNCTIONS_LOCAL_ACCOUNT_ID",
        "STEP_FUNCTIONS_LOCAL_REGION",
        "STEP_FUNCTIONS_LOCAL_EXTERNAL_INSTANCE",
        "STEP_FUNCTIONS_LOCAL_TASK_RESOURCE_MAPPING",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> EmulatorSettings:
    """Provide settings for a managed emulator that publishes nothing globally."""

    return EmulatorSettings(
        account_id=ACCOUNT_ID,
        region=REGION,
        path=tmp_path / ".step-functions-local",
        publish_environment=False,
        start_timeout_seconds=1.0,
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def external_settings(settings: EmulatorSettings) -> EmulatorSettings:
    return settings.model_copy(update={"external_instance": True})
