"""Unit tests for reading serverless.yml."""

from __future__ import annotations

from pathlib import Path

import pytest

from offline_step_functions.definitions.loader import load_service_file
from offline_step_functions.errors import ConfigurationError

SERVICE_YAML = """
service: orders

custom:
  stepFunctionsLocal:
    accountId: 101010101010
    region: us-east-1
    TaskResourceMapping:
      Charge: arn:aws:lambda:us-east-1:101010101010:function:orders-dev-charge

stepFunctions:
  stateMachines:
    checkout:
      name: checkout-machine
      definition:
        StartAt: Charge
        States:
          Charge:
            Type: Task
            Resource: !GetAtt charge.Arn
            Next: Notify
          Notify:
            Type: Task
            Resource: !Ref notifyTopic
            End: true
    refunds:
      definition:
        StartAt: Done
        States:
          Done:
            Type: Succeed
    broken:
      events: []
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "serverless.yml"
    path.write_text(content, encoding="utf-8")
    return path


def test_loads_state_machines_and_emulator_config(tmp_path: Path) -> None:
    _write(tmp_path, SERVICE_YAML)

    service = load_service_file(tmp_path)

    assert sorted(service.state_machines) == ["checkout", "refunds"]
    checkout = service.state_machines["checkout"]
    assert checkout.registered_name == "checkout-machine"
    assert service.state_machines["refunds"].registered_name == "refunds"
    assert service.emulator_config["accountId"] == 101010101010


def test_cloudformation_short_forms_become_intrinsics(tmp_path: Path) -> None:
    service = load_service_file(_write(tmp_path, SERVICE_YAML))

    states = service.state_machines["checkout"].definition["States"]
    assert states["Charge"]["Resource"] == {"Fn::GetAtt": ["charge", "Arn"]}
    assert states["Notify"]["Resource"] == {"Ref": "notifyTopic"}


def test_missing_file_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_service_file(tmp_path)


def test_invalid_yaml_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Invalid service file"):
        load_service_file(_write(tmp_path, "stepFunctions: [unclosed\n"))


def test_service_without_state_machines(tmp_path: Path) -> None:
    service = load_service_file(_write(tmp_path, "service: empty\n"))

    assert service.state_machines == {}
    assert service.emulator_config == {}
