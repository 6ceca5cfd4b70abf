"""Load state machines and emulator settings from a Serverless service file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from offline_step_functions.errors import ConfigurationError

logger = logging.getLogger(__name__)

SERVICE_FILE_NAME = "serverless.yml"


@dataclass(frozen=True, slots=True)
class StateMachineDefinition:
    """A state machine as declared under `stepFunctions.stateMachines`."""

    key: str
    definition: dict[str, Any]
    name: str | None = None

    @property
    def registered_name(self) -> str:
        """Name used when creating the machine (`name:` wins over the key)."""

        return self.name or self.key


@dataclass(frozen=True, slots=True)
class ServiceDefinition:
    path: Path
    state_machines: dict[str, StateMachineDefinition] = field(default_factory=dict)
    emulator_config: dict[str, Any] = field(default_factory=dict)


class _CloudFormationLoader(yaml.SafeLoader):
    """SafeLoader that understands CloudFormation short-form intrinsics.

    `!GetAtt fn.Arn` becomes `{"Fn::GetAtt": ["fn", "Arn"]}` and `!Ref x`
    becomes `{"Ref": "x"}`, matching what the Serverless framework produces.
    """


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)

    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


_CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_service_document(text: str) -> dict[str, Any]:
    try:
        loaded = yaml.load(text, Loader=_CloudFormationLoader)  # noqa: S506 (safe subclass)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid service file: {e}") from e
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError("Invalid service file: top level must be a mapping")
    return loaded


def load_service_file(path: Path) -> ServiceDefinition:
    """Read state machines and `custom.stepFunctionsLocal` from `path`.

    `path` may be the service directory or the YAML file itself.

    Raises:
        ConfigurationError: if the file is missing or not valid YAML.
    """

    file_path = path / SERVICE_FILE_NAME if path.is_dir() else path
    if not file_path.exists():
        raise ConfigurationError(f"Service file not found: {file_path}")

    document = parse_service_document(file_path.read_text(encoding="utf-8"))

    custom = document.get("custom") or {}
    emulator_config = custom.get("stepFunctionsLocal") if isinstance(custom, dict) else None

    step_functions = document.get("stepFunctions") or {}
    raw_machines = (
        step_functions.get("stateMachines") if isinstance(step_functions, dict) else None
    ) or {}

    machines: dict[str, StateMachineDefinition] = {}
    for key, raw in raw_machines.items():
        if not isinstance(raw, dict) or not isinstance(raw.get("definition"), dict):
            logger.warning("Skipping state machine without a definition", extra={"key": key})
            continue
        name = raw.get("name")
        machines[key] = StateMachineDefinition(
            key=key,
            definition=raw["definition"],
            name=name if isinstance(name, str) and name.strip() else None,
        )

    logger.info(
        "Loaded service file",
        extra={"path": str(file_path), "state_machines": sorted(machines)},
    )
    return ServiceDefinition(
        path=file_path,
        state_machines=machines,
        emulator_config=dict(emulator_config) if isinstance(emulator_config, dict) else {},
    )
