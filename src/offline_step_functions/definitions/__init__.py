"""State machine definitions: loading and task resource rewriting."""

from offline_step_functions.definitions.loader import (
    ServiceDefinition,
    StateMachineDefinition,
    load_service_file,
)
from offline_step_functions.definitions.rewriter import rewrite_resources

__all__ = [
    "ServiceDefinition",
    "StateMachineDefinition",
    "load_service_file",
    "rewrite_resources",
]
