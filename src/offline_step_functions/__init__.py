"""Offline Step Functions.

Runs AWS Step Functions Local for offline development:
- installs and starts the emulator
- registers state machines from `serverless.yml`
- forwards execution status changes to EventBridge
"""

__version__ = "0.1.0"

from offline_step_functions.config import EmulatorSettings

__all__ = ["__version__", "EmulatorSettings"]
