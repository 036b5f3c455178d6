"""Adapters — bindings to the platform CLI and the terminal.

Public re-exports for convenient access.
"""

from sandboxctl.adapters.base import CommandDefinition, CommandExecutor
from sandboxctl.adapters.mock import MockExecutor, ScriptedPrompter

__all__ = [
    "CommandDefinition",
    "CommandExecutor",
    "MockExecutor",
    "ScriptedPrompter",
]
