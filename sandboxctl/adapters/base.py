"""
Executor base — the contract between actions and external tools.

Actions never shell out themselves. They describe the command they
want as a CommandDefinition and hand it to a CommandExecutor, which
runs it and answers with an EXECUTOR Result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from sandboxctl.core.models.result import Result
from sandboxctl.core.progress import ProgressSink


class CommandDefinition(BaseModel):
    """A platform CLI command plus the messages shown while it runs.

    Flag keys use the ``FLAG_<NAME>`` convention; executors turn them
    into ``--name`` (or ``-n`` for one-letter names).
    """

    command: str
    args: list[str] = Field(default_factory=list)
    flags: dict[str, Any] = Field(default_factory=dict)
    progress_msg: str = ""
    error_msg: str = ""
    success_msg: str = ""

    def messages(self) -> dict[str, str]:
        return {
            "progress_msg": self.progress_msg,
            "error_msg": self.error_msg,
            "success_msg": self.success_msg,
        }


class CommandExecutor(ABC):
    """Abstract base class for command executors.

    ``run`` resolves to a finished EXECUTOR Result for every outcome of
    the command itself: SUCCESS when it worked, FAILURE when the tool
    reported an error. Only problems launching the tool raise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The executor identifier (e.g., 'sfdx')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the underlying tool is installed. Never raises."""

    @abstractmethod
    async def run(self, command: CommandDefinition, sink: ProgressSink) -> Result:
        """Run the command and return a finalized EXECUTOR Result."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
