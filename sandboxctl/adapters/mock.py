"""
Mock executor and scripted prompter — test doubles for the engine's
external collaborators.

MockExecutor answers every command with success unless told otherwise
per command name. ScriptedPrompter answers questions from a queue so
interactive compile paths can run unattended.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from sandboxctl.adapters.base import CommandDefinition, CommandExecutor
from sandboxctl.core.models.result import Result, ResultKind
from sandboxctl.core.progress import ProgressSink
from sandboxctl.core.prompt import Prompter, Question


class MockExecutor(CommandExecutor):
    """Universal mock executor for testing.

    By default, returns SUCCESS for everything. Can be configured with
    a failure or an exception per command name (e.g. 'force:org:delete').
    """

    def __init__(
        self,
        executor_name: str = "mock",
        available: bool = True,
        default_output: dict[str, Any] | None = None,
    ):
        self._name = executor_name
        self._available = available
        self._default_output = default_output or {"status": 0, "result": {}}
        self._failures: dict[str, dict[str, Any]] = {}
        self._exceptions: dict[str, BaseException] = {}
        self._outputs: dict[str, dict[str, Any]] = {}
        self._call_log: list[CommandDefinition] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[CommandDefinition]:
        """All command definitions this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Command names in call order."""
        return [c.command for c in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, command: str, error: str = "Mock failure", error_name: str = "") -> None:
        """Configure a command to come back as FAILURE."""
        self._failures[command] = {"error": error, "error_name": error_name}

    def set_exception(self, command: str, exc: BaseException) -> None:
        """Configure a command to raise instead of returning."""
        self._exceptions[command] = exc

    def set_output(self, command: str, output: dict[str, Any]) -> None:
        """Configure the parsed CLI output a successful command returns."""
        self._outputs[command] = output

    async def run(self, command: CommandDefinition, sink: ProgressSink) -> Result:
        self._call_log.append(command)
        sink.on_progress(command.progress_msg)

        if command.command in self._exceptions:
            raise self._exceptions[command.command]

        result = Result(f"mock:{command.command}", ResultKind.EXECUTOR)
        result.set_detail({"mock": True, **command.messages()})

        # Same reporting as the real executor: the action's message, raw cause in detail
        failure = self._failures.get(command.command)
        if failure:
            return result.failure(
                command.error_msg or failure["error"],
                detail={
                    "cause": failure["error"],
                    "error_name": failure["error_name"],
                    "stderr": failure["error"],
                },
            )
        return result.success(dict(self._outputs.get(command.command, self._default_output)))

    def reset(self) -> None:
        """Clear call log and configured outcomes."""
        self._call_log.clear()
        self._failures.clear()
        self._exceptions.clear()
        self._outputs.clear()


class ScriptedPrompter(Prompter):
    """Answers questions from pre-recorded answer sets.

    ``answers`` is consumed one entry per asked question, in order.
    List questions accept either a choice value or a choice index.
    """

    def __init__(self, answers: list[Any] | None = None):
        self._answers: deque[Any] = deque(answers or [])
        self.asked: list[str] = []

    def queue(self, *answers: Any) -> None:
        self._answers.extend(answers)

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def _next(self, message: str) -> Any:
        self.asked.append(message)
        if not self._answers:
            raise LookupError(f"No scripted answer left for: {message}")
        return self._answers.popleft()

    async def ask_list(self, question: Question, message: str) -> Any:
        answer = self._next(message)
        if isinstance(answer, int) and not isinstance(answer, bool):
            return question.choices[answer].value
        return answer

    async def ask_checkbox(self, question: Question, message: str) -> list[Any]:
        answer = self._next(message)
        if answer is None:
            return [c.value for c in question.choices if c.checked]
        return list(answer)

    async def ask_confirm(self, question: Question, message: str) -> bool:
        return bool(self._next(message))
