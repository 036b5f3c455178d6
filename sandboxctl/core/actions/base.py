"""
Action base — the contract every recipe step action implements.

An Action validates its options, describes one external operation,
hands it to the executor in its context, and returns an ACTION Result
with the executor's Result attached as a child. Exceptions raised while
doing the work are wrapped as ERROR children; they never escape
``execute``. Only misuse (missing options, an invalid context) raises.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sandboxctl.adapters.base import CommandDefinition, CommandExecutor
from sandboxctl.core.engine.context import LogLevel
from sandboxctl.core.errors import InvalidActionContext, MissingOption, ResultBubbled
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.models.recipe import TargetOrg
from sandboxctl.core.models.result import Result, ResultKind, ResultStatus
from sandboxctl.core.progress import NullProgressSink, ProgressSink

ActionOptions = dict[str, Any]


class ActionType(str, Enum):
    SFDX_CLI = "sfdx-cli"
    SFDC_API = "salesforce-api"
    SHELL_COMMAND = "shell-command"
    PLUGIN = "plugin"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class ActionContext:
    """Everything an action needs from the engine that runs it."""

    target_org: TargetOrg
    project: ProjectContext
    executor: CommandExecutor
    dev_hub_alias: str | None = None
    log_level: LogLevel = LogLevel.ERROR
    sink: ProgressSink = field(default_factory=NullProgressSink)

    @property
    def target_alias(self) -> str:
        return self.target_org.alias


class Action(ABC):
    """Abstract base class for recipe actions.

    To create a new action:
        1. Subclass Action (or SfdxCliAction for platform CLI commands)
        2. Set identity and required options in ``initialize``
        3. Implement ``execute_action``
        4. Add its name to ActionName and register it in an engine
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.name = "unspecified-action"
        self.action_type = ActionType.UNSPECIFIED
        self.description = "Unspecified Action"
        self.command = ""
        self.executor_name = "unspecified-executor"
        self.required_options: tuple[str, ...] = ()
        self.logger = logger or logging.getLogger(__name__)
        self.initialize()

    @abstractmethod
    def initialize(self) -> None:
        """Set name, type, command, description and required options."""

    @abstractmethod
    async def execute_action(
        self, context: ActionContext, options: ActionOptions, result: Result
    ) -> Result:
        """Do the work and return the executor's finished Result."""

    def validate_options(self, options: ActionOptions) -> None:
        """Raise MissingOption for the first absent required key."""
        for key in self.required_options:
            if options.get(key) is None:
                raise MissingOption(key)

    def validate_context(self, context: ActionContext | None) -> None:
        if context is None:
            raise InvalidActionContext(f"Missing action context for '{self.name}'")
        if context.target_org.is_scratch_org and not context.dev_hub_alias:
            raise InvalidActionContext(
                f"Target org '{context.target_alias}' is a scratch org, "
                "but no DevHub alias was provided"
            )

    def classify(self, child: Result, context: ActionContext, options: ActionOptions) -> Result:
        """Hook for actions that reclassify an executor outcome."""
        return child

    async def execute(self, context: ActionContext, options: ActionOptions | None = None) -> Result:
        """Run the action and return its finalized ACTION Result.

        Raises:
            MissingOption: A required option is absent.
            InvalidActionContext: The context cannot support this action.
        """
        options = dict(options or {})
        self.validate_context(context)
        self.validate_options(options)

        result = self.create_result(context, options)
        self.logger.debug("Executing action %s with options %s", self.name, options)

        try:
            child = await self.execute_action(context, options, result)
        except Exception as e:
            self.logger.debug("Action %s raised: %s", self.name, e)
            child = Result.from_exception(e, self.executor_name, ResultKind.EXECUTOR)

        child = self.classify(child, context, options)

        try:
            result.add_child(child)
        except ResultBubbled:
            self.logger.debug("Action %s bubbled an error: %s", self.name, result.error_message)
            return result
        return result.finish()

    def create_result(self, context: ActionContext, options: ActionOptions) -> Result:
        result = Result(
            f"{self.name}:execute",
            ResultKind.ACTION,
            bubble_error=True,
            bubble_failure=True,
            failure_is_error=True,
        )
        result.set_detail({
            "action_type": self.action_type.value,
            "action_name": self.name,
            "description": self.description,
            "target_org": context.target_alias,
            "action_options": options,
        })
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class SfdxCliAction(Action):
    """An action backed by a single platform CLI command."""

    @abstractmethod
    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        """Describe the command, including its progress/error/success messages."""

    async def execute_action(
        self, context: ActionContext, options: ActionOptions, result: Result
    ) -> Result:
        command = self.build_command(context, options)
        result.set_detail({
            "executor_name": self.executor_name,
            "executor_messages": command.messages(),
            "command": command.model_dump(),
        })
        return await context.executor.run(command, context.sink)

    def standard_flags(self, context: ActionContext) -> dict[str, Any]:
        """Flags every command gets: JSON output at the run's log level."""
        return {
            "FLAG_JSON": True,
            "FLAG_LOGLEVEL": context.log_level.value,
        }


def downgrade_to_warning(child: Result, reason: str) -> Result:
    """Absorb a FAILURE child into a finished WARNING result."""
    wrapper = Result(
        f"{child.name}:downgraded",
        child.kind,
        bubble_error=False,
        bubble_failure=False,
    )
    wrapper.add_child(child)
    return wrapper.finish({"reason": reason, "original_status": ResultStatus.FAILURE.value})
