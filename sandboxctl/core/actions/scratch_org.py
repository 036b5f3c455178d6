"""
Scratch org actions — create and delete ephemeral orgs.
"""

from __future__ import annotations

import re

from sandboxctl.adapters.base import CommandDefinition
from sandboxctl.core.actions.base import (
    ActionContext,
    ActionOptions,
    ActionType,
    SfdxCliAction,
    downgrade_to_warning,
)
from sandboxctl.core.models.result import Result, ResultStatus

DEFAULT_DURATION_DAYS = 30
DEFAULT_WAIT_MINUTES = 10

# Error names / messages the CLI uses when an alias has no org behind it
_ORG_NOT_FOUND = re.compile(
    r"NamedOrgNotFound|NoOrgFound|No org configuration found|No authorization information found",
    re.IGNORECASE,
)


class CreateScratchOrgAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "create-scratch-org"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:org:create"
        self.description = "Create Scratch Org"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("scratchOrgAlias", "scratchDefJson")

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        alias = options["scratchOrgAlias"]
        definition = options["scratchDefJson"]
        return CommandDefinition(
            command=self.command,
            progress_msg=(
                f"Creating scratch org '{alias}' using {definition} "
                "(this can take 3-10 minutes)"
            ),
            error_msg=f"Failed to create scratch org using {definition}",
            success_msg=f"Scratch org '{alias}' created successfully using {definition}",
            flags={
                "FLAG_TARGETDEVHUBUSERNAME": context.dev_hub_alias,
                "FLAG_DEFINITIONFILE": str(context.project.config_path / definition),
                "FLAG_SETALIAS": alias,
                "FLAG_DURATIONDAYS": options.get("durationDays", DEFAULT_DURATION_DAYS),
                "FLAG_WAIT": DEFAULT_WAIT_MINUTES,
                "FLAG_NONAMESPACE": True,
                "FLAG_SETDEFAULTUSERNAME": True,
                **self.standard_flags(context),
            },
        )


class DeleteScratchOrgAction(SfdxCliAction):
    """Mark a scratch org for deletion.

    An org that does not exist is not an error here: the create step
    that normally follows makes "already gone" the desired state. Such
    failures come back as WARNING.
    """

    def initialize(self) -> None:
        self.name = "delete-scratch-org"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:org:delete"
        self.description = "Delete Scratch Org"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("scratchOrgAlias",)

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        alias = options["scratchOrgAlias"]
        return CommandDefinition(
            command=self.command,
            progress_msg=f"Marking scratch org '{alias}' for deletion",
            error_msg=f"Request to mark scratch org '{alias}' for deletion failed",
            success_msg=f"Scratch org '{alias}' successfully marked for deletion",
            flags={
                "FLAG_TARGETUSERNAME": alias,
                "FLAG_TARGETDEVHUBUSERNAME": context.dev_hub_alias,
                "FLAG_NOPROMPT": True,
                **self.standard_flags(context),
            },
        )

    def classify(self, child: Result, context: ActionContext, options: ActionOptions) -> Result:
        if child.status != ResultStatus.FAILURE:
            return child
        evidence = " ".join(
            str(part) for part in (
                child.error_message,
                child.detail.get("cause", ""),
                child.detail.get("error_name", ""),
                child.detail.get("stderr", ""),
            )
        )
        if _ORG_NOT_FOUND.search(evidence):
            alias = options["scratchOrgAlias"]
            self.logger.info("Scratch org '%s' does not exist, nothing to delete", alias)
            return downgrade_to_warning(child, f"Scratch org '{alias}' did not exist")
        return child
