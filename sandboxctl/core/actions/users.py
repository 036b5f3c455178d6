"""
User actions — create additional users and configure the org's admin user.

Both read a JSON user definition relative to the project's config dir.
``create-user`` is one ``force:user:create`` call. ``configure-admin-user``
chains several CLI calls (look up the admin username, update the User
record, assign permission sets, optionally generate a password) and
stops at the first one that fails.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any

from sandboxctl.adapters.base import CommandDefinition
from sandboxctl.core.actions.base import (
    Action,
    ActionContext,
    ActionOptions,
    ActionType,
    SfdxCliAction,
)
from sandboxctl.core.errors import ResultBubbled
from sandboxctl.core.models.result import Result, ResultKind

# Leaves room for the unique suffix within the platform's username limit
USERNAME_MAX_LENGTH = 35

DEFAULT_PASSWORD = "1HappyCloud"

# Definition keys that are instructions to us, not User record fields
_NON_RECORD_KEYS = ("permsets", "generatePassword", "profileName", "password", "Username", "Email")


def create_unique_username(base_username: str) -> str:
    """Append a random suffix so repeated installs never collide."""
    if not base_username:
        raise ValueError("A base username is required to create a unique username")
    if len(base_username) > USERNAME_MAX_LENGTH:
        raise ValueError(
            f"Username can not be longer than {USERNAME_MAX_LENGTH} chars "
            "to keep room for the unique suffix"
        )
    return f"{base_username}{uuid.uuid4().hex[:12]}"


def determine_password(suggested: str | None) -> str:
    return suggested or DEFAULT_PASSWORD


def read_definition_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise FileNotFoundError(f"User definition file does not exist - {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def definition_permsets(definition: dict[str, Any]) -> list[str]:
    """Permission set names listed in a user definition (may be empty)."""
    permsets = definition.get("permsets") or []
    if not isinstance(permsets, list) or not all(isinstance(p, str) for p in permsets):
        raise ValueError("'permsets' must be a list of permission set names")
    return permsets


def record_values(definition: dict[str, Any]) -> str:
    """Render User field updates as a ``--values`` string: ``Field='value' ...``."""
    pairs = []
    for key, value in definition.items():
        if key in _NON_RECORD_KEYS:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        text = str(value).replace("'", "\\'")
        pairs.append(f"{key}='{text}'")
    return " ".join(pairs)


class CreateUserAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "create-user"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:user:create"
        self.description = "Create User"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("definitionFile", "sfdxUserAlias")

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        definition_path = context.project.config_path / options["definitionFile"]
        definition = read_definition_file(definition_path)
        base_username = definition.get("Username") or definition.get("username") or ""
        username = create_unique_username(base_username)
        password = determine_password(definition.get("password"))
        permsets = definition_permsets(definition)
        alias = context.target_alias

        args = [f"username={username}", f"password={password}"]
        if permsets:
            args.append(f"permsets={','.join(permsets)}")

        return CommandDefinition(
            command=self.command,
            args=args,
            progress_msg=f"Creating User '{username}' in {alias}",
            error_msg=f"Failed to create User '{username}' in {alias}",
            success_msg=f"User '{username}' created successfully",
            flags={
                "FLAG_TARGETUSERNAME": alias,
                "FLAG_DEFINITIONFILE": str(definition_path),
                "FLAG_SETALIAS": options["sfdxUserAlias"],
                **self.standard_flags(context),
            },
        )


class ConfigureAdminUserAction(Action):
    """Apply a user definition to the admin user of the target org."""

    def initialize(self) -> None:
        self.name = "configure-admin-user"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:data:record:update"
        self.description = "Configure Admin User"
        self.executor_name = "sfdx:configureUser"
        self.required_options = ("definitionFile",)

    async def execute_action(
        self, context: ActionContext, options: ActionOptions, result: Result
    ) -> Result:
        definition = read_definition_file(context.project.config_path / options["definitionFile"])
        permsets = definition_permsets(definition)
        alias = context.target_alias
        result.set_detail({"executor_name": self.executor_name, "user_definition": definition})

        executor_result = Result(self.executor_name, ResultKind.EXECUTOR, failure_is_error=True)
        try:
            lookup = await context.executor.run(self._display_command(context), context.sink)
            executor_result.add_child(lookup)

            username = (lookup.detail.get("result") or {}).get("username")
            if not username:
                return executor_result.error(f"Could not determine the admin username of {alias}")
            executor_result.set_detail({"admin_username": username})

            for command in self._configure_commands(context, definition, permsets, username):
                child = await context.executor.run(command, context.sink)
                executor_result.add_child(child)
        except ResultBubbled:
            return executor_result

        return executor_result.finish()

    def _display_command(self, context: ActionContext) -> CommandDefinition:
        alias = context.target_alias
        return CommandDefinition(
            command="force:org:display",
            progress_msg=f"Looking up the admin user of {alias}",
            error_msg=f"Could not look up the admin user of {alias}",
            success_msg=f"Found the admin user of {alias}",
            flags={"FLAG_TARGETUSERNAME": alias, **_cli_flags(context)},
        )

    def _configure_commands(
        self,
        context: ActionContext,
        definition: dict[str, Any],
        permsets: list[str],
        username: str,
    ) -> list[CommandDefinition]:
        alias = context.target_alias
        commands = []

        values = record_values(definition)
        if values:
            commands.append(CommandDefinition(
                command=self.command,
                progress_msg=f"Configuring user '{username}' in {alias}",
                error_msg=f"Failed to configure user '{username}' in {alias}",
                success_msg=f"User '{username}' configured successfully",
                flags={
                    "FLAG_TARGETUSERNAME": alias,
                    "FLAG_SOBJECTTYPE": "User",
                    "FLAG_WHERE": f"Username='{username}'",
                    "FLAG_VALUES": values,
                    **_cli_flags(context),
                },
            ))

        if permsets:
            names = ",".join(permsets)
            commands.append(CommandDefinition(
                command="force:user:permset:assign",
                progress_msg=f"Assigning {names} to '{username}'",
                error_msg=f"Failed to assign {names} to '{username}' in {alias}",
                success_msg=f"Permission sets assigned to '{username}'",
                flags={
                    "FLAG_TARGETUSERNAME": alias,
                    "FLAG_PERMSETNAME": names,
                    "FLAG_ONBEHALFOF": username,
                    **_cli_flags(context),
                },
            ))

        if definition.get("generatePassword"):
            commands.append(CommandDefinition(
                command="force:user:password:generate",
                progress_msg=f"Generating a password for '{username}'",
                error_msg=f"Failed to generate a password for '{username}' in {alias}",
                success_msg=f"Password generated for '{username}'",
                flags={
                    "FLAG_TARGETUSERNAME": alias,
                    "FLAG_ONBEHALFOF": username,
                    **_cli_flags(context),
                },
            ))

        return commands


def _cli_flags(context: ActionContext) -> dict[str, Any]:
    return {"FLAG_JSON": True, "FLAG_LOGLEVEL": context.log_level.value}
