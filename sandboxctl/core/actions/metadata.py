"""
Org configuration actions — metadata deploys, data imports, anonymous Apex
and package installs.
"""

from __future__ import annotations

from sandboxctl.adapters.base import CommandDefinition
from sandboxctl.core.actions.base import (
    ActionContext,
    ActionOptions,
    ActionType,
    SfdxCliAction,
)

DEFAULT_WAIT_MINUTES = 10


class DeployMetadataAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "deploy-metadata"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:mdapi:deploy"
        self.description = "Deploy Metadata"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("mdapiSource",)

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        source = options["mdapiSource"]
        alias = context.target_alias
        return CommandDefinition(
            command=self.command,
            progress_msg=f"Deploying metadata from '{source}' to {alias}",
            error_msg=f"Deployment of metadata from '{source}' to {alias} failed",
            success_msg=f"Metadata from '{source}' successfully deployed to {alias}",
            flags={
                "FLAG_TARGETUSERNAME": alias,
                "FLAG_DEPLOYDIR": str(context.project.mdapi_source_path / source),
                "FLAG_WAIT": DEFAULT_WAIT_MINUTES,
                **self.standard_flags(context),
            },
        )


class ImportDataTreeAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "import-data-tree"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:data:tree:import"
        self.description = "Import Data Tree"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("plan",)

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        plan = options["plan"]
        return CommandDefinition(
            command=self.command,
            progress_msg=f"Importing data based on {plan}",
            error_msg=f"Data tree import failed for plan {plan}",
            success_msg=f"Data tree import succeeded for plan '{plan}'",
            flags={
                "FLAG_TARGETUSERNAME": context.target_alias,
                "FLAG_PLAN": str(context.project.data_path / plan),
                "FLAG_CONTENTTYPE": "json",
                **self.standard_flags(context),
            },
        )


class ExecuteApexAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "execute-apex"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:apex:execute"
        self.description = "Execute Apex"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("apexCodeFile",)

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        code_file = options["apexCodeFile"]
        return CommandDefinition(
            command=self.command,
            progress_msg=f"Executing anonymous Apex from '{code_file}'",
            error_msg=f"Execution failed for anonymous Apex in '{code_file}'",
            success_msg=f"Execution of anonymous Apex in '{code_file}' succeeded",
            flags={
                "FLAG_TARGETUSERNAME": context.target_alias,
                "FLAG_APEXCODEFILE": str(context.project.config_path / code_file),
                **self.standard_flags(context),
            },
        )


class InstallPackageAction(SfdxCliAction):
    def initialize(self) -> None:
        self.name = "install-package"
        self.action_type = ActionType.SFDX_CLI
        self.command = "force:package:install"
        self.description = "Install Package"
        self.executor_name = "sfdx:executeSfdxCommand"
        self.required_options = ("packageName", "packageVersionId")

    def build_command(self, context: ActionContext, options: ActionOptions) -> CommandDefinition:
        name = options["packageName"]
        version_id = options["packageVersionId"]
        alias = context.target_alias
        return CommandDefinition(
            command=self.command,
            progress_msg=f"Installing '{name}' ({version_id}) into {alias}",
            error_msg=f"Installation of package '{name}' ({version_id}) failed",
            success_msg=f"Package '{name}' ({version_id}) successfully installed into {alias}",
            flags={
                "FLAG_TARGETUSERNAME": alias,
                "FLAG_PACKAGE": version_id,
                "FLAG_WAIT": DEFAULT_WAIT_MINUTES,
                "FLAG_PUBLISHWAIT": DEFAULT_WAIT_MINUTES,
                "FLAG_NOPROMPT": True,
                **self.standard_flags(context),
            },
        )
