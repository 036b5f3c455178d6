"""
Recipe actions — one class per step action name.

    from sandboxctl.core.actions import ActionName, ActionRegistry
"""

from sandboxctl.core.actions.base import Action, ActionContext, ActionType, SfdxCliAction
from sandboxctl.core.actions.metadata import (
    DeployMetadataAction,
    ExecuteApexAction,
    ImportDataTreeAction,
    InstallPackageAction,
)
from sandboxctl.core.actions.registry import ActionName, ActionRegistry
from sandboxctl.core.actions.scratch_org import CreateScratchOrgAction, DeleteScratchOrgAction
from sandboxctl.core.actions.users import CreateUserAction

__all__ = [
    "Action",
    "ActionContext",
    "ActionName",
    "ActionRegistry",
    "ActionType",
    "CreateScratchOrgAction",
    "CreateUserAction",
    "DeleteScratchOrgAction",
    "DeployMetadataAction",
    "ExecuteApexAction",
    "ImportDataTreeAction",
    "InstallPackageAction",
    "SfdxCliAction",
]
