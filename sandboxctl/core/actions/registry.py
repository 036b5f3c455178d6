"""
Action registry — the closed set of actions an engine can dispatch to.

Every action name a recipe may use is a member of ActionName. Engines
register one instance per name they support; steps are resolved by
name at execution time. A name outside the enum, or one the engine
never registered, is an UnknownAction.
"""

from __future__ import annotations

import logging
from enum import Enum

from sandboxctl.core.actions.base import Action
from sandboxctl.core.errors import UnknownAction


class ActionName(str, Enum):
    CREATE_SCRATCH_ORG = "create-scratch-org"
    DELETE_SCRATCH_ORG = "delete-scratch-org"
    DEPLOY_METADATA = "deploy-metadata"
    IMPORT_DATA_TREE = "import-data-tree"
    EXECUTE_APEX = "execute-apex"
    INSTALL_PACKAGE = "install-package"
    CREATE_USER = "create-user"
    CONFIGURE_ADMIN_USER = "configure-admin-user"

    @classmethod
    def lookup(cls, name: str) -> ActionName | None:
        try:
            return cls(name)
        except ValueError:
            return None


class ActionRegistry:
    """Name → Action lookup, built once per engine compilation.

    Args:
        engine: Engine/recipe type label used in UnknownAction messages.
    """

    def __init__(self, engine: str = "recipe", logger: logging.Logger | None = None):
        self.engine = engine
        self._actions: dict[ActionName, Action] = {}
        self._logger = logger or logging.getLogger(__name__)

    def register(self, action: Action) -> None:
        """Register an action under its own name.

        Raises:
            ValueError: If the action's name is not an ActionName.
        """
        key = ActionName.lookup(action.name)
        if key is None:
            raise ValueError(f"'{action.name}' is not a known action name")
        if key in self._actions:
            self._logger.warning("Overwriting existing action: %s", key.value)
        self._actions[key] = action
        self._logger.debug("Registered action: %s", key.value)

    def resolve(self, name: str) -> Action:
        """Look up the action for a step.

        Raises:
            UnknownAction: If the name is unknown or not registered.
        """
        key = ActionName.lookup(name)
        if key is None or key not in self._actions:
            raise UnknownAction(name, self.engine)
        return self._actions[key]

    def get(self, name: str) -> Action | None:
        key = ActionName.lookup(name)
        return self._actions.get(key) if key else None

    def list_actions(self) -> list[str]:
        """List all registered action names, in registration order."""
        return [key.value for key in self._actions]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._actions)
