"""
Error taxonomy — every fatal condition the recipe engine can signal.

Expected outcomes (a provisioning command failed, an org was already
gone) travel as Results. These exceptions are reserved for invalid
input, API misuse, and user cancellation. Each carries a stable
``code`` that prefixes its message, so CLI output and logs stay
grep-able.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sandboxctl.core.models.result import Result


class RecipeEngineError(Exception):
    """Base class for all recipe engine errors."""

    code = "ERROR_RECIPE_ENGINE"

    def __init__(self, message: str = ""):
        self.detail = message
        super().__init__(f"{self.code}: {message}" if message else self.code)


class InvalidRecipe(RecipeEngineError):
    """The recipe is structurally or semantically invalid.

    ``problems`` lists every offending key, not just the first one.
    """

    code = "ERROR_INVALID_RECIPE"

    def __init__(self, message: str = "", problems: list[str] | None = None):
        self.problems = list(problems or [])
        if self.problems:
            bullet_list = "\n".join(f"  - {p}" for p in self.problems)
            message = f"{message}\n{bullet_list}" if message else bullet_list
        super().__init__(message)


class RecipeNotValidated(RecipeEngineError):
    code = "ERROR_RECIPE_NOT_VALIDATED"


class RecipeNotCompiled(RecipeEngineError):
    code = "ERROR_RECIPE_NOT_COMPILED"


class InvalidEngine(RecipeEngineError):
    code = "ERROR_INVALID_ENGINE"


class InvalidEngineContext(RecipeEngineError):
    code = "ERROR_INVALID_ENGINE_CONTEXT"


class InvalidActionContext(RecipeEngineError):
    code = "ERROR_INVALID_ACTION_CONTEXT"


class UnknownAction(RecipeEngineError):
    """A step references an action the engine does not provide."""

    code = "ERROR_UNKNOWN_ACTION"

    def __init__(self, action: str, engine: str):
        self.action = action
        self.engine = engine
        super().__init__(f"Action '{action}' is not supported by the {engine} engine")


class MissingOption(RecipeEngineError):
    """A required action option is absent."""

    code = "ERROR_MISSING_OPTION"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"'{key}'")


class InstallationCancelled(RecipeEngineError):
    """The user declined to proceed. Not a bug."""

    code = "INSTALLATION_CANCELLED"


class MissingTargetOrg(RecipeEngineError):
    code = "ERROR_MISSING_TARGET_ORG"


class ExecutorUnavailable(RecipeEngineError):
    """The command executor cannot run here (e.g. the CLI is not installed)."""

    code = "ERROR_EXECUTOR_UNAVAILABLE"


class ResultAlreadyFinalized(RecipeEngineError):
    code = "ERROR_RESULT_FINALIZED"


class ResultBubbled(RecipeEngineError):
    """Raised when an ERROR child bubbles through a parent Result.

    The parent, already finalized as ERROR, rides along in ``result``
    so the next boundary up can attach it to its own tree.
    """

    code = "ERROR_RESULT_BUBBLED"

    def __init__(self, result: Result):
        self.result = result
        super().__init__(f"{result.name} finished with status {result.status.value}")
