"""
Install use case — read, compile and execute a recipe.

This is the top-level orchestrator: it resolves the project, validates
the recipe, compiles it against a target org, runs every step through
the platform CLI, and hands back the finished Result tree.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from sandboxctl.adapters.base import CommandExecutor
from sandboxctl.adapters.sfdx.cli import SfdxCliExecutor
from sandboxctl.core.config.loader import ConfigError
from sandboxctl.core.engine.base import ExecutionOptions
from sandboxctl.core.engine.context import CompileOptions
from sandboxctl.core.errors import (
    ExecutorUnavailable,
    InstallationCancelled,
    RecipeEngineError,
    ResultBubbled,
)
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.models.result import Result, ResultStatus
from sandboxctl.core.progress import ProgressSink
from sandboxctl.core.prompt import Prompter
from sandboxctl.core.recipe import Recipe
from sandboxctl.core.use_cases.validate import load_recipe

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of installing a recipe."""

    recipe: Recipe | None = None
    project: ProjectContext | None = None
    result: Result | None = None
    cancelled: bool = False
    error: str | None = None

    @property
    def status(self) -> ResultStatus:
        if self.result is not None:
            return self.result.status
        if self.cancelled:
            return ResultStatus.UNKNOWN
        return ResultStatus.ERROR

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None and self.result.ok

    def to_dict(self) -> dict:
        out: dict = {
            "status": self.status.value,
            "cancelled": self.cancelled,
        }
        if self.error:
            out["error"] = self.error
        if self.recipe:
            out["recipe"] = self.recipe.name
            if self.recipe.engine and self.recipe.engine.context:
                out["context"] = self.recipe.engine.context.to_dict()
        if self.result:
            out["result"] = self.result.to_dict()
        return out


async def install(
    recipe: Recipe,
    options: CompileOptions | None = None,
    execution: ExecutionOptions | None = None,
    executor: CommandExecutor | None = None,
    prompter: Prompter | None = None,
    sink: ProgressSink | None = None,
) -> Result:
    """Compile and execute an already-validated recipe.

    Raises whatever compile raises, ExecutorUnavailable when a real run
    has no usable executor, and ResultBubbled when the run ended in ERROR.
    """
    if executor is None:
        executor = SfdxCliExecutor(cwd=str(recipe.project.project_path))

    # Checked up front so a missing CLI is one error, not one per step
    dry_run = execution is not None and execution.dry_run
    if not dry_run and not executor.is_available():
        raise ExecutorUnavailable(
            f"The {executor.name} CLI was not found; install it or put it on PATH"
        )

    await recipe.compile(options, executor=executor, prompter=prompter, sink=sink)
    return await recipe.execute(execution)


def install_recipe(
    recipe_ref: str | Path | None = None,
    config_path: Path | None = None,
    options: CompileOptions | None = None,
    execution: ExecutionOptions | None = None,
    executor: CommandExecutor | None = None,
    prompter: Prompter | None = None,
    sink: ProgressSink | None = None,
) -> InstallResult:
    """Install a recipe into its target org.

    Args:
        recipe_ref: Recipe path, or a name under the project's demo-config dir.
        config_path: Optional explicit path to sandboxctl.yml.
        options: Compile overrides (target org, skips, ...).
        execution: Run-time switches (dry run).
        executor: Command executor (default: the sfdx CLI).
        prompter: Asked when options leave a choice open.
        sink: Receives progress events.

    Returns:
        InstallResult; ``result`` holds the RECIPE Result tree when
        execution started.
    """
    out = InstallResult()

    try:
        out.project, out.recipe = load_recipe(recipe_ref, config_path)
    except (ConfigError, RecipeEngineError) as e:
        out.error = str(e)
        return out

    try:
        out.result = asyncio.run(install(
            out.recipe,
            options=options,
            execution=execution,
            executor=executor,
            prompter=prompter,
            sink=sink,
        ))
    except InstallationCancelled as e:
        logger.info("Installation cancelled: %s", e)
        out.cancelled = True
        out.error = str(e)
    except ResultBubbled as e:
        out.result = e.result
        out.error = e.result.error_message or str(e)
    except RecipeEngineError as e:
        logger.debug("Install failed", exc_info=True)
        out.error = str(e)

    return out
