"""
Plan use case — compile a recipe and show what an install would run.

Nothing is executed. Compilation may still prompt (target selection,
custom install) when a prompter is supplied.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from sandboxctl.adapters.base import CommandExecutor
from sandboxctl.adapters.mock import MockExecutor
from sandboxctl.core.config.loader import ConfigError
from sandboxctl.core.engine.base import RecipeEngine
from sandboxctl.core.engine.context import CompileOptions
from sandboxctl.core.errors import InstallationCancelled, RecipeEngineError
from sandboxctl.core.prompt import Prompter
from sandboxctl.core.recipe import Recipe
from sandboxctl.core.use_cases.validate import load_recipe

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of compiling a recipe."""

    recipe: Recipe | None = None
    engine: RecipeEngine | None = None
    groups: list[dict] = field(default_factory=list)
    cancelled: bool = False
    error: str | None = None

    @property
    def step_count(self) -> int:
        return sum(len(g["steps"]) for g in self.groups)

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error, "cancelled": self.cancelled}
        return {
            "recipe": self.recipe.name if self.recipe else None,
            "context": self.engine.context.to_dict() if self.engine and self.engine.context else None,
            "groups": self.groups,
            "group_count": len(self.groups),
            "step_count": self.step_count,
        }


async def compile_recipe(
    recipe: Recipe,
    options: CompileOptions | None = None,
    executor: CommandExecutor | None = None,
    prompter: Prompter | None = None,
) -> RecipeEngine:
    """Compile with a no-op executor unless one is given."""
    return await recipe.compile(
        options,
        executor=executor or MockExecutor("plan"),
        prompter=prompter,
    )


def plan_recipe(
    recipe_ref: str | Path | None = None,
    config_path: Path | None = None,
    options: CompileOptions | None = None,
    prompter: Prompter | None = None,
) -> PlanResult:
    """Compile a recipe and return its task tree.

    Args:
        recipe_ref: Recipe path, or a name under the project's demo-config dir.
        config_path: Optional explicit path to sandboxctl.yml.
        options: Compile overrides (target org, skips, ...).
        prompter: Asked when options leave a choice open.
    """
    result = PlanResult()

    try:
        _, result.recipe = load_recipe(recipe_ref, config_path)
        result.engine = asyncio.run(compile_recipe(result.recipe, options, prompter=prompter))
    except InstallationCancelled as e:
        result.cancelled = True
        result.error = str(e)
        return result
    except (ConfigError, RecipeEngineError) as e:
        logger.debug("Plan failed: %s", e)
        result.error = str(e)
        return result

    result.groups = result.engine.describe()
    return result
