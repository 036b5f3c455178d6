"""
Recipe — the validated provisioning plan and its entry points.

    recipe = Recipe.read(project, "demo-recipe.json")
    await recipe.compile(CompileOptions(target_org_alias="demo1"), executor=SfdxCliExecutor())
    result = await recipe.execute()

``read`` validates, ``compile`` attaches the engine for the recipe's
type, ``execute`` runs it and wraps the engine's outcome in a RECIPE
Result. RECIPE results always bubble: an ERROR anywhere below reaches
the caller as ResultBubbled.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sandboxctl.adapters.base import CommandExecutor
from sandboxctl.core.config.loader import load_recipe_data, resolve_recipe_path
from sandboxctl.core.engine.base import ExecutionOptions, RecipeEngine
from sandboxctl.core.engine.context import CompileOptions
from sandboxctl.core.engine.demo_config import DemoConfigEngine
from sandboxctl.core.errors import (
    InvalidRecipe,
    RecipeNotCompiled,
    RecipeNotValidated,
    ResultBubbled,
)
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.models.recipe import RecipeDocument, RecipeType
from sandboxctl.core.models.result import Result, ResultKind
from sandboxctl.core.progress import ProgressSink
from sandboxctl.core.prompt import Prompter

logger = logging.getLogger(__name__)

# Recipe type → engine. Types without an entry validate but cannot compile.
ENGINES: dict[str, type[RecipeEngine]] = {
    RecipeType.APPX_DEMO.value: DemoConfigEngine,
}


class Recipe:
    def __init__(
        self,
        document: RecipeDocument,
        project: ProjectContext,
        source_path: Path | None = None,
    ):
        self.document = document
        self.project = project
        self.source_path = source_path
        self.validated = False
        self.compiled = False
        self.engine: RecipeEngine | None = None

    @property
    def name(self) -> str:
        return self.document.recipe_name

    @property
    def recipe_type(self) -> str:
        return self.document.recipe_type

    # ── Construction ────────────────────────────────────────────

    @classmethod
    def read(cls, project: ProjectContext, recipe_ref: str | Path) -> Recipe:
        """Load and validate a recipe file.

        Raises:
            InvalidRecipe: Listing every missing or invalid key.
        """
        path = resolve_recipe_path(project, recipe_ref)
        data = load_recipe_data(path)
        return cls.from_dict(data, project, source_path=path)

    @classmethod
    def from_dict(
        cls,
        data: Any,
        project: ProjectContext,
        source_path: Path | None = None,
    ) -> Recipe:
        """Validate already-loaded recipe data."""
        source = source_path.name if source_path else "recipe"
        document = RecipeDocument.parse(data, source=source)
        recipe = cls(document, project, source_path)
        recipe.validate()
        logger.info("Validated recipe '%s' (%s)", recipe.name, recipe.recipe_type)
        return recipe

    def validate(self) -> None:
        """Run the deep validator for this recipe's type.

        Unknown types never get here: the document model rejects them
        alongside every other structural problem.
        """
        engine_cls = ENGINES.get(self.recipe_type, RecipeEngine)
        problems = engine_cls.validate_recipe(self.document)
        if problems:
            raise InvalidRecipe(f"Recipe '{self.name}' failed validation", problems=problems)
        self.validated = True

    # ── Compile / execute ───────────────────────────────────────

    async def compile(
        self,
        options: CompileOptions | None = None,
        *,
        executor: CommandExecutor,
        prompter: Prompter | None = None,
        sink: ProgressSink | None = None,
        logger: logging.Logger | None = None,
    ) -> RecipeEngine:
        """Attach and compile the engine for this recipe's type.

        Raises:
            RecipeNotValidated: If ``validate`` has not succeeded.
            InvalidRecipe: If no engine handles this recipe type.
        """
        if not self.validated:
            raise RecipeNotValidated(f"Recipe '{self.name}' must be validated before compiling")

        engine_cls = ENGINES.get(self.recipe_type)
        if engine_cls is None:
            raise InvalidRecipe(f"Recipe type '{self.recipe_type}' is not supported by any engine yet")

        self.engine = await engine_cls.compile_recipe(
            self,
            options,
            executor=executor,
            prompter=prompter,
            sink=sink,
            logger=logger,
        )
        self.compiled = True
        return self.engine

    async def execute(self, options: ExecutionOptions | None = None) -> Result:
        """Run the compiled engine.

        Returns:
            The finalized RECIPE Result when nothing bubbled.

        Raises:
            RecipeNotCompiled: If ``compile`` has not succeeded.
            ResultBubbled: Carrying the RECIPE Result when it ended in ERROR.
        """
        if not self.compiled or self.engine is None:
            raise RecipeNotCompiled(f"Recipe '{self.name}' must be compiled before executing")

        recipe_result = Result(f"recipe:{self.name}", ResultKind.RECIPE)
        recipe_result.set_detail({
            "recipe_name": self.name,
            "recipe_type": self.recipe_type,
            "source": str(self.source_path) if self.source_path else None,
        })

        try:
            engine_result = await self.engine.execute(options)
        except ResultBubbled as e:
            engine_result = e.result

        recipe_result.add_child(engine_result)
        return recipe_result.finish()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.document.description,
            "type": self.recipe_type,
            "version": self.document.recipe_version,
            "schema_version": self.document.schema_version,
            "validated": self.validated,
            "compiled": self.compiled,
            "step_groups": [g.alias for g in self.document.recipe_step_groups],
            "target_orgs": [t.alias for t in self.document.options.target_orgs],
        }
