"""
Recipe engine base — compiles a validated recipe into a task tree and runs it.

Compilation is a fixed sequence of awaited hooks. Subclasses supply the
policy (where the target org comes from, which groups to inject, which
actions exist); the base class owns the order, the self-check, and the
tree:

    1. recipe must be validated
    2. initialize_engine_context()
    3. initialize_target_org()
    4. initialize_pre_build_step_groups() / initialize_post_build_step_groups()
    5. initialize_skip_actions() / initialize_skip_groups()
    6. initialize_action_map()
    7. validate_engine()        (base)
    8. compile_all_tasks()      (base)

Execution is strictly sequential: groups in order, steps in order, each
step awaited before the next starts.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from sandboxctl.adapters.base import CommandExecutor
from sandboxctl.core.actions.base import ActionContext
from sandboxctl.core.actions.registry import ActionRegistry
from sandboxctl.core.engine.context import CompileOptions, EngineContext
from sandboxctl.core.errors import (
    InvalidEngine,
    InvalidEngineContext,
    InvalidRecipe,
    RecipeEngineError,
    RecipeNotCompiled,
    ResultBubbled,
    UnknownAction,
)
from sandboxctl.core.models.recipe import RecipeDocument, StepGroup, duplicate_aliases
from sandboxctl.core.models.result import Result, ResultKind, ResultStatus
from sandboxctl.core.progress import NullProgressSink, ProgressSink
from sandboxctl.core.prompt import Prompter

if TYPE_CHECKING:
    from sandboxctl.core.recipe import Recipe


# ── Task tree ───────────────────────────────────────────────────


@dataclass(frozen=True)
class CompiledStep:
    """A step that survived filtering, ready to dispatch."""

    group_alias: str
    name: str
    description: str
    action: str
    options: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "action": self.action,
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class CompiledGroup:
    """A step group with at least one active step."""

    name: str
    alias: str
    description: str
    steps: tuple[CompiledStep, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "alias": self.alias,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
        }


class ExecutionOptions(BaseModel):
    """Run-time switches for ``RecipeEngine.execute``."""

    dry_run: bool = False


# ── Engine ──────────────────────────────────────────────────────


class RecipeEngine(ABC):
    """Abstract base class for recipe engines.

    Args:
        executor: Runs the commands actions describe.
        prompter: Asks the user when compile options leave a choice open.
            ``None`` means no interaction is possible.
        sink: Receives progress events during execution.
        logger: Logger to use instead of the module logger.
    """

    # Recipe type this engine compiles, used in messages and result names
    engine_type = "abstract"

    # Aliases of groups the engine may inject; recipes must not reuse them
    reserved_group_aliases: tuple[str, ...] = ()

    def __init__(
        self,
        executor: CommandExecutor,
        prompter: Prompter | None = None,
        sink: ProgressSink | None = None,
        logger: logging.Logger | None = None,
    ):
        self.executor = executor
        self.prompter = prompter
        self.sink = sink or NullProgressSink()
        self.logger = logger or logging.getLogger(__name__)

        self.recipe: Recipe | None = None
        self.context: EngineContext | None = None
        self.action_registry = ActionRegistry(self.engine_type, logger=self.logger)
        self.pre_build_step_groups: list[StepGroup] | None = None
        self.post_build_step_groups: list[StepGroup] | None = None
        self.task_tree: list[CompiledGroup] | None = None

    # ── Static helpers ──────────────────────────────────────────

    @classmethod
    async def compile_recipe(
        cls,
        recipe: Recipe,
        options: CompileOptions | None = None,
        **services: Any,
    ) -> RecipeEngine:
        """Build an engine of this type and compile ``recipe`` with it."""
        engine = cls(**services)
        await engine.compile(recipe, options)
        return engine

    @classmethod
    def validate_recipe(cls, document: RecipeDocument) -> list[str]:
        """Checks that need the whole document. Returns problem strings."""
        problems: list[str] = []
        for alias in duplicate_aliases(document.recipe_step_groups):
            problems.append(f"'recipeStepGroups': alias '{alias}' is used by more than one step group")
        for alias in document.group_aliases():
            if alias in cls.reserved_group_aliases:
                problems.append(
                    f"'recipeStepGroups': alias '{alias}' is reserved by the {cls.engine_type} engine"
                )
        return problems

    # ── Properties ──────────────────────────────────────────────

    @property
    def document(self) -> RecipeDocument:
        if self.recipe is None:
            raise RecipeNotCompiled("No recipe has been compiled by this engine")
        return self.recipe.document

    @property
    def compiled(self) -> bool:
        return self.task_tree is not None

    def all_step_groups(self) -> list[StepGroup]:
        """Pre-build, recipe and post-build groups, in that order."""
        return [
            *(self.pre_build_step_groups or []),
            *self.document.recipe_step_groups,
            *(self.post_build_step_groups or []),
        ]

    # ── Compilation ─────────────────────────────────────────────

    async def compile(self, recipe: Recipe, options: CompileOptions | None = None) -> None:
        """Compile ``recipe`` into this engine's task tree.

        Raises:
            InvalidRecipe: If the recipe has not been validated.
            InstallationCancelled: If the user declined to proceed.
            MissingTargetOrg: If no target org could be selected.
            InvalidEngine / InvalidEngineContext: If the self-check fails.
        """
        if recipe is None or not recipe.validated:
            raise InvalidRecipe("Recipes must be validated before they can be compiled")

        self.recipe = recipe
        self.context = EngineContext(
            project=recipe.project,
            compile_options=options or CompileOptions(),
        )
        self.action_registry = ActionRegistry(self.engine_type, logger=self.logger)
        self.pre_build_step_groups = None
        self.post_build_step_groups = None
        self.task_tree = None

        self.logger.debug("Compiling recipe '%s' with %s engine", self.document.recipe_name, self.engine_type)

        await self.initialize_engine_context()
        await self.initialize_target_org()
        await self.initialize_pre_build_step_groups()
        await self.initialize_post_build_step_groups()
        await self.initialize_skip_actions()
        await self.initialize_skip_groups()
        await self.initialize_action_map()
        self.validate_engine()
        self.compile_all_tasks()

        self.logger.info(
            "Compiled recipe '%s': %d group(s), %d step(s)",
            self.document.recipe_name,
            len(self.task_tree or []),
            sum(len(g.steps) for g in self.task_tree or []),
        )

    @abstractmethod
    async def initialize_engine_context(self) -> None:
        """Fill context fields the recipe does not fix."""

    @abstractmethod
    async def initialize_target_org(self) -> None:
        """Select ``context.target_org``."""

    @abstractmethod
    async def initialize_pre_build_step_groups(self) -> None:
        """Set ``pre_build_step_groups`` (possibly empty)."""

    @abstractmethod
    async def initialize_post_build_step_groups(self) -> None:
        """Set ``post_build_step_groups`` (possibly empty)."""

    @abstractmethod
    async def initialize_skip_actions(self) -> None:
        """Set ``context.skip_actions``."""

    @abstractmethod
    async def initialize_skip_groups(self) -> None:
        """Set ``context.skip_groups``."""

    @abstractmethod
    async def initialize_action_map(self) -> None:
        """Register every action this engine supports."""

    def validate_engine(self) -> None:
        """Self-check after the hooks ran. Freezes the context on success."""
        if len(self.action_registry) == 0:
            raise InvalidEngine(f"The {self.engine_type} engine registered no actions")
        if not isinstance(self.pre_build_step_groups, list):
            raise InvalidEngine("Pre-build step groups were not initialized")
        if not isinstance(self.post_build_step_groups, list):
            raise InvalidEngine("Post-build step groups were not initialized")

        dupes = duplicate_aliases(self.all_step_groups())
        if dupes:
            raise InvalidEngine(f"Step group aliases are not unique: {', '.join(dupes)}")

        ctx = self.context
        if ctx is None:
            raise InvalidEngineContext("Engine context was not created")
        if ctx.target_org is None or not ctx.target_org.alias:
            raise InvalidEngineContext("No target org with a non-empty alias was selected")
        if not isinstance(ctx.skip_actions, list):
            raise InvalidEngineContext("Skip actions were not initialized")
        if not isinstance(ctx.skip_groups, list):
            raise InvalidEngineContext("Skip groups were not initialized")

        ctx.initialized = True

    def compile_all_tasks(self) -> None:
        """Build the two-level task tree from every non-skipped group and step."""
        assert self.context is not None  # guaranteed by validate_engine
        skip_groups = set(self.context.skip_groups or [])
        skip_actions = set(self.context.skip_actions or [])

        tree: list[CompiledGroup] = []
        for group in self.all_step_groups():
            if group.alias in skip_groups:
                self.logger.debug("Skipping group %s", group.alias)
                continue

            steps = tuple(
                CompiledStep(
                    group_alias=group.alias,
                    name=step.step_name,
                    description=step.description,
                    action=step.action,
                    options=dict(step.options),
                )
                for step in group.recipe_steps
                if step.action not in skip_actions
            )
            if not steps:
                self.logger.debug("Group %s has no active steps, omitted", group.alias)
                continue

            tree.append(CompiledGroup(
                name=group.step_group_name,
                alias=group.alias,
                description=group.description,
                steps=steps,
            ))

        self.task_tree = tree

    # ── Execution ───────────────────────────────────────────────

    def build_action_context(self) -> ActionContext:
        ctx = self.context
        assert ctx is not None and ctx.target_org is not None
        return ActionContext(
            target_org=ctx.target_org,
            project=ctx.project,
            executor=self.executor,
            dev_hub_alias=ctx.dev_hub_alias,
            log_level=ctx.log_level,
            sink=self.sink,
        )

    async def execute(self, options: ExecutionOptions | None = None) -> Result:
        """Run the compiled task tree.

        Returns:
            The finalized ENGINE Result.

        Raises:
            RecipeNotCompiled: If ``compile`` has not completed.
            ResultBubbled: If an error bubbled to the engine result
                (halt-on-error, or a step naming an action this engine
                lacks). The finalized result rides along.
        """
        if self.task_tree is None or self.context is None:
            raise RecipeNotCompiled(f"The {self.engine_type} engine has no compiled task tree")

        options = options or ExecutionOptions()
        action_context = self.build_action_context()

        engine_result = Result(
            f"{self.engine_type}:execute",
            ResultKind.ENGINE,
            bubble_error=True,
            bubble_failure=True,
        )
        engine_result.set_detail({
            "recipe_name": self.document.recipe_name,
            "target_org": action_context.target_alias,
            "halt_on_error": self.context.halt_on_error,
            "dry_run": options.dry_run,
        })

        self.context.is_executing = True
        try:
            for group in self.task_tree:
                group_result = await self._run_group(group, action_context, options)
                engine_result.add_child(group_result)
        except ResultBubbled:
            self.logger.error("Recipe '%s' halted: %s", self.document.recipe_name, engine_result.error_message)
            raise
        finally:
            self.context.is_executing = False

        return engine_result.finish()

    async def _run_group(
        self,
        group: CompiledGroup,
        action_context: ActionContext,
        options: ExecutionOptions,
    ) -> Result:
        assert self.context is not None
        self.sink.on_start(group.name)

        group_result = Result(
            f"group:{group.alias}",
            ResultKind.FUNCTION,
            bubble_error=self.context.halt_on_error,
            bubble_failure=True,
        )
        group_result.set_detail({"group_name": group.name, "steps": len(group.steps)})

        for step in group.steps:
            try:
                step_result = await self._run_step(step, action_context, options)
            except UnknownAction as e:
                # Fatal whatever halt-on-error says; steps already run stay attached
                self.logger.error("%s", e)
                group_result.error(e)
                self.sink.on_error(f"{step.name}: {e}")
                return group_result
            try:
                group_result.add_child(step_result)
            except ResultBubbled:
                self.sink.on_error(f"{group.name}: {group_result.error_message}")
                return group_result

        group_result.finish()
        if group_result.status == ResultStatus.SUCCESS:
            self.sink.on_complete(group.name)
        elif group_result.status == ResultStatus.WARNING:
            self.sink.on_complete(f"{group.name} (warning)")
        else:
            self.sink.on_error(f"{group.name} finished with status {group_result.status.value}")
        return group_result

    async def _run_step(
        self,
        step: CompiledStep,
        action_context: ActionContext,
        options: ExecutionOptions,
    ) -> Result:
        action = self.action_registry.resolve(step.action)
        self.sink.on_start(step.name)
        self.logger.info("▶ %s (%s)", step.name, step.action)

        try:
            if options.dry_run:
                action.validate_context(action_context)
                action.validate_options(step.options)
                result = action.create_result(action_context, step.options)
                result.success({"dry_run": True})
            else:
                result = await action.execute(action_context, step.options)
        except RecipeEngineError as e:
            result = Result.from_exception(e, f"{step.action}:execute", ResultKind.ACTION)

        marker = {ResultStatus.SUCCESS: "✓", ResultStatus.WARNING: "⚠"}.get(result.status, "✗")
        self.logger.info("%s %s → %s", marker, step.name, result.status.value)

        if result.status == ResultStatus.SUCCESS:
            self.sink.on_complete(step.name)
        elif result.status == ResultStatus.WARNING:
            self.sink.on_complete(f"{step.name} (warning)")
        else:
            self.sink.on_error(f"{step.name}: {result.error_message}")
        return result

    def describe(self) -> list[dict]:
        """The compiled tree as plain dicts."""
        return [g.to_dict() for g in self.task_tree or []]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} type={self.engine_type!r} compiled={self.compiled}>"
