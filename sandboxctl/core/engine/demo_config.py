"""
Demo configuration engine — installs a demo into a target org.

Policy supplied on top of RecipeEngine:
    - target org from --target-org, the recipe's only target, or a prompt
    - a "Refresh Scratch Org" group (delete, then create) injected before
      the recipe's own groups when the target is a scratch org
    - an optional interactive checklist of groups for custom installs
"""

from __future__ import annotations

from sandboxctl.core.actions.metadata import (
    DeployMetadataAction,
    ExecuteApexAction,
    ImportDataTreeAction,
    InstallPackageAction,
)
from sandboxctl.core.actions.scratch_org import CreateScratchOrgAction, DeleteScratchOrgAction
from sandboxctl.core.actions.users import ConfigureAdminUserAction, CreateUserAction
from sandboxctl.core.engine.base import RecipeEngine
from sandboxctl.core.engine.context import DEFAULT_LOG_LEVEL, LogLevel
from sandboxctl.core.errors import InstallationCancelled, MissingTargetOrg
from sandboxctl.core.models.recipe import RecipeStep, RecipeType, StepGroup, TargetOrg
from sandboxctl.core.prompt import Answers, Choice, Question

REFRESH_GROUP_ALIAS = "refresh-scratch-org"
CANCEL_INSTALLATION = "CANCEL_INSTALLATION"


# ── Questions ───────────────────────────────────────────────────


def _chosen_target(answers: Answers) -> TargetOrg | None:
    target = answers.get("targetOrg")
    return target if isinstance(target, TargetOrg) else None


def target_org_questions(targets: list[TargetOrg]) -> list[Question]:
    """The target selection interview: pick, confirm, maybe try again."""
    choices = [
        Choice(
            name=f"{t.org_name} -- {t.description}",
            value=t,
            short=t.org_name,
        )
        for t in targets
    ]
    choices.append(Choice(
        name="Cancel Installation",
        value=CANCEL_INSTALLATION,
        short="Demo Installation Canceled",
    ))

    return [
        Question(
            type="list",
            name="targetOrg",
            message="Please select the installation target for this demo",
            choices=choices,
        ),
        Question(
            type="confirm",
            name="proceed",
            default=False,
            message=lambda a: (
                f"The scratch org '{_chosen_target(a).alias}' will be deleted "
                "before installing the demo. Proceed?"
            ),
            when=lambda a: _chosen_target(a) is not None and _chosen_target(a).is_scratch_org,
        ),
        Question(
            type="confirm",
            name="proceed",
            default=False,
            message=lambda a: (
                f"The alias '{_chosen_target(a).alias}' must be associated with a "
                "compatible Salesforce org. Proceed with org validation?"
            ),
            when=lambda a: _chosen_target(a) is not None and not _chosen_target(a).is_scratch_org,
        ),
        Question(
            type="confirm",
            name="tryAgain",
            default=False,
            message="Would you like to select a different demo target?",
            when=lambda a: _chosen_target(a) is not None and not a.get("proceed"),
        ),
    ]


def skip_group_questions(aliases: list[str], default_skips: list[str]) -> list[Question]:
    """Checklist of groups to install; unchecked groups are skipped."""
    return [
        Question(
            type="checkbox",
            name="installGroups",
            message="Select the step groups to install",
            choices=[
                Choice(name=alias, value=alias, checked=alias not in default_skips)
                for alias in aliases
            ],
        )
    ]


# ── Engine ──────────────────────────────────────────────────────


class DemoConfigEngine(RecipeEngine):
    engine_type = RecipeType.APPX_DEMO.value
    reserved_group_aliases = (REFRESH_GROUP_ALIAS,)

    async def initialize_engine_context(self) -> None:
        ctx = self.context
        options = ctx.compile_options
        project_config = ctx.project.config

        ctx.is_executing = False
        ctx.dev_hub_alias = options.dev_hub_alias or project_config.dev_hub_alias
        ctx.halt_on_error = (
            options.halt_on_error
            if options.halt_on_error is not None
            else self.document.options.halt_on_error
        )
        ctx.log_level = options.log_level or _parse_log_level(project_config.log_level)

    async def initialize_target_org(self) -> None:
        options = self.context.compile_options
        targets = self.document.options.target_orgs

        if options.target_org_alias:
            target = self.document.get_target_org(options.target_org_alias)
            if target is None:
                raise MissingTargetOrg(
                    f"The target org alias '{options.target_org_alias}' does not match "
                    "any of the targetOrgs in your recipe"
                )
        elif not targets:
            raise MissingTargetOrg("The recipe does not declare any targetOrgs")
        elif len(targets) == 1:
            target = targets[0]
            if target.is_scratch_org and not options.skip_org_refresh:
                await self._confirm_scratch_refresh(target)
        else:
            target = await self._ask_for_target_org(targets)

        self.logger.debug("Target org: %s", target.alias)
        self.context.target_org = target

    async def _confirm_scratch_refresh(self, target: TargetOrg) -> None:
        if self.context.compile_options.assume_yes:
            return
        if self.prompter is None:
            raise InstallationCancelled(
                f"The scratch org '{target.alias}' would be deleted and no interactive "
                "prompt is available to confirm (use --yes)"
            )
        answers = await self.prompter.prompt([
            Question(
                type="confirm",
                name="proceed",
                default=False,
                message=(
                    f"The scratch org '{target.alias}' will be deleted "
                    "before installing the demo. Proceed?"
                ),
            )
        ])
        if not answers.get("proceed"):
            raise InstallationCancelled("Installation cancelled at user's request")

    async def _ask_for_target_org(self, targets: list[TargetOrg]) -> TargetOrg:
        if self.prompter is None:
            raise MissingTargetOrg(
                f"The recipe declares {len(targets)} targetOrgs; choose one with --target-org"
            )

        questions = target_org_questions(targets)
        while True:
            answers = await self.prompter.prompt(questions)
            target = _chosen_target(answers)
            if target is None:
                raise InstallationCancelled("Installation cancelled at user's request")
            if answers.get("proceed"):
                return target
            if not answers.get("tryAgain"):
                raise InstallationCancelled("Installation cancelled at user's request")

    async def initialize_pre_build_step_groups(self) -> None:
        target = self.context.target_org
        if target.is_scratch_org and not self.context.compile_options.skip_org_refresh:
            self.pre_build_step_groups = [refresh_scratch_org_group(target)]
        else:
            self.pre_build_step_groups = []

    async def initialize_post_build_step_groups(self) -> None:
        self.post_build_step_groups = []

    async def initialize_skip_actions(self) -> None:
        options = self.context.compile_options
        if options.skip_actions is not None:
            self.context.skip_actions = list(options.skip_actions)
        else:
            self.context.skip_actions = list(self.document.options.skip_actions)

    async def initialize_skip_groups(self) -> None:
        options = self.context.compile_options
        recipe_skips = list(self.document.options.skip_groups)

        if options.skip_groups is not None:
            self.context.skip_groups = list(options.skip_groups)
        elif not options.custom_install or self.document.options.no_custom_install:
            self.context.skip_groups = recipe_skips
        elif self.prompter is None:
            self.logger.warning("Custom install requested but no prompt is available; using recipe defaults")
            self.context.skip_groups = recipe_skips
        else:
            aliases = [g.alias for g in self.all_step_groups()]
            answers = await self.prompter.prompt(skip_group_questions(aliases, recipe_skips))
            selected = set(answers.get("installGroups") or [])
            self.context.skip_groups = [a for a in aliases if a not in selected]

    async def initialize_action_map(self) -> None:
        for action_cls in (
            CreateScratchOrgAction,
            DeleteScratchOrgAction,
            DeployMetadataAction,
            ImportDataTreeAction,
            ExecuteApexAction,
            InstallPackageAction,
            CreateUserAction,
            ConfigureAdminUserAction,
        ):
            self.action_registry.register(action_cls(logger=self.logger))


def refresh_scratch_org_group(target: TargetOrg) -> StepGroup:
    """Delete-then-recreate group for a scratch org target."""
    step_options = {
        "scratchOrgAlias": target.alias,
        "scratchDefJson": target.scratch_def_json,
    }
    return StepGroup(
        step_group_name="Refresh Scratch Org",
        alias=REFRESH_GROUP_ALIAS,
        description=f"Delete and recreate the scratch org '{target.alias}'",
        recipe_steps=[
            RecipeStep(
                step_name="Delete Scratch Org",
                description=f"Mark '{target.alias}' for deletion",
                action="delete-scratch-org",
                options=dict(step_options),
            ),
            RecipeStep(
                step_name="Create Scratch Org",
                description=f"Create '{target.alias}' from {target.scratch_def_json}",
                action="create-scratch-org",
                options=dict(step_options),
            ),
        ],
    )


def _parse_log_level(value: str | None) -> LogLevel:
    if not value:
        return DEFAULT_LOG_LEVEL
    try:
        return LogLevel(value.lower())
    except ValueError:
        return DEFAULT_LOG_LEVEL
