"""
Recipe models — the declarative shape of a provisioning plan.

Recipes are JSON documents with camelCase keys. The models accept those
keys as aliases and expose snake_case attributes. Structural validation
is pydantic's job, including known recipe types and unique target-org
aliases. Rules that need the whole document or the engine (group alias
uniqueness, reserved aliases) live with the engine.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from sandboxctl.core.errors import InvalidRecipe


class RecipeType(str, Enum):
    APPX_DEMO = "appx:demo-recipe"
    APPX_PACKAGE = "appx:package-recipe"


class _RecipeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TargetOrg(_RecipeModel):
    """A provisioning destination.

    Ephemeral (scratch) orgs are created from a definition file;
    persistent orgs are checked against a requirements file.
    """

    org_name: str = Field(alias="orgName", min_length=1)
    alias: str = Field(min_length=1)
    description: str = Field(min_length=1)
    is_scratch_org: bool = Field(alias="isScratchOrg", strict=True)
    scratch_def_json: str | None = Field(default=None, alias="scratchDefJson")
    org_reqs_json: str | None = Field(default=None, alias="orgReqsJson")

    @model_validator(mode="after")
    def _check_definition_files(self) -> TargetOrg:
        if self.is_scratch_org and not self.scratch_def_json:
            raise ValueError(
                f"target org '{self.alias}' is a scratch org, so 'scratchDefJson' "
                "must be a non-empty string"
            )
        if not self.is_scratch_org and not self.org_reqs_json:
            raise ValueError(
                f"target org '{self.alias}' is not a scratch org, so 'orgReqsJson' "
                "must be a non-empty string"
            )
        return self


class RecipeStep(_RecipeModel):
    """One action invocation inside a step group.

    ``on_success`` / ``on_error`` are reserved and never read by the engine.
    """

    step_name: str = Field(alias="stepName", min_length=1)
    description: str = ""
    action: str = Field(min_length=1)
    options: dict[str, Any] = Field(default_factory=dict)
    on_success: str | None = Field(default=None, alias="onSuccess")
    on_error: str | None = Field(default=None, alias="onError")


class StepGroup(_RecipeModel):
    """Named, ordered collection of steps. The alias is the unit of skipping."""

    step_group_name: str = Field(alias="stepGroupName", min_length=1)
    alias: str = Field(min_length=1)
    description: str = Field(min_length=1)
    recipe_steps: list[RecipeStep] = Field(alias="recipeSteps")


class RecipeOptions(_RecipeModel):
    halt_on_error: bool = Field(alias="haltOnError", strict=True)
    skip_groups: list[str] = Field(alias="skipGroups")
    skip_actions: list[str] = Field(alias="skipActions")
    target_orgs: list[TargetOrg] = Field(alias="targetOrgs")
    no_custom_install: bool = Field(default=False, alias="noCustomInstall", strict=True)

    @field_validator("target_orgs")
    @classmethod
    def _check_unique_target_aliases(cls, targets: list[TargetOrg]) -> list[TargetOrg]:
        dupes = _duplicates(t.alias for t in targets)
        if dupes:
            raise ValueError(
                f"target org alias used more than once: {', '.join(dupes)}"
            )
        return targets


class RecipeDocument(_RecipeModel):
    """Root of a recipe file."""

    recipe_name: str = Field(alias="recipeName", min_length=1)
    description: str
    recipe_type: str = Field(alias="recipeType", min_length=1)
    recipe_version: str = Field(alias="recipeVersion")
    schema_version: str = Field(alias="schemaVersion")
    options: RecipeOptions
    recipe_step_groups: list[StepGroup] = Field(alias="recipeStepGroups")
    handlers: list[dict[str, Any]]

    @field_validator("recipe_type")
    @classmethod
    def _check_recipe_type(cls, value: str) -> str:
        known = [t.value for t in RecipeType]
        if value not in known:
            raise ValueError(f"'{value}' is not one of {', '.join(known)}")
        return value

    @classmethod
    def parse(cls, data: Any, source: str = "recipe") -> RecipeDocument:
        """Validate raw recipe data, reporting every problem at once.

        Raises:
            InvalidRecipe: With one entry per missing or invalid key.
        """
        if not isinstance(data, dict):
            raise InvalidRecipe(
                f"Expected a JSON object in {source}, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidRecipe(
                f"{source} has {e.error_count()} invalid or missing key(s)",
                problems=[_format_error(err) for err in e.errors()],
            ) from e

    def get_target_org(self, alias: str) -> TargetOrg | None:
        for target in self.options.target_orgs:
            if target.alias == alias:
                return target
        return None

    def group_aliases(self) -> list[str]:
        return [g.alias for g in self.recipe_step_groups]


def duplicate_aliases(groups: list[StepGroup]) -> list[str]:
    """Aliases used by more than one group, in first-seen order."""
    return _duplicates(g.alias for g in groups)


def _duplicates(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def _format_error(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    message = err.get("msg", "invalid value").removeprefix("Value error, ")
    if err.get("type") == "missing":
        return f"'{loc}': missing required key"
    return f"'{loc}': {message}" if loc else message
