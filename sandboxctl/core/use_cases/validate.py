"""
Validate use case — load a recipe and report every problem with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sandboxctl.core.config.loader import ConfigError, resolve_project
from sandboxctl.core.errors import InvalidRecipe
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.recipe import ENGINES, Recipe


@dataclass
class ValidateResult:
    """Result of recipe validation."""

    valid: bool = False
    recipe: Recipe | None = None
    project: ProjectContext | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "project_path": str(self.project.project_path) if self.project else None,
            "recipe": self.recipe.to_dict() if self.recipe else None,
        }


def load_recipe(
    recipe_ref: str | Path | None,
    config_path: Path | None = None,
) -> tuple[ProjectContext, Recipe]:
    """Resolve the project and read (and validate) a recipe in it.

    With no ``recipe_ref`` the project's ``default_recipe`` is used, else
    the first of its ``recipes``.

    Raises:
        ConfigError: If sandboxctl.yml is invalid.
        InvalidRecipe: If the recipe is missing or invalid.
    """
    project = resolve_project(config_path)
    if recipe_ref is None:
        recipe_ref = project.config.fallback_recipe()
    if not recipe_ref:
        raise InvalidRecipe("No recipe given and the project has no default_recipe or recipes")
    return project, Recipe.read(project, recipe_ref)


def validate_recipe(
    recipe_ref: str | Path | None = None,
    config_path: Path | None = None,
) -> ValidateResult:
    """Validate a recipe file without compiling it.

    Args:
        recipe_ref: Recipe path, or a name under the project's demo-config dir.
        config_path: Optional explicit path to sandboxctl.yml.

    Returns:
        ValidateResult with every problem found.
    """
    result = ValidateResult()

    try:
        result.project, result.recipe = load_recipe(recipe_ref, config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    except InvalidRecipe as e:
        result.errors.extend(e.problems or [e.detail])
        return result

    recipe = result.recipe

    # Semantic checks that do not block compilation
    if recipe.recipe_type not in ENGINES:
        result.warnings.append(
            f"Recipe type '{recipe.recipe_type}' validates but no engine can compile it yet"
        )
    if not recipe.document.options.target_orgs:
        result.warnings.append("No targetOrgs declared; the recipe cannot be installed anywhere.")

    scratch_dir = result.project.config_path
    for target in recipe.document.options.target_orgs:
        if target.scratch_def_json and not (scratch_dir / target.scratch_def_json).is_file():
            result.warnings.append(
                f"Scratch definition '{target.scratch_def_json}' for '{target.alias}' "
                f"not found in {scratch_dir}"
            )

    known = set(recipe.document.group_aliases())
    for alias in recipe.document.options.skip_groups:
        if alias not in known:
            result.warnings.append(f"skipGroups names unknown group '{alias}'")

    result.valid = True
    return result
