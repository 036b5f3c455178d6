"""
Configuration loader — reads sandboxctl.yml and recipe files.

The project file is YAML validated against ProjectConfig. Recipe files
are JSON; their structural validation happens in RecipeDocument, this
module only gets the raw mapping off disk.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from sandboxctl.core.errors import InvalidRecipe
from sandboxctl.core.models.project import ProjectConfig, ProjectContext

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "sandboxctl.yml"


class ConfigError(Exception):
    """Raised when project configuration is invalid or missing."""


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for sandboxctl.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to sandboxctl.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_project_config(path: Path) -> ProjectConfig:
    """Load and validate a project file.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading project config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may wrap everything under a "project" key or be flat
    project_data = data.get("project", data)

    try:
        config = ProjectConfig.model_validate(project_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project configuration: {e}") from e

    logger.info("Loaded project '%s'", config.name or path.parent.name)
    return config


def resolve_project(config_path: Path | None = None, start_dir: Path | None = None) -> ProjectContext:
    """Build the ProjectContext for a run.

    With an explicit or discovered sandboxctl.yml the project root is its
    directory. Otherwise the start directory (cwd) is the project root.
    """
    if config_path is None:
        config_path = find_project_file(start_dir)

    if config_path is None:
        root = (start_dir or Path.cwd()).resolve()
        logger.debug("No %s found, using %s as project root", PROJECT_CONFIG_FILE, root)
        return ProjectContext.for_path(root)

    config = load_project_config(config_path)
    return ProjectContext.for_path(config_path.parent, config)


def resolve_recipe_path(project: ProjectContext, recipe_ref: str | Path) -> Path:
    """Locate a recipe file.

    Tried in order: the path as given (absolute or relative to cwd),
    then relative to the project's demo-config directory.
    """
    ref = Path(recipe_ref)
    if ref.is_file():
        return ref.resolve()
    candidate = project.config_path / ref
    if candidate.is_file():
        return candidate.resolve()
    raise InvalidRecipe(
        f"Recipe file '{recipe_ref}' not found (also looked in {project.config_path})"
    )


def load_recipe_data(path: Path) -> dict[str, Any]:
    """Read a recipe file into a raw mapping.

    Raises:
        InvalidRecipe: If the file cannot be read or is not a JSON object.
    """
    logger.debug("Reading recipe from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidRecipe(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidRecipe(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidRecipe(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data
