"""
Project model — where recipes, metadata and data files live.

Loaded from sandboxctl.yml when the project has one. A project without
the file still works: the recipe's directory layout is enough.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

# Directory names inside a project root
CONFIG_DIR = "demo-config"
MDAPI_SOURCE_DIR = "mdapi-source"
DATA_DIR = "demo-data"


class ProjectConfig(BaseModel):
    """Project identity and local defaults — loaded from sandboxctl.yml."""

    name: str = ""
    alias: str = ""
    description: str = ""
    default_recipe: str | None = None
    recipes: list[str] = Field(default_factory=list)

    dev_hub_alias: str | None = None
    log_level: str | None = None

    def fallback_recipe(self) -> str | None:
        """Recipe used when a command names none: the default, else the first listed."""
        if self.default_recipe:
            return self.default_recipe
        return self.recipes[0] if self.recipes else None


class ProjectContext(BaseModel):
    """Resolved filesystem layout of a project."""

    project_path: Path
    config: ProjectConfig = Field(default_factory=ProjectConfig)

    @property
    def config_path(self) -> Path:
        return self.project_path / CONFIG_DIR

    @property
    def mdapi_source_path(self) -> Path:
        return self.project_path / MDAPI_SOURCE_DIR

    @property
    def data_path(self) -> Path:
        return self.project_path / DATA_DIR

    @classmethod
    def for_path(cls, project_path: Path | str, config: ProjectConfig | None = None) -> ProjectContext:
        return cls(
            project_path=Path(project_path).resolve(),
            config=config or ProjectConfig(),
        )

    def to_dict(self) -> dict:
        return {
            "project_path": str(self.project_path),
            "config_path": str(self.config_path),
            "mdapi_source_path": str(self.mdapi_source_path),
            "data_path": str(self.data_path),
            "name": self.config.name,
        }
