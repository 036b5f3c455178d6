"""
Tests for configuration loading — sandboxctl.yml discovery and recipe files.
"""

import json
import textwrap
from pathlib import Path

import pytest

from sandboxctl.core.config.loader import (
    PROJECT_CONFIG_FILE,
    ConfigError,
    find_project_file,
    load_project_config,
    load_recipe_data,
    resolve_project,
    resolve_recipe_path,
)
from sandboxctl.core.errors import InvalidRecipe
from sandboxctl.core.models.project import ProjectContext


def _write_config(directory: Path, content: str) -> Path:
    path = directory / PROJECT_CONFIG_FILE
    path.write_text(textwrap.dedent(content))
    return path


class TestFindProjectFile:
    def test_finds_in_start_dir(self, tmp_path: Path):
        config = _write_config(tmp_path, "name: demo\n")
        assert find_project_file(tmp_path) == config.resolve()

    def test_walks_up(self, tmp_path: Path):
        config = _write_config(tmp_path, "name: demo\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_file(nested) == config.resolve()

    def test_not_found(self, tmp_path: Path):
        nested = tmp_path / "empty"
        nested.mkdir()
        found = find_project_file(nested)
        assert found is None or tmp_path.resolve() not in found.parents


class TestLoadProjectConfig:
    def test_flat(self, tmp_path: Path):
        path = _write_config(tmp_path, """\
            name: sales-demo
            default_recipe: demo-recipe.json
            dev_hub_alias: MyDevHub
            log_level: debug
        """)
        config = load_project_config(path)
        assert config.name == "sales-demo"
        assert config.default_recipe == "demo-recipe.json"
        assert config.dev_hub_alias == "MyDevHub"
        assert config.log_level == "debug"

    def test_wrapped_in_project_key(self, tmp_path: Path):
        path = _write_config(tmp_path, """\
            project:
              name: wrapped
              recipes:
                - a.json
                - b.json
        """)
        config = load_project_config(path)
        assert config.name == "wrapped"
        assert config.recipes == ["a.json", "b.json"]

    def test_empty_file(self, tmp_path: Path):
        path = _write_config(tmp_path, "")
        assert load_project_config(path).name == ""

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_project_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = _write_config(tmp_path, "name: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_project_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = _write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_project_config(path)

    def test_invalid_field(self, tmp_path: Path):
        path = _write_config(tmp_path, "recipes: 42\n")
        with pytest.raises(ConfigError, match="Invalid project configuration"):
            load_project_config(path)


class TestResolveProject:
    def test_with_config(self, tmp_path: Path):
        path = _write_config(tmp_path, "name: demo\ndev_hub_alias: Hub\n")
        project = resolve_project(path)
        assert project.project_path == tmp_path.resolve()
        assert project.config.dev_hub_alias == "Hub"

    def test_discovers_from_start_dir(self, tmp_path: Path):
        _write_config(tmp_path, "name: found\n")
        project = resolve_project(start_dir=tmp_path)
        assert project.config.name == "found"

    def test_without_config_uses_start_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(
            "sandboxctl.core.config.loader.find_project_file", lambda start_dir=None: None
        )
        project = resolve_project(start_dir=tmp_path)
        assert project.project_path == tmp_path.resolve()
        assert project.config.name == ""


class TestRecipeFiles:
    def test_resolve_relative_to_config_dir(self, project: ProjectContext, write_recipe, recipe_data):
        path = write_recipe(recipe_data)
        assert resolve_recipe_path(project, "demo-recipe.json") == path.resolve()

    def test_resolve_absolute(self, project: ProjectContext, write_recipe, recipe_data):
        path = write_recipe(recipe_data)
        assert resolve_recipe_path(project, str(path)) == path.resolve()

    def test_resolve_missing(self, project: ProjectContext):
        with pytest.raises(InvalidRecipe, match="not found"):
            resolve_recipe_path(project, "missing.json")

    def test_load_recipe_data(self, write_recipe, recipe_data):
        path = write_recipe(recipe_data)
        assert load_recipe_data(path)["recipeName"] == "Demo Recipe"

    def test_load_invalid_json(self, project_dir: Path):
        path = project_dir / "demo-config" / "broken.json"
        path.write_text("{not json")
        with pytest.raises(InvalidRecipe, match="Invalid JSON"):
            load_recipe_data(path)

    def test_load_non_object(self, project_dir: Path):
        path = project_dir / "demo-config" / "list.json"
        path.write_text(json.dumps([1, 2]))
        with pytest.raises(InvalidRecipe, match="JSON object"):
            load_recipe_data(path)
