"""
Shared test fixtures and configuration.
"""

import copy
import json
from pathlib import Path

import pytest

from sandboxctl.adapters.mock import MockExecutor, ScriptedPrompter
from sandboxctl.core.models.project import ProjectContext
from sandboxctl.core.progress import RecordingProgressSink

_BASE_RECIPE = {
    "recipeName": "Demo Recipe",
    "description": "Sets up the sales demo",
    "recipeType": "appx:demo-recipe",
    "recipeVersion": "1.0.0",
    "schemaVersion": "1.0.0",
    "options": {
        "haltOnError": True,
        "skipGroups": [],
        "skipActions": [],
        "targetOrgs": [
            {
                "orgName": "Demo Scratch Org",
                "alias": "demo1",
                "description": "Scratch org for the demo",
                "isScratchOrg": True,
                "scratchDefJson": "scratch-def.json",
            },
        ],
    },
    "recipeStepGroups": [
        {
            "stepGroupName": "Deploy Metadata",
            "alias": "deploy",
            "description": "Deploy demo metadata",
            "recipeSteps": [
                {
                    "stepName": "Deploy Objects",
                    "description": "Deploy custom objects",
                    "action": "deploy-metadata",
                    "options": {"mdapiSource": "objects"},
                },
            ],
        },
        {
            "stepGroupName": "Load Data",
            "alias": "data",
            "description": "Import demo records",
            "recipeSteps": [
                {
                    "stepName": "Import Accounts",
                    "description": "Import accounts",
                    "action": "import-data-tree",
                    "options": {"plan": "accounts-plan.json"},
                },
                {
                    "stepName": "Assign Owners",
                    "description": "Run the owner script",
                    "action": "execute-apex",
                    "options": {"apexCodeFile": "owners.apex"},
                },
            ],
        },
    ],
    "handlers": [],
}

PERSISTENT_TARGET = {
    "orgName": "Demo Sandbox",
    "alias": "sandbox1",
    "description": "Shared sandbox",
    "isScratchOrg": False,
    "orgReqsJson": "org-reqs.json",
}


@pytest.fixture
def recipe_data() -> dict:
    """A fresh, valid demo recipe mapping."""
    return copy.deepcopy(_BASE_RECIPE)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project root with the standard directory layout."""
    (tmp_path / "demo-config").mkdir()
    (tmp_path / "mdapi-source").mkdir()
    (tmp_path / "demo-data").mkdir()
    (tmp_path / "demo-config" / "scratch-def.json").write_text('{"edition": "Developer"}')
    return tmp_path


@pytest.fixture
def project(project_dir: Path) -> ProjectContext:
    return ProjectContext.for_path(project_dir)


@pytest.fixture
def write_recipe(project_dir: Path):
    """Write a recipe mapping into demo-config and return its path."""

    def _write(data: dict, name: str = "demo-recipe.json") -> Path:
        path = project_dir / "demo-config" / name
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def executor() -> MockExecutor:
    return MockExecutor()


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def sink() -> RecordingProgressSink:
    return RecordingProgressSink()


@pytest.fixture
def persistent_target() -> dict:
    """A valid non-scratch target org mapping."""
    return dict(PERSISTENT_TARGET)
