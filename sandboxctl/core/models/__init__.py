"""
Domain models — recipes, projects and results.

    from sandboxctl.core.models import RecipeDocument, Result, ResultStatus
"""

from sandboxctl.core.models.project import ProjectConfig, ProjectContext
from sandboxctl.core.models.recipe import (
    RecipeDocument,
    RecipeOptions,
    RecipeStep,
    RecipeType,
    StepGroup,
    TargetOrg,
)
from sandboxctl.core.models.result import Result, ResultKind, ResultStatus

__all__ = [
    "ProjectConfig",
    "ProjectContext",
    "RecipeDocument",
    "RecipeOptions",
    "RecipeStep",
    "RecipeType",
    "Result",
    "ResultKind",
    "ResultStatus",
    "StepGroup",
    "TargetOrg",
]
