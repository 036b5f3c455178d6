"""
Tests for the Recipe facade — read, validate, compile, execute.
"""

import pytest

from sandboxctl.core.engine.context import CompileOptions
from sandboxctl.core.errors import (
    InvalidRecipe,
    RecipeNotCompiled,
    RecipeNotValidated,
    ResultBubbled,
    UnknownAction,
)
from sandboxctl.core.models.result import ResultKind, ResultStatus
from sandboxctl.core.recipe import Recipe

OPTIONS = CompileOptions(target_org_alias="demo1", dev_hub_alias="Hub")


class TestRecipeRead:
    def test_read_by_name(self, project, write_recipe, recipe_data):
        path = write_recipe(recipe_data)
        recipe = Recipe.read(project, "demo-recipe.json")
        assert recipe.validated
        assert not recipe.compiled
        assert recipe.name == "Demo Recipe"
        assert recipe.recipe_type == "appx:demo-recipe"
        assert recipe.source_path == path.resolve()

    def test_read_lists_every_missing_key(self, project, write_recipe, recipe_data):
        del recipe_data["recipeVersion"]
        del recipe_data["options"]["haltOnError"]
        del recipe_data["recipeStepGroups"][1]["alias"]
        write_recipe(recipe_data)

        with pytest.raises(InvalidRecipe) as exc_info:
            Recipe.read(project, "demo-recipe.json")

        problems = exc_info.value.problems
        assert len(problems) == 3
        assert "'recipeVersion': missing required key" in problems
        assert "'options.haltOnError': missing required key" in problems
        assert "'recipeStepGroups.1.alias': missing required key" in problems

    def test_scratch_target_without_definition(self, project, recipe_data):
        del recipe_data["options"]["targetOrgs"][0]["scratchDefJson"]
        with pytest.raises(InvalidRecipe) as exc_info:
            Recipe.from_dict(recipe_data, project)
        assert any("scratchDefJson" in p for p in exc_info.value.problems)

    def test_persistent_target_without_requirements(self, project, recipe_data, persistent_target):
        del persistent_target["orgReqsJson"]
        recipe_data["options"]["targetOrgs"].append(persistent_target)
        with pytest.raises(InvalidRecipe) as exc_info:
            Recipe.from_dict(recipe_data, project)
        assert any("orgReqsJson" in p for p in exc_info.value.problems)


class TestRecipeValidation:
    def test_duplicate_group_alias(self, project, recipe_data):
        recipe_data["recipeStepGroups"][1]["alias"] = "deploy"
        with pytest.raises(InvalidRecipe, match="deploy"):
            Recipe.from_dict(recipe_data, project)

    def test_reserved_group_alias(self, project, recipe_data):
        recipe_data["recipeStepGroups"][0]["alias"] = "refresh-scratch-org"
        with pytest.raises(InvalidRecipe, match="reserved"):
            Recipe.from_dict(recipe_data, project)

    def test_unknown_recipe_type(self, project, recipe_data):
        recipe_data["recipeType"] = "appx:mystery-recipe"
        with pytest.raises(InvalidRecipe, match="recipeType"):
            Recipe.from_dict(recipe_data, project)

    def test_unknown_type_reported_with_other_problems(self, project, recipe_data):
        recipe_data["recipeType"] = "appx:mystery-recipe"
        del recipe_data["handlers"]
        with pytest.raises(InvalidRecipe) as exc_info:
            Recipe.from_dict(recipe_data, project)
        problems = exc_info.value.problems
        assert "'handlers': missing required key" in problems
        assert any(p.startswith("'recipeType': 'appx:mystery-recipe' is not one of") for p in problems)

    def test_duplicate_target_alias(self, project, recipe_data, persistent_target):
        persistent_target["alias"] = "demo1"
        recipe_data["options"]["targetOrgs"].append(persistent_target)
        with pytest.raises(InvalidRecipe) as exc_info:
            Recipe.from_dict(recipe_data, project)
        assert "'options.targetOrgs': target org alias used more than once: demo1" in exc_info.value.problems

    def test_package_recipe_validates(self, project, recipe_data):
        recipe_data["recipeType"] = "appx:package-recipe"
        recipe = Recipe.from_dict(recipe_data, project)
        assert recipe.validated

    @pytest.mark.asyncio
    async def test_package_recipe_cannot_compile(self, project, recipe_data, executor):
        recipe_data["recipeType"] = "appx:package-recipe"
        recipe = Recipe.from_dict(recipe_data, project)
        with pytest.raises(InvalidRecipe, match="not supported"):
            await recipe.compile(OPTIONS, executor=executor)

    @pytest.mark.asyncio
    async def test_compile_requires_validation(self, project, recipe_data, executor):
        recipe = Recipe.from_dict(recipe_data, project)
        recipe.validated = False
        with pytest.raises(RecipeNotValidated):
            await recipe.compile(OPTIONS, executor=executor)


class TestRecipeExecution:
    @pytest.mark.asyncio
    async def test_execute_requires_compile(self, project, recipe_data):
        recipe = Recipe.from_dict(recipe_data, project)
        with pytest.raises(RecipeNotCompiled):
            await recipe.execute()

    @pytest.mark.asyncio
    async def test_execute_success(self, project, recipe_data, executor):
        recipe = Recipe.from_dict(recipe_data, project)
        engine = await recipe.compile(OPTIONS, executor=executor)
        assert recipe.compiled
        assert recipe.engine is engine

        result = await recipe.execute()
        assert result.kind == ResultKind.RECIPE
        assert result.name == "recipe:Demo Recipe"
        assert result.status == ResultStatus.SUCCESS
        assert result.children[0].kind == ResultKind.ENGINE

    @pytest.mark.asyncio
    async def test_execute_error_bubbles_to_caller(self, project, recipe_data, executor):
        executor.set_failure("force:org:create", "Dev hub limit reached")
        recipe = Recipe.from_dict(recipe_data, project)
        await recipe.compile(OPTIONS, executor=executor)

        with pytest.raises(ResultBubbled) as exc_info:
            await recipe.execute()

        result = exc_info.value.result
        assert result.kind == ResultKind.RECIPE
        assert result.status == ResultStatus.ERROR
        assert result.error_message == "Failed to create scratch org using scratch-def.json"
        assert executor.commands == ["force:org:delete", "force:org:create"]

    @pytest.mark.asyncio
    async def test_unknown_action_bubbles_as_result(self, project, recipe_data, executor):
        recipe_data["recipeStepGroups"][0]["recipeSteps"][0]["action"] = "launch-rocket"
        recipe = Recipe.from_dict(recipe_data, project)
        await recipe.compile(OPTIONS, executor=executor)

        with pytest.raises(ResultBubbled) as exc_info:
            await recipe.execute()

        result = exc_info.value.result
        assert result.kind == ResultKind.RECIPE
        assert result.status == ResultStatus.ERROR
        assert isinstance(result.error_obj, UnknownAction)
        assert result.children[0].kind == ResultKind.ENGINE
        assert executor.commands == ["force:org:delete", "force:org:create"]

    @pytest.mark.asyncio
    async def test_execute_failure_without_halt(self, project, recipe_data, executor):
        executor.set_failure("force:apex:execute", "Apex compile error")
        recipe = Recipe.from_dict(recipe_data, project)
        await recipe.compile(
            CompileOptions(target_org_alias="demo1", dev_hub_alias="Hub", halt_on_error=False),
            executor=executor,
        )
        result = await recipe.execute()
        assert result.status == ResultStatus.FAILURE
        assert result.error_message == "Execution failed for anonymous Apex in 'owners.apex'"

    def test_to_dict(self, project, recipe_data):
        d = Recipe.from_dict(recipe_data, project).to_dict()
        assert d["name"] == "Demo Recipe"
        assert d["step_groups"] == ["deploy", "data"]
        assert d["target_orgs"] == ["demo1"]
        assert d["validated"] is True
