"""Unit tests for the local template provider."""

import json

import pytest

from src.models.models import GenerationRequest, NutritionAnalysis, ParsedRecipe, TaskKind
from src.providers.template import (
    LocalTemplateProvider,
    build_template_analysis,
    build_template_recipe,
    pick_token,
    split_ingredients,
)


class TestTokenSelection:
    def test_split_ingredients_lowercases_and_drops_blanks(self):
        assert split_ingredients(" Salmon , ,Broccoli,") == ["salmon", "broccoli"]

    def test_pick_token_substring_match(self):
        assert pick_token(["2 salmon fillets"], ("fish", "salmon")) == "salmon"

    def test_pick_token_earliest_entry_wins(self):
        assert pick_token(["beef mince", "chicken"], ("chicken", "beef")) == "beef"

    def test_pick_token_none(self):
        assert pick_token(["rice"], ("chicken",)) is None

    def test_pick_token_earliest_match_within_entry(self):
        """Vocabulary order does not decide: "salmon" appears before "fish" in the entry."""
        assert pick_token(["salmon fish"], ("fish", "salmon")) == "salmon"

    def test_pick_token_whole_word_beats_substring(self):
        assert pick_token(["catfish", "salmon"], ("fish", "salmon")) == "salmon"

    def test_pick_token_substring_when_no_whole_word(self):
        assert pick_token(["catfish"], ("fish", "salmon")) == "fish"

    def test_pick_token_longest_token_on_tie(self):
        assert pick_token(["bell pepper strips"], ("bell", "bell pepper")) == "bell pepper"


class TestTemplateRecipe:
    """Test the deterministic recipe skeleton."""

    def test_salmon_and_broccoli_selected(self):
        recipe = build_template_recipe("Salmon, BROCCOLI, rice")

        assert recipe["title"] == "Healthy salmon with broccoli"
        assert recipe["ingredients"][:2] == ["salmon (200g)", "broccoli (150g)"]
        assert "Cook the salmon for 5-7 minutes on each side until done" in recipe["instructions"]
        assert "Steam or sauté the broccoli until tender" in recipe["instructions"]
        assert "protein" not in recipe["title"]

    @pytest.mark.parametrize("ingredients", ["salmon fish, broccoli", "catfish, salmon, broccoli"])
    def test_salmon_selected_over_fish(self, ingredients):
        recipe = build_template_recipe(ingredients)

        assert recipe["title"] == "Healthy salmon with broccoli"

    def test_user_entries_can_be_left_out(self):
        recipe = build_template_recipe("make something with tofu, carrots", list_user_entries=False)

        assert recipe["title"] == "Healthy tofu with carrots"
        assert len(recipe["ingredients"]) == 4

    def test_defaults_when_no_known_tokens(self):
        recipe = build_template_recipe("quinoa, lentils")

        assert recipe["title"] == "Healthy protein with vegetables"

    def test_first_three_user_ingredients_appended(self):
        recipe = build_template_recipe("tofu, spinach, garlic, ginger")

        assert recipe["ingredients"][4:] == [
            "tofu (as needed)",
            "spinach (as needed)",
            "garlic (as needed)",
        ]

    def test_fixed_nutrition(self):
        recipe = build_template_recipe("eggs")

        assert recipe["nutritionInfo"] == {"calories": 350, "protein": 30, "carbs": 15, "fat": 12, "fiber": 5}
        assert recipe["cookTime"] == 20
        assert recipe["servings"] == 2
        assert recipe["dietaryTags"] == ["Healthy", "Balanced"]

    def test_recipe_conforms_to_shape(self):
        ParsedRecipe.model_validate(build_template_recipe("chicken, zucchini"))

    def test_deterministic(self):
        assert build_template_recipe("turkey, asparagus") == build_template_recipe("turkey, asparagus")


class TestTemplateAnalysis:
    def test_items_from_description(self):
        analysis = build_template_analysis("grilled chicken, carrots")

        assert [item["name"] for item in analysis["foodItems"]] == ["chicken", "carrots"]
        assert analysis["totalNutrition"]["calories"] == 300
        assert analysis["confidence"] == "low"

    def test_generic_item_without_description(self):
        analysis = build_template_analysis("")

        assert analysis["foodItems"][0]["name"] == "mixed meal"
        NutritionAnalysis.model_validate(analysis)


class TestLocalTemplateProvider:
    """Test the provider wrapper."""

    def test_descriptor(self):
        provider = LocalTemplateProvider()

        assert provider.identifier == "simple-template"
        assert provider.descriptor.is_local
        assert provider.descriptor.supports_vision is False

    @pytest.mark.asyncio
    async def test_attempt_uses_ingredients_context(self):
        request = GenerationRequest(
            task_kind=TaskKind.TEXT_RECIPE,
            prompt_text="Create a healthy recipe using these available ingredients: ...",
            auxiliary_context={"ingredients": "salmon, broccoli"},
        )

        text = await LocalTemplateProvider().attempt(request)

        assert json.loads(text)["title"] == "Healthy salmon with broccoli"

    @pytest.mark.asyncio
    async def test_attempt_falls_back_to_prompt_text(self):
        request = GenerationRequest(task_kind=TaskKind.TEXT_RECIPE, prompt_text="beef, spinach")

        text = await LocalTemplateProvider().attempt(request)

        assert json.loads(text)["title"] == "Healthy beef with spinach"

    @pytest.mark.asyncio
    async def test_prompt_fragments_not_listed_as_ingredients(self):
        request = GenerationRequest(
            task_kind=TaskKind.TEXT_RECIPE,
            prompt_text="Create a healthy recipe using these available ingredients: tofu, zucchini",
        )

        recipe = json.loads(await LocalTemplateProvider().attempt(request))

        assert recipe["title"] == "Healthy tofu with zucchini"
        assert not any("as needed" in item for item in recipe["ingredients"])

    @pytest.mark.asyncio
    async def test_attempt_vision_returns_analysis(self):
        request = GenerationRequest(
            task_kind=TaskKind.VISION_ANALYSIS,
            prompt_text="Analyze this food image",
            auxiliary_context={"description": "tofu stir fry"},
        )

        data = json.loads(await LocalTemplateProvider().attempt(request))

        assert data["foodItems"][0]["name"] == "tofu"
