"""Recipe generation and photo analysis on top of the provider fallback chain.

Also converts parsed results into the tracker's food-log shape. Storing the
entries is the tracker's job; nothing here persists anything.
"""

from typing import Optional

from src.chain.errors import InvalidRequest
from src.chain.fallback import FallbackChain
from src.models.models import (
    FoodLogEntry,
    GenerationRequest,
    GenerationResult,
    NutritionAnalysis,
    ParsedRecipe,
    TaskKind,
)
from src.prompts.prompts import (
    ANALYSIS_SYSTEM_INSTRUCTION,
    RECIPE_SYSTEM_INSTRUCTION,
    get_analysis_prompt,
    get_recipe_prompt,
)


def build_recipe_request(
    ingredients: str,
    dietary_preferences: Optional[str] = None,
    provider_hint: Optional[str] = None,
) -> GenerationRequest:
    """Build a text recipe request.

    Raises:
        InvalidRequest: If no ingredients were given.
    """
    if not ingredients or not ingredients.strip():
        raise InvalidRequest("Please enter some ingredients you have available.")

    context = {"ingredients": ingredients.strip()}
    if dietary_preferences:
        context["dietary_preferences"] = dietary_preferences.strip()

    return GenerationRequest(
        task_kind=TaskKind.TEXT_RECIPE,
        prompt_text=get_recipe_prompt(ingredients, dietary_preferences),
        system_instruction=RECIPE_SYSTEM_INSTRUCTION,
        auxiliary_context=context,
        provider_hint=provider_hint,
    )


def build_analysis_request(
    image_data: str,
    meal_description: Optional[str] = None,
    provider_hint: Optional[str] = None,
) -> GenerationRequest:
    context = {"description": meal_description.strip()} if meal_description else {}
    return GenerationRequest(
        task_kind=TaskKind.VISION_ANALYSIS,
        prompt_text=get_analysis_prompt(meal_description),
        system_instruction=ANALYSIS_SYSTEM_INSTRUCTION,
        image_data=image_data,
        auxiliary_context=context,
        provider_hint=provider_hint,
    )


async def generate_recipe(
    chain: FallbackChain,
    ingredients: str,
    dietary_preferences: Optional[str] = None,
    provider_hint: Optional[str] = None,
) -> GenerationResult:
    return await chain.run(build_recipe_request(ingredients, dietary_preferences, provider_hint))


async def analyze_photo(
    chain: FallbackChain,
    image_data: str,
    meal_description: Optional[str] = None,
    provider_hint: Optional[str] = None,
) -> GenerationResult:
    return await chain.run(build_analysis_request(image_data, meal_description, provider_hint))


def _one_decimal(value: float) -> float:
    return round(value * 10) / 10


def recipe_to_food_log_entry(recipe: ParsedRecipe, serving_size: float = 1) -> FoodLogEntry:
    """Convert a generated recipe into one tracker entry for the portion eaten.

    Nutrition totals are divided by the recipe's servings (calories rounded to whole
    numbers per serving, macros to one decimal) and multiplied by serving_size.
    The tracker has no fiber column; fiber is carried in the sugar slot.

    Args:
        recipe: Parsed recipe.
        serving_size: Number of servings eaten (may be fractional).

    Raises:
        ValueError: If serving_size is not positive.
    """
    if serving_size <= 0:
        raise ValueError(f"serving_size must be positive, got: {serving_size}")

    info = recipe.nutrition_info
    servings = recipe.servings
    calories_per_serving = round(info.calories / servings)

    return FoodLogEntry(
        name=f"{recipe.title} (AI Recipe)",
        calories=round(calories_per_serving * serving_size),
        protein=_one_decimal(_one_decimal(info.protein / servings) * serving_size),
        carbs=_one_decimal(_one_decimal(info.carbs / servings) * serving_size),
        fat=_one_decimal(_one_decimal(info.fat / servings) * serving_size),
        sugar=_one_decimal(_one_decimal(info.fiber / servings) * serving_size),
        serving=f"{serving_size:g} serving{'s' if serving_size > 1 else ''}",
    )


def analysis_to_food_log_entries(analysis: NutritionAnalysis) -> list[FoodLogEntry]:
    """One tracker entry per analysed food item, using its estimated amount as serving."""
    return [
        FoodLogEntry(
            name=item.name,
            calories=item.calories,
            protein=item.protein,
            carbs=item.carbs,
            fat=item.fat,
            sugar=item.sugar,
            serving=item.estimated_amount or "1 portion",
        )
        for item in analysis.food_items
    ]
