"""Local template provider: deterministic, offline terminal fallback.

Picks one known protein and one known vegetable out of the user's free-text
ingredient list and fills a fixed recipe skeleton with fixed nutrition numbers.
The output is rendered as JSON text and goes through the same parsing path as
remote output, so it always satisfies the structured shape.
"""

import json
import re
from typing import Iterable, Optional

from src.models.models import EndpointKind, GenerationRequest, ProviderDescriptor, TaskKind
from src.providers.base import Provider

TEMPLATE_IDENTIFIER = "simple-template"

PROTEINS = ("chicken", "beef", "fish", "salmon", "turkey", "tofu", "eggs")
VEGETABLES = ("broccoli", "spinach", "carrots", "bell pepper", "zucchini", "asparagus")

DEFAULT_PROTEIN = "protein"
DEFAULT_VEGETABLE = "vegetables"

RECIPE_TEMPLATE = {
    "title": "Healthy {protein} with {vegetable}",
    "description": "A nutritious and balanced meal featuring {protein} and {vegetable}",
    "instructions": [
        "Prepare your {protein} by seasoning with salt and pepper",
        "Heat a pan with a little olive oil over medium heat",
        "Cook the {protein} for 5-7 minutes on each side until done",
        "Steam or sauté the {vegetable} until tender",
        "Serve together with your choice of healthy sides",
    ],
    "nutritionInfo": {"calories": 350, "protein": 30, "carbs": 15, "fat": 12, "fiber": 5},
    "cookTime": 20,
    "servings": 2,
    "dietaryTags": ["Healthy", "Balanced"],
}

# Per-item estimates used when the photo cannot be looked at
PROTEIN_ESTIMATE = {"estimatedAmount": "150g", "calories": 250, "protein": 30, "carbs": 0, "fat": 12, "sugar": 0}
VEGETABLE_ESTIMATE = {"estimatedAmount": "1 cup", "calories": 50, "protein": 3, "carbs": 8, "fat": 0.5, "sugar": 3}
MIXED_MEAL_ESTIMATE = {"estimatedAmount": "1 plate", "calories": 500, "protein": 25, "carbs": 50, "fat": 20, "sugar": 8}

NUTRIENTS = ("calories", "protein", "carbs", "fat", "sugar")


def split_ingredients(text: str) -> list[str]:
    """Lower-case, comma-separated entries with blanks removed."""
    return [part.strip() for part in text.lower().split(",") if part.strip()]


def _first_match(entry: str, vocabulary: tuple[str, ...], whole_word: bool) -> Optional[str]:
    """Token whose match starts earliest in entry; ties go to the longest token."""
    best: Optional[tuple[int, int, str]] = None
    for token in vocabulary:
        if whole_word:
            match = re.search(rf"\b{re.escape(token)}\b", entry)
            start = match.start() if match else -1
        else:
            start = entry.find(token)
        if start < 0:
            continue
        candidate = (start, -len(token), token)
        if best is None or candidate < best:
            best = candidate
    return best[2] if best else None


def pick_token(entries: Iterable[str], vocabulary: Iterable[str]) -> Optional[str]:
    """Return the vocabulary token found in the earliest entry that contains one.

    Matching is case-insensitive. Whole-word matches anywhere in the list win over
    substring matches, so "catfish, salmon" yields "salmon" while "catfish" alone
    still yields "fish". Within an entry the earliest match wins, so
    "salmon fish" yields "salmon".
    """
    vocabulary = tuple(vocabulary)
    entries = [entry.lower() for entry in entries]
    for whole_word in (True, False):
        for entry in entries:
            token = _first_match(entry, vocabulary, whole_word)
            if token:
                return token
    return None


def build_template_recipe(ingredients_text: str, list_user_entries: bool = True) -> dict:
    """Fill the recipe skeleton from free-text ingredients.

    Args:
        ingredients_text: Comma-separated ingredients (or any text to scan for tokens).
        list_user_entries: Append the first three entries as "(as needed)" ingredients.
            Off when the text is a whole prompt rather than an ingredient list.
    """
    entries = split_ingredients(ingredients_text)
    protein = pick_token(entries, PROTEINS) or DEFAULT_PROTEIN
    vegetable = pick_token(entries, VEGETABLES) or DEFAULT_VEGETABLE

    def fill(template: str) -> str:
        return template.replace("{protein}", protein).replace("{vegetable}", vegetable)

    return {
        "title": fill(RECIPE_TEMPLATE["title"]),
        "description": fill(RECIPE_TEMPLATE["description"]),
        "ingredients": [
            f"{protein} (200g)",
            f"{vegetable} (150g)",
            "Olive oil (1 tbsp)",
            "Salt and pepper to taste",
            *[f"{entry} (as needed)" for entry in (entries[:3] if list_user_entries else [])],
        ],
        "instructions": [fill(step) for step in RECIPE_TEMPLATE["instructions"]],
        "nutritionInfo": dict(RECIPE_TEMPLATE["nutritionInfo"]),
        "cookTime": RECIPE_TEMPLATE["cookTime"],
        "servings": RECIPE_TEMPLATE["servings"],
        "dietaryTags": list(RECIPE_TEMPLATE["dietaryTags"]),
    }


def build_template_analysis(description: str) -> dict:
    entries = split_ingredients(description)
    protein = pick_token(entries, PROTEINS)
    vegetable = pick_token(entries, VEGETABLES)

    items = []
    if protein:
        items.append({"name": protein, **PROTEIN_ESTIMATE})
    if vegetable:
        items.append({"name": vegetable, **VEGETABLE_ESTIMATE})
    if not items:
        items.append({"name": "mixed meal", **MIXED_MEAL_ESTIMATE})

    totals = {nutrient: round(sum(item[nutrient] for item in items), 1) for nutrient in NUTRIENTS}

    return {
        "foodItems": items,
        "totalNutrition": totals,
        "confidence": "low",
        "notes": [
            "AI image analysis is currently unavailable; values are generic estimates.",
            "Portion sizes were assumed, not measured from the photo.",
            "Adjust the entries in your tracker if the meal differs.",
        ],
    }


class LocalTemplateProvider(Provider):
    def __init__(self, priority: int = 100, timeout_seconds: float = 1.0) -> None:
        super().__init__(
            ProviderDescriptor(
                identifier=TEMPLATE_IDENTIFIER,
                supports_vision=False,
                priority=priority,
                endpoint_kind=EndpointKind.LOCAL_TEMPLATE,
                timeout_seconds=timeout_seconds,
            )
        )

    async def attempt(self, request: GenerationRequest) -> str:
        if request.task_kind is TaskKind.VISION_ANALYSIS:
            payload = build_template_analysis(request.auxiliary_context.get("description", ""))
        elif request.auxiliary_context.get("ingredients"):
            payload = build_template_recipe(request.auxiliary_context["ingredients"])
        else:
            # Scan the prompt for tokens but keep its fragments out of the ingredient list
            payload = build_template_recipe(request.prompt_text, list_user_entries=False)
        return json.dumps(payload)
