"""Prompts and system instructions for recipe generation and photo analysis.

Each builder embeds the JSON shape the fallback chain validates against
(ParsedRecipe / NutritionAnalysis in src/models/models.py), so any change to
those models must be mirrored here.
"""

from typing import Optional

RECIPE_SYSTEM_INSTRUCTION = (
    "You are a professional nutritionist and chef. Create healthy, balanced recipes with "
    "accurate nutritional information. Always respond with valid JSON format."
)

ANALYSIS_SYSTEM_INSTRUCTION = (
    "You are a professional nutritionist with expertise in food analysis and portion estimation. "
    "Provide accurate nutritional information based on visual analysis of food images. "
    "Always respond with valid JSON format."
)

RECIPE_JSON_SHAPE = """{
  "title": "Recipe Name",
  "description": "Brief description of the dish",
  "ingredients": ["ingredient 1", "ingredient 2", ...],
  "instructions": ["step 1", "step 2", ...],
  "nutritionInfo": {
    "calories": number,
    "protein": number,
    "carbs": number,
    "fat": number,
    "fiber": number
  },
  "cookTime": number (in minutes),
  "servings": number,
  "dietaryTags": ["tag1", "tag2", ...]
}"""

ANALYSIS_JSON_SHAPE = """{
  "foodItems": [
    {
      "name": "food item name",
      "estimatedAmount": "estimated serving size (e.g., 150g, 1 cup, 1 piece)",
      "calories": estimated_calories_number,
      "protein": estimated_protein_grams,
      "carbs": estimated_carbs_grams,
      "fat": estimated_fat_grams,
      "sugar": estimated_sugar_grams
    }
  ],
  "totalNutrition": {
    "calories": total_calories,
    "protein": total_protein,
    "carbs": total_carbs,
    "fat": total_fat,
    "sugar": total_sugar
  },
  "confidence": "high/medium/low - your confidence in the analysis",
  "notes": ["any important notes about the analysis", "assumptions made", "recommendations"]
}"""


def get_recipe_prompt(ingredients: str, dietary_preferences: Optional[str] = None) -> str:
    """Build the recipe generation prompt.

    Args:
        ingredients: Free-text list of available ingredients.
        dietary_preferences: Optional restrictions ("vegetarian, low sodium").

    Returns:
        str: Prompt asking for a single recipe in RECIPE_JSON_SHAPE.
    """
    preferences = (
        f"\nDietary preferences/restrictions: {dietary_preferences.strip()}\n"
        if dietary_preferences and dietary_preferences.strip()
        else ""
    )
    return f"""Create a healthy recipe using these available ingredients: {ingredients.strip()}
{preferences}
Please provide a complete recipe in JSON format with the following structure:
{RECIPE_JSON_SHAPE}

Make sure the recipe is healthy, balanced, and uses primarily the ingredients provided. If some common pantry items (salt, pepper, oil) are needed, include them. Focus on nutritious, whole food ingredients. Respond with the JSON object only."""


def get_analysis_prompt(meal_description: Optional[str] = None) -> str:
    """Build the photo nutrition analysis prompt.

    Args:
        meal_description: Optional user note about the meal ("lunch, large portion").
            Also what a text-only provider sees when the image is dropped.

    Returns:
        str: Prompt asking for a NutritionAnalysis in ANALYSIS_JSON_SHAPE.
    """
    note = f"\nThe user describes the meal as: {meal_description.strip()}\n" if meal_description else ""
    return f"""Analyze this food image and provide detailed nutritional information. Look at the plate/meal and identify all visible food items.
{note}
Please provide a complete analysis in JSON format with the following structure:
{ANALYSIS_JSON_SHAPE}

Be as accurate as possible with portion size estimates and nutritional values. If you're unsure about something, mention it in the notes. Respond with the JSON object only."""
