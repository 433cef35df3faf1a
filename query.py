#!/usr/bin/env python3
"""Ad hoc runner for recipe generation and photo analysis.

Runs the provider fallback chain directly without starting the API server.

Usage:
    python query.py "chicken, broccoli, rice"
    python query.py --diet "low carb" "salmon, spinach"
    python query.py --provider google-gemini "tofu, bell pepper"   # Start with a specific provider
    python query.py --image images/lunch.jpg "grilled chicken salad"  # Photo analysis (text is optional)
    python query.py --debug "eggs, spinach"  # Show full JSON result

Features:
- Recipe or photo analysis rendered as markdown
- Provider attribution (and degraded-mode notice) for every answer
- Debug mode to display the full GenerationResult as JSON
"""

import asyncio
import base64
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown

from src.chain.errors import AllProvidersExhausted, InvalidRequest
from src.chain.fallback import build_default_chain
from src.models.models import GenerationResult, NutritionAnalysis, ParsedRecipe
from src.services.nutrition import analyze_photo, generate_recipe
from src.utils.logger import logger

console = Console()


def render_recipe_markdown(recipe: ParsedRecipe) -> str:
    info = recipe.nutrition_info
    lines = [f"# {recipe.title}", ""]
    if recipe.description:
        lines += [recipe.description, ""]
    lines += [
        f"**Cook time:** {recipe.cook_time} min · **Servings:** {recipe.servings}",
        "",
        "## Ingredients",
        *[f"- {item}" for item in recipe.ingredients],
        "",
        "## Instructions",
        *[f"{idx}. {step}" for idx, step in enumerate(recipe.instructions, start=1)],
        "",
        "## Nutrition (total)",
        f"- Calories: {info.calories:g}",
        f"- Protein: {info.protein:g}g · Carbs: {info.carbs:g}g · Fat: {info.fat:g}g · Fiber: {info.fiber:g}g",
    ]
    if recipe.dietary_tags:
        lines += ["", f"_Tags: {', '.join(recipe.dietary_tags)}_"]
    return "\n".join(lines)


def render_analysis_markdown(analysis: NutritionAnalysis) -> str:
    totals = analysis.total_nutrition
    lines = [f"# Meal analysis ({analysis.confidence} confidence)", "", "## Items"]
    for item in analysis.food_items:
        lines.append(f"- **{item.name}** ({item.estimated_amount or 'unknown amount'}): {item.calories:g} kcal")
    lines += [
        "",
        "## Total",
        f"- Calories: {totals.calories:g}",
        f"- Protein: {totals.protein:g}g · Carbs: {totals.carbs:g}g · Fat: {totals.fat:g}g · Sugar: {totals.sugar:g}g",
    ]
    if analysis.notes:
        lines += ["", "## Notes", *[f"- {note}" for note in analysis.notes]]
    return "\n".join(lines)


def load_image_as_data_url(image_path: str) -> str:
    image_file = Path(image_path)
    if not image_file.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    mime_types = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".webp": "image/webp",
    }
    mime_type = mime_types.get(image_file.suffix.lower(), "image/jpeg")
    encoded = base64.b64encode(image_file.read_bytes()).decode("utf-8")
    logger.info(f"✓ Loaded image: {image_file.name} ({len(encoded) / 1024:.1f} KB base64)")
    return f"data:{mime_type};base64,{encoded}"


async def _run(query: str, diet: Optional[str], provider: Optional[str], image_path: Optional[str]) -> GenerationResult:
    chain = build_default_chain()
    if image_path:
        return await analyze_photo(chain, load_image_as_data_url(image_path), query or None, provider)
    return await generate_recipe(chain, query, diet, provider)


def run_query(
    query: str,
    debug: bool = False,
    diet: Optional[str] = None,
    provider: Optional[str] = None,
    image_path: Optional[str] = None,
) -> None:
    """Execute a single query and print the rendered result.

    Args:
        query: Ingredient list, or an optional meal description when image_path is set.
        debug: If True, display the full GenerationResult as JSON.
        diet: Optional dietary preferences for recipe generation.
        provider: Optional provider identifier to try first.
        image_path: Optional path to a meal photo (switches to photo analysis).
    """
    try:
        result = asyncio.run(_run(query, diet, provider, image_path))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except (InvalidRequest, FileNotFoundError) as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    except AllProvidersExhausted as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(2)

    console.print()
    if debug:
        console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=result.model_dump(mode="json", by_alias=True))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    if isinstance(result.parsed, NutritionAnalysis):
        console.print(Markdown(render_analysis_markdown(result.parsed)))
    else:
        console.print(Markdown(render_recipe_markdown(result.parsed)))

    notice = " (image not analysed: degraded to text-only)" if result.degraded else ""
    console.print(f"\n[dim]Generated by: {result.provider}{notice}[/dim]")


USAGE = 'Usage: python query.py [--debug] [--diet TEXT] [--provider ID] [--image PATH] "<ingredients>"'


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "chicken, broccoli, rice"')
        print('  python query.py --diet vegetarian "tofu, spinach, carrots"')
        print('  python query.py --image images/lunch.jpg')
        sys.exit(1)

    debug_mode = False
    diet = None
    provider = None
    image_path = None
    argv_start = 1

    value_flags = {"--diet", "--provider", "--image"}
    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag in value_flags:
            if argv_start + 1 >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            value = sys.argv[argv_start + 1]
            if flag == "--diet":
                diet = value
            elif flag == "--provider":
                provider = value
            else:
                image_path = value
            argv_start += 2
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    query = " ".join(sys.argv[argv_start:])
    if not query and not image_path:
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    run_query(query, debug=debug_mode, diet=diet, provider=provider, image_path=image_path)
