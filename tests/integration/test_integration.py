"""Live integration tests against real AI providers.

Each test builds a single-provider chain so a pass proves
that provider's request format and response parsing work end to end.

Run: pytest tests/integration -v  (requires keys in .env)
"""

import base64
from io import BytesIO

import pytest
from PIL import Image

from src.chain.fallback import FallbackChain, build_default_chain
from src.models.models import NutritionAnalysis, ParsedRecipe
from src.providers.gemini import GeminiProvider
from src.providers.groq import GroqProvider
from src.services.nutrition import analyze_photo, generate_recipe
from src.utils.config import config


def plate_photo() -> str:
    """Small synthetic JPEG: a white plate with green and brown patches."""
    img = Image.new("RGB", (256, 256), (240, 240, 240))
    img.paste((60, 150, 60), (40, 60, 120, 180))
    img.paste((150, 90, 40), (140, 80, 220, 170))
    buffer = BytesIO()
    img.save(buffer, format="JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode()


class TestGroqLive:
    @pytest.mark.asyncio
    async def test_recipe_from_groq(self, groq_key):
        chain = FallbackChain(
            [GroqProvider(api_key=groq_key, model=config.GROQ_MODEL, timeout_seconds=30)],
            max_image_bytes=config.max_image_bytes,
        )

        result = await generate_recipe(chain, "chicken, broccoli, rice", "high protein")

        assert result.provider == "groq"
        assert isinstance(result.parsed, ParsedRecipe)
        assert result.parsed.ingredients
        assert result.parsed.nutrition_info.calories > 0


class TestGeminiLive:
    @pytest.mark.asyncio
    async def test_recipe_from_gemini(self, gemini_key):
        chain = FallbackChain(
            [GeminiProvider(api_key=gemini_key, model=config.GEMINI_MODEL, timeout_seconds=30)],
            max_image_bytes=config.max_image_bytes,
        )

        result = await generate_recipe(chain, "salmon, spinach, lemon")

        assert result.provider == "google-gemini"
        assert isinstance(result.parsed, ParsedRecipe)

    @pytest.mark.asyncio
    async def test_photo_analysis_from_gemini(self, gemini_key):
        chain = FallbackChain(
            [GeminiProvider(api_key=gemini_key, model=config.GEMINI_MODEL, timeout_seconds=30)],
            max_image_bytes=config.max_image_bytes,
        )

        result = await analyze_photo(chain, plate_photo(), meal_description="steamed greens and roast beef")

        assert result.degraded is False
        assert isinstance(result.parsed, NutritionAnalysis)
        assert result.parsed.confidence in ("high", "medium", "low")


class TestDefaultChainLive:
    @pytest.mark.asyncio
    async def test_default_chain_always_answers(self, groq_key):
        result = await generate_recipe(build_default_chain(), "eggs, spinach")

        assert isinstance(result.parsed, ParsedRecipe)
        assert result.provider in build_default_chain().identifiers
