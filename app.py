"""FastAPI application - Nutrition AI Service.

Single entry point for the HTTP surface of the provider fallback chain:
- Builds the provider chain from configured API keys (local template always present)
- Serves recipe generation, photo analysis and raw generation endpoints
- Maps InvalidRequest to 400 and AllProvidersExhausted to 500

Run with: python app.py
"""

import json

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from src.chain.errors import AllProvidersExhausted, InvalidRequest
from src.chain.fallback import FallbackChain, build_default_chain, describe_chain
from src.models.models import (
    AIRequest,
    AIResponse,
    ErrorResponse,
    GenerationRequest,
    PhotoAnalysisRequest,
    PhotoAnalysisResponse,
    RecipeGenerationRequest,
    RecipeGenerationResponse,
    SimpleRecipeRequest,
    TaskKind,
)
from src.providers.template import TEMPLATE_IDENTIFIER, build_template_recipe
from src.services.nutrition import analyze_photo, generate_recipe
from src.utils.config import config
from src.utils.logger import logger

logger.info("Configuring provider fallback chain...")
default_chain = build_default_chain(config)


def get_chain() -> FallbackChain:
    return default_chain


app = FastAPI(
    title="Nutrition AI Service",
    description="AI recipe generation and photo nutrition analysis with multi-provider fallback",
)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest) -> JSONResponse:
    logger.info(f"Rejected request to {request.url.path}: {exc}")
    body = ErrorResponse(error="Invalid request", details=str(exc))
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


@app.exception_handler(AllProvidersExhausted)
async def exhausted_handler(request: Request, exc: AllProvidersExhausted) -> JSONResponse:
    body = ErrorResponse(
        error="All AI services are currently unavailable. Please try again later.",
        details=str(exc),
        suggestion="You can still use the manual food entry features.",
    )
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/ai", response_model=AIResponse)
async def generate(body: AIRequest, chain: FallbackChain = Depends(get_chain)) -> AIResponse:
    """Raw generation: caller supplies prompt and system message, gets the provider's text."""
    context = {"ingredients": body.ingredients} if body.ingredients else {}
    request = GenerationRequest(
        task_kind=body.task,
        prompt_text=body.prompt,
        system_instruction=body.system,
        image_data=body.image if body.task is TaskKind.VISION_ANALYSIS else None,
        auxiliary_context=context,
        provider_hint=body.provider,
    )
    result = await chain.run(request)
    return AIResponse(text=result.raw_text, provider=result.provider, degraded=result.degraded)


@app.post("/api/recipes/generate", response_model=RecipeGenerationResponse)
async def generate_recipe_endpoint(
    body: RecipeGenerationRequest, chain: FallbackChain = Depends(get_chain)
) -> RecipeGenerationResponse:
    result = await generate_recipe(chain, body.ingredients, body.dietary_preferences, body.provider)
    return RecipeGenerationResponse(recipe=result.parsed, provider=result.provider, degraded=result.degraded)


@app.post("/api/photos/analyze", response_model=PhotoAnalysisResponse)
async def analyze_photo_endpoint(
    body: PhotoAnalysisRequest, chain: FallbackChain = Depends(get_chain)
) -> PhotoAnalysisResponse:
    result = await analyze_photo(chain, body.image, provider_hint=body.provider)
    return PhotoAnalysisResponse(analysis=result.parsed, provider=result.provider, degraded=result.degraded)


@app.post("/api/ai-simple")
async def simple_recipe(body: SimpleRecipeRequest) -> dict:
    """Template recipe without contacting any remote provider."""
    if not body.ingredients:
        raise InvalidRequest("Please enter some ingredients you have available.")
    return {
        "text": json.dumps(build_template_recipe(body.ingredients)),
        "provider": TEMPLATE_IDENTIFIER,
        "note": "This is a basic recipe template. For more personalized recipes, configure an AI provider.",
    }


@app.get("/api/env-check")
async def env_check(chain: FallbackChain = Depends(get_chain)) -> dict:
    """Which providers are configured and in what order they are tried."""
    return {
        "configuredProviders": config.configured_providers(),
        "primaryProvider": chain.identifiers[0],
        "fallbackAvailable": TEMPLATE_IDENTIFIER in chain.identifiers,
        "chain": describe_chain(chain),
        "setup": {
            "groq": {"envVar": "GROQ_API_KEY", "url": "https://console.groq.com/keys"},
            "google": {"envVar": "GEMINI_API_KEY", "url": "https://aistudio.google.com/app/apikey"},
            "huggingface": {"envVar": "HUGGINGFACE_API_KEY", "url": "https://huggingface.co/settings/tokens"},
        },
    }


if __name__ == "__main__":
    logger.info(f"Starting Nutrition AI Service on port {config.PORT}")
    logger.info(f"Provider chain: {default_chain.identifiers}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
