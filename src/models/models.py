"""Data models and schemas for the Nutrition AI service.

Defines Pydantic models for generation requests/results, provider descriptors,
the structured shapes decoded from provider output (recipe and nutrition
analysis), tracker food-log entries, and HTTP request/response bodies.
All models use Pydantic v2. Structured shapes use camelCase aliases on the
wire (that is the JSON shape the prompts ask providers for) and snake_case
attributes in Python.
"""

import math
import re
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.config import config

# Base64 text of the largest accepted image, plus room for a data URL header
MAX_IMAGE_TEXT_LENGTH = 4 * math.ceil(config.max_image_bytes / 3) + 256


class TaskKind(str, Enum):
    TEXT_RECIPE = "text_recipe"
    VISION_ANALYSIS = "vision_analysis"


class EndpointKind(str, Enum):
    REMOTE_MODEL = "remote_model"
    LOCAL_TEMPLATE = "local_template"


class GenerationRequest(BaseModel):
    """A single generation request handed to the fallback chain.

    Immutable once constructed. Shape validation happens here; semantic checks
    (non-blank prompt, decodable image under the size limit) happen in the chain
    so they can be reported as InvalidRequest before any provider is contacted.
    """

    model_config = ConfigDict(frozen=True)

    task_kind: TaskKind
    prompt_text: Annotated[str, Field(description="User-facing prompt sent to the model")]
    system_instruction: Annotated[str, Field("", description="System message for the model")]
    image_data: Annotated[
        Optional[str], Field(None, description="Base64 image or data URL (vision tasks only)")
    ]
    auxiliary_context: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Extra inputs, e.g. 'ingredients' for the local template"),
    ]
    provider_hint: Annotated[
        Optional[str], Field(None, description="Identifier of the provider to try first")
    ]

    @property
    def is_vision(self) -> bool:
        return self.task_kind is TaskKind.VISION_ANALYSIS

    def without_image(self) -> "GenerationRequest":
        """Copy of this request with the image dropped (degraded mode)."""
        return self.model_copy(update={"image_data": None})


class ProviderDescriptor(BaseModel):
    """Static description of one provider in the chain."""

    model_config = ConfigDict(frozen=True)

    identifier: Annotated[str, Field(min_length=1)]
    supports_vision: bool = False
    priority: Annotated[int, Field(description="Lower is tried first")]
    endpoint_kind: EndpointKind = EndpointKind.REMOTE_MODEL
    timeout_seconds: Annotated[float, Field(gt=0)] = 20.0

    @property
    def is_local(self) -> bool:
        return self.endpoint_kind is EndpointKind.LOCAL_TEMPLATE


# ============================================================================
# Structured shapes decoded from provider output
# ============================================================================


class _Shape(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class NutritionInfo(_Shape):
    """Recipe nutrition totals (whole recipe, not per serving)."""

    calories: Annotated[float, Field(ge=0)]
    protein: Annotated[float, Field(ge=0)]
    carbs: Annotated[float, Field(ge=0)]
    fat: Annotated[float, Field(ge=0)]
    fiber: Annotated[float, Field(0, ge=0)]


class ParsedRecipe(_Shape):
    """AI-generated recipe."""

    title: Annotated[str, Field(min_length=1, max_length=200)]
    description: Annotated[str, Field("", max_length=2000)]
    ingredients: Annotated[List[str], Field(min_length=1, max_length=100)]
    instructions: Annotated[List[str], Field(min_length=1, max_length=100)]
    nutrition_info: Annotated[NutritionInfo, Field(alias="nutritionInfo")]
    cook_time: Annotated[int, Field(0, ge=0, le=1440, alias="cookTime", description="Minutes")]
    servings: Annotated[int, Field(1, ge=1, le=100)]
    dietary_tags: Annotated[List[str], Field(default_factory=list, alias="dietaryTags")]


class AnalyzedFoodItem(_Shape):
    name: Annotated[str, Field(min_length=1)]
    estimated_amount: Annotated[str, Field("", alias="estimatedAmount")]
    calories: Annotated[float, Field(ge=0)]
    protein: Annotated[float, Field(0, ge=0)]
    carbs: Annotated[float, Field(0, ge=0)]
    fat: Annotated[float, Field(0, ge=0)]
    sugar: Annotated[float, Field(0, ge=0)]


class NutritionTotals(_Shape):
    calories: Annotated[float, Field(ge=0)]
    protein: Annotated[float, Field(0, ge=0)]
    carbs: Annotated[float, Field(0, ge=0)]
    fat: Annotated[float, Field(0, ge=0)]
    sugar: Annotated[float, Field(0, ge=0)]


class NutritionAnalysis(_Shape):
    """Photo-based nutrition estimate."""

    food_items: Annotated[List[AnalyzedFoodItem], Field(alias="foodItems")]
    total_nutrition: Annotated[NutritionTotals, Field(alias="totalNutrition")]
    confidence: Annotated[str, Field(description="high, medium or low")]
    notes: Annotated[List[str], Field(default_factory=list)]

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, v: str) -> str:
        """Accept "High", "medium - blurry photo", "high/medium/low" etc. and keep only the first label."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("confidence must be one of high, medium, low")
        label = re.split(r"[\s/]+", v.strip())[0].strip(" -,.:;").lower()
        if label not in ("high", "medium", "low"):
            raise ValueError(f"confidence must be one of high, medium, low, got: {v}")
        return label


class GenerationResult(BaseModel):
    """Outcome of a successful chain run. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    raw_text: str
    provider: str
    succeeded: bool = True
    degraded: Annotated[bool, Field(False, description="Image dropped for a text-only provider")]
    parsed: Optional[ParsedRecipe | NutritionAnalysis] = None


class CandidateFailure(BaseModel):
    """Why one candidate was abandoned."""

    model_config = ConfigDict(frozen=True)

    provider: str
    kind: Annotated[str, Field(description="transport, timeout or unparseable")]
    reason: str


class FoodLogEntry(BaseModel):
    """Item in the tracker's food log shape."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float
    serving: str


# ============================================================================
# HTTP request/response bodies
# ============================================================================


class AIRequest(BaseModel):
    """Generic generation request body for POST /api/ai."""

    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: Annotated[str, Field("", max_length=8000)]
    system: Annotated[str, Field("", max_length=4000)]
    task: TaskKind = TaskKind.TEXT_RECIPE
    image: Annotated[Optional[str], Field(None, max_length=MAX_IMAGE_TEXT_LENGTH)]
    provider: Optional[str] = None
    ingredients: Annotated[Optional[str], Field(None, description="Free text used by the local template")]


class AIResponse(BaseModel):
    text: str
    provider: str
    degraded: bool = False


class RecipeGenerationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    ingredients: Annotated[str, Field(max_length=2000, description="Comma-separated available ingredients")]
    dietary_preferences: Annotated[Optional[str], Field(None, alias="dietaryPreferences", max_length=500)]
    provider: Optional[str] = None


class RecipeGenerationResponse(BaseModel):
    recipe: ParsedRecipe
    provider: str
    degraded: bool = False


class PhotoAnalysisRequest(BaseModel):
    image: Annotated[str, Field(max_length=MAX_IMAGE_TEXT_LENGTH, description="Base64 image or data URL")]
    provider: Optional[str] = None


class PhotoAnalysisResponse(BaseModel):
    analysis: NutritionAnalysis
    provider: str
    degraded: bool = False


class SimpleRecipeRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[str, Field(max_length=2000)]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    suggestion: Optional[str] = None
