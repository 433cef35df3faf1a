"""Structured-output extraction from raw provider text.

Providers are asked for JSON but often wrap it in prose ("Sure! {...} Enjoy!")
or markdown fences. Parsing strategies, in order:
1. json.loads() on the full (stripped) text
2. Brace-depth scan for the first balanced {...} object, then json.loads() on it

The scanner tracks string literals and escapes, so braces inside values
("title": "Pasta {quick}") and nested objects do not end the span early.
"""

import json
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.chain.errors import UnparseableResponse
from src.utils.logger import logger
from src.utils.safe_execute import safe_execute_sync

ShapeT = TypeVar("ShapeT", bound=BaseModel)


def find_balanced_object(text: str) -> Optional[str]:
    """Return the first structurally balanced ``{...}`` span in text.

    Args:
        text: Arbitrary text that may contain a JSON object.

    Returns:
        The substring from the first ``{`` to its matching ``}``, or None if there is
        no ``{`` or it is never closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]

    return None


def extract_json_object(text: str, provider: str = "unknown") -> dict[str, Any]:
    """Decode a JSON object from raw provider text.

    Args:
        text: Raw response text.
        provider: Provider identifier, used in the error for attribution.

    Returns:
        Decoded JSON object.

    Raises:
        UnparseableResponse: If neither the whole text nor the first balanced span
            decodes to a JSON object.
    """
    if not text or not text.strip():
        raise UnparseableResponse(provider, "empty response")

    parsed = safe_execute_sync(
        lambda: json.loads(text.strip()),
        f"Direct JSON parse ({provider})",
        log_level="debug",
        default_return=None,
    )
    if isinstance(parsed, dict):
        return parsed

    span = find_balanced_object(text)
    if span is None:
        raise UnparseableResponse(provider, "no JSON object found in response")

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise UnparseableResponse(provider, f"embedded JSON object is invalid: {e}") from e

    if not isinstance(parsed, dict):
        raise UnparseableResponse(provider, "embedded JSON is not an object")

    logger.debug(f"Extracted embedded JSON object ({len(span)} of {len(text)} chars)", extra={"provider": provider})
    return parsed


def parse_structured(text: str, shape: Type[ShapeT], provider: str = "unknown") -> ShapeT:
    """Decode text and validate it against a structured shape.

    Args:
        text: Raw response text.
        shape: Pydantic model the object must conform to (ParsedRecipe, NutritionAnalysis).
        provider: Provider identifier for error attribution.

    Returns:
        Validated model instance.

    Raises:
        UnparseableResponse: If decoding fails or the object does not match the shape.
    """
    data = extract_json_object(text, provider)
    try:
        return shape.model_validate(data)
    except ValidationError as e:
        raise UnparseableResponse(
            provider, f"response does not match {shape.__name__}: {e.error_count()} validation error(s)"
        ) from e
