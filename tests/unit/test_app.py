"""Unit tests for app.py - HTTP surface of the provider fallback chain.

Tests verify:
- Recipe, photo and raw generation endpoints return provider attribution
- InvalidRequest maps to 400 and AllProvidersExhausted to 500
- The template endpoint never touches the chain
- env-check reports the configured chain
"""

import base64
import json

import pytest
from fastapi.testclient import TestClient

from app import app, get_chain
from src.chain.errors import AllProvidersExhausted
from src.chain.fallback import FallbackChain
from src.models.models import CandidateFailure, EndpointKind, ProviderDescriptor
from src.providers.base import Provider
from src.providers.template import LocalTemplateProvider

PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64).decode()


class FailingProvider(Provider):
    def __init__(self, identifier: str = "groq", priority: int = 10) -> None:
        super().__init__(
            ProviderDescriptor(identifier=identifier, priority=priority, endpoint_kind=EndpointKind.REMOTE_MODEL)
        )

    async def attempt(self, request):
        return "Sorry, I can only answer in prose."


@pytest.fixture
def client():
    """TestClient whose chain is remote-failing provider + local template."""
    chain = FallbackChain([FailingProvider(), LocalTemplateProvider()], max_image_bytes=1024 * 1024)
    app.dependency_overrides[get_chain] = lambda: chain
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def exhausted_client():
    """TestClient whose only candidate always fails."""
    chain = FallbackChain([FailingProvider()], max_image_bytes=1024 * 1024)
    app.dependency_overrides[get_chain] = lambda: chain
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestRecipeEndpoint:
    """Tests for POST /api/recipes/generate."""

    def test_recipe_from_template_after_remote_failure(self, client):
        response = client.post(
            "/api/recipes/generate",
            json={"ingredients": "salmon, broccoli", "dietaryPreferences": "pescatarian"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "simple-template"
        assert body["degraded"] is False
        assert body["recipe"]["title"] == "Healthy salmon with broccoli"
        assert body["recipe"]["nutritionInfo"]["calories"] == 350

    def test_blank_ingredients_is_400(self, client):
        response = client.post("/api/recipes/generate", json={"ingredients": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_exhausted_chain_is_500(self, exhausted_client):
        response = exhausted_client.post("/api/recipes/generate", json={"ingredients": "eggs"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "All AI services are currently unavailable. Please try again later."
        assert "groq (unparseable)" in body["details"]
        assert "manual food entry" in body["suggestion"]


class TestPhotoEndpoint:
    """Tests for POST /api/photos/analyze."""

    def test_analysis_degrades_to_template(self, client):
        response = client.post("/api/photos/analyze", json={"image": f"data:image/png;base64,{PNG_B64}"})

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "simple-template"
        assert body["degraded"] is True
        assert body["analysis"]["confidence"] == "low"

    def test_non_image_is_400(self, client):
        text_b64 = base64.b64encode(b"definitely not an image").decode()

        response = client.post("/api/photos/analyze", json={"image": text_b64})

        assert response.status_code == 400
        assert "image format" in response.json()["details"]


class TestRawGenerationEndpoint:
    """Tests for POST /api/ai."""

    def test_returns_raw_text_and_provider(self, client):
        response = client.post(
            "/api/ai",
            json={"prompt": "Make me dinner", "system": "Respond in JSON", "ingredients": "tofu, carrots"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "simple-template"
        assert json.loads(body["text"])["title"] == "Healthy tofu with carrots"

    def test_prompt_only_keeps_ingredient_list_clean(self, client):
        response = client.post("/api/ai", json={"prompt": "Dinner ideas with salmon and spinach please"})

        assert response.status_code == 200
        recipe = json.loads(response.json()["text"])
        assert recipe["title"] == "Healthy salmon with spinach"
        assert recipe["ingredients"] == [
            "salmon (200g)",
            "spinach (150g)",
            "Olive oil (1 tbsp)",
            "Salt and pepper to taste",
        ]

    def test_empty_prompt_is_400(self, client):
        response = client.post("/api/ai", json={"prompt": ""})

        assert response.status_code == 400


class TestSimpleRecipeEndpoint:
    def test_template_recipe_without_chain(self, exhausted_client):
        response = exhausted_client.post("/api/ai-simple", json={"ingredients": "turkey, spinach"})

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "simple-template"
        assert json.loads(body["text"])["title"] == "Healthy turkey with spinach"

    def test_empty_ingredients_is_400(self, client):
        response = client.post("/api/ai-simple", json={"ingredients": ""})

        assert response.status_code == 400


class TestEnvCheck:
    def test_reports_chain(self, client):
        response = client.get("/api/env-check")

        assert response.status_code == 200
        body = response.json()
        assert body["primaryProvider"] == "groq"
        assert body["fallbackAvailable"] is True
        assert [entry["identifier"] for entry in body["chain"]] == ["groq", "simple-template"]
        assert body["setup"]["groq"]["envVar"] == "GROQ_API_KEY"


class TestExhaustedMessage:
    def test_message_lists_failures(self):
        error = AllProvidersExhausted([CandidateFailure(provider="groq", kind="transport", reason="HTTP 503")])

        assert str(error) == "All AI providers failed: groq (transport): HTTP 503"
