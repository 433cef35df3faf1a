"""Pytest configuration and fixtures for integration tests.

Loads .env from the project root and skips the live-provider tests when no
remote provider key is configured.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env before test collection so Config sees the provider keys."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests call live AI providers (GROQ_API_KEY and/or GEMINI_API_KEY)")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session")
def groq_key():
    key = os.getenv("GROQ_API_KEY")
    if not key:
        pytest.skip("GROQ_API_KEY not set")
    return key


@pytest.fixture(scope="session")
def gemini_key():
    key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key
