"""Configuration management for the Nutrition AI service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Groq: primary text provider (fast, generous free tier, no vision)
        self.GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
        self.GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.1-70b-versatile")
        self.GROQ_API_URL: str = os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
        # Google Gemini: secondary provider and the only vision-capable one
        # GOOGLE_GENERATIVE_AI_API_KEY is accepted for existing deployments
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY", "")
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        # Hugging Face Inference API: optional last remote fallback (text only)
        self.HUGGINGFACE_API_KEY: str = os.getenv("HUGGINGFACE_API_KEY", "")
        self.HUGGINGFACE_MODEL: str = os.getenv("HUGGINGFACE_MODEL", "HuggingFaceH4/zephyr-7b-beta")
        self.HUGGINGFACE_API_URL: str = os.getenv(
            "HUGGINGFACE_API_URL", "https://api-inference.huggingface.co/models"
        )
        # Per-candidate timeouts (seconds). Worst case latency is the sum over all candidates.
        self.REMOTE_TIMEOUT_SECONDS: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "20"))
        self.LOCAL_TIMEOUT_SECONDS: float = float(os.getenv("LOCAL_TIMEOUT_SECONDS", "1"))
        # Maximum decoded image size (in MB) accepted for photo analysis. Default: 10 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "10"))
        # Degraded mode: let text-only providers answer vision requests with the image dropped
        # "false" skips text-only remote providers for vision requests (local template still runs)
        self.VISION_FALLBACK_TO_TEXT: bool = _env_bool("VISION_FALLBACK_TO_TEXT", "true")
        # Image Compression: Enable/disable image compression before upload to vision provider
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Image Compression Threshold: Only compress images at or above this size (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))
        # LLM Model Parameters
        # Temperature: 0.7 matches the recipe generator's historical setting
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Output Tokens: a full recipe or plate analysis fits in 1000 tokens
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "1000"))
        # Server Port
        self.PORT: int = int(os.getenv("PORT", "7777"))

    @property
    def max_image_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024

    def configured_providers(self) -> list[str]:
        """Return identifiers of remote providers that have an API key set."""
        providers = []
        if self.GROQ_API_KEY:
            providers.append("groq")
        if self.GEMINI_API_KEY:
            providers.append("google-gemini")
        if self.HUGGINGFACE_API_KEY:
            providers.append("huggingface")
        return providers

    def validate(self) -> None:
        """Validate configuration values.

        No API key is mandatory: without any, requests are served by the local template.

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        if self.REMOTE_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"REMOTE_TIMEOUT_SECONDS must be positive, got: {self.REMOTE_TIMEOUT_SECONDS}"
            )
        if self.LOCAL_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"LOCAL_TIMEOUT_SECONDS must be positive, got: {self.LOCAL_TIMEOUT_SECONDS}"
            )
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(
                f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}"
            )
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 256:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 256, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.COMPRESS_IMG_THRESHOLD_KB < 0:
            raise ValueError(
                f"COMPRESS_IMG_THRESHOLD_KB must not be negative, got: {self.COMPRESS_IMG_THRESHOLD_KB}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
