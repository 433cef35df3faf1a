"""Hugging Face Inference API provider: last remote fallback for text tasks."""

from src.chain.errors import ProviderTransportFailure
from src.models.models import EndpointKind, GenerationRequest, ProviderDescriptor
from src.providers.base import RemoteProvider
from src.utils.config import config


class HuggingFaceProvider(RemoteProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "HuggingFaceH4/zephyr-7b-beta",
        base_url: str = "https://api-inference.huggingface.co/models",
        priority: int = 30,
        timeout_seconds: float = 20.0,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                identifier="huggingface",
                supports_vision=False,
                priority=priority,
                endpoint_kind=EndpointKind.REMOTE_MODEL,
                timeout_seconds=timeout_seconds,
            ),
            api_key,
        )
        self.model = model
        self.url = f"{base_url.rstrip('/')}/{model}"

    def build_payload(self, request: GenerationRequest) -> dict:
        # Plain text-generation models take a single string, not chat messages
        return {
            "inputs": f"{request.system_instruction}\n\nUser: {request.prompt_text}\nAssistant:",
            "parameters": {
                "max_new_tokens": config.MAX_OUTPUT_TOKENS,
                "temperature": config.TEMPERATURE,
                "return_full_text": False,
            },
        }

    async def attempt(self, request: GenerationRequest) -> str:
        data = await self._post_json(self.url, self.build_payload(request))
        try:
            text = data[0]["generated_text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderTransportFailure(self.identifier, "unexpected response body shape") from e
        if not isinstance(text, str) or not text.strip():
            raise ProviderTransportFailure(self.identifier, "empty generation")
        return text
