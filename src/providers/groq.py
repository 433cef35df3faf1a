"""Groq provider: primary text model over the OpenAI-compatible chat API."""

from src.chain.errors import ProviderTransportFailure
from src.models.models import EndpointKind, GenerationRequest, ProviderDescriptor
from src.providers.base import RemoteProvider
from src.utils.config import config


class GroqProvider(RemoteProvider):
    """Llama models hosted on Groq. Text only: vision requests reach it image-less."""

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.1-70b-versatile",
        url: str = "https://api.groq.com/openai/v1/chat/completions",
        priority: int = 10,
        timeout_seconds: float = 20.0,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                identifier="groq",
                supports_vision=False,
                priority=priority,
                endpoint_kind=EndpointKind.REMOTE_MODEL,
                timeout_seconds=timeout_seconds,
            ),
            api_key,
        )
        self.model = model
        self.url = url

    def build_payload(self, request: GenerationRequest) -> dict:
        messages = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.prompt_text})
        return {
            "model": self.model,
            "messages": messages,
            "temperature": config.TEMPERATURE,
            "max_tokens": config.MAX_OUTPUT_TOKENS,
        }

    async def attempt(self, request: GenerationRequest) -> str:
        data = await self._post_json(self.url, self.build_payload(request))
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderTransportFailure(self.identifier, "unexpected response body shape") from e
        if not isinstance(text, str) or not text.strip():
            raise ProviderTransportFailure(self.identifier, "empty completion")
        return text
