"""Google Gemini provider: secondary text model and the vision-capable candidate.

Uses the google-genai async client so that cancelling the chain cancels the
in-flight HTTP call instead of leaving a worker thread running.
"""

import asyncio
from typing import Optional

from google import genai
from google.genai import types

from src.chain.errors import ProviderTransportFailure
from src.models.models import EndpointKind, GenerationRequest, ProviderDescriptor
from src.providers.base import RemoteProvider
from src.utils.config import config
from src.utils.images import compress_image, decode_image_data, guess_mime_type
from src.utils.logger import logger


class GeminiProvider(RemoteProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        priority: int = 20,
        timeout_seconds: float = 20.0,
    ) -> None:
        super().__init__(
            ProviderDescriptor(
                identifier="google-gemini",
                supports_vision=True,
                priority=priority,
                endpoint_kind=EndpointKind.REMOTE_MODEL,
                timeout_seconds=timeout_seconds,
            ),
            api_key,
        )
        self.model = model
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """One SDK client per provider, created on first use."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def build_contents(self, request: GenerationRequest) -> list:
        """Prompt text, followed by the image part when the request carries one."""
        contents: list = [request.prompt_text]
        if request.image_data:
            image_bytes = decode_image_data(request.image_data)
            if config.COMPRESS_IMG:
                image_bytes = compress_image(image_bytes)
            mime_type = guess_mime_type(image_bytes) or "image/jpeg"
            contents.append(types.Part.from_bytes(data=image_bytes, mime_type=mime_type))
            logger.debug(
                f"Attached {mime_type} image ({len(image_bytes) / 1024:.1f}KB)",
                extra={"provider": self.identifier},
            )
        return contents

    def build_config(self, request: GenerationRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_instruction or None,
            temperature=config.TEMPERATURE,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
        )

    async def attempt(self, request: GenerationRequest) -> str:
        # Base64 decode and Pillow compression are CPU-bound; keep them off the event loop
        contents = await asyncio.to_thread(self.build_contents, request)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self.build_config(request),
            )
        except Exception as e:
            raise ProviderTransportFailure(self.identifier, f"Gemini API call failed: {e}") from e

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise ProviderTransportFailure(self.identifier, "empty response (blocked or no candidates)")
        return text
