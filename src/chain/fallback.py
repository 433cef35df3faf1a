"""Provider fallback chain.

Turns a GenerationRequest into exactly one GenerationResult by trying providers
one at a time, in order, until one returns text that decodes into the
structured shape the task asks for.

Per request:
    NotStarted -> TryingCandidate(i) -> Succeeded(i) | TryingCandidate(i+1) -> ... -> Exhausted

- Candidates are tried sequentially, never raced (each remote call may consume quota).
- Each candidate gets its own timeout; no retry against the same candidate.
- Transport failures, timeouts and unparseable responses are logged and swallowed.
- Cancellation of the caller's task cancels the in-flight call; nothing after it runs.
- No caching: identical requests hit the providers again.
"""

import asyncio
import uuid
from typing import Iterable, Optional, Sequence

from src.chain.errors import (
    AllProvidersExhausted,
    InvalidRequest,
    ProviderError,
    ProviderTransportFailure,
)
from src.chain.extraction import parse_structured
from src.models.models import (
    CandidateFailure,
    GenerationRequest,
    GenerationResult,
    NutritionAnalysis,
    ParsedRecipe,
    TaskKind,
)
from src.providers.base import Provider
from src.providers.gemini import GeminiProvider
from src.providers.groq import GroqProvider
from src.providers.huggingface import HuggingFaceProvider
from src.providers.template import LocalTemplateProvider
from src.utils.config import Config, config
from src.utils.images import (
    decode_image_data,
    encoded_payload_length,
    max_encoded_length,
    validate_image_format,
    validate_image_size,
)
from src.utils.logger import logger

SHAPES = {
    TaskKind.TEXT_RECIPE: ParsedRecipe,
    TaskKind.VISION_ANALYSIS: NutritionAnalysis,
}


def validate_request(request: GenerationRequest, max_image_bytes: int) -> None:
    """Reject requests that no provider could serve.

    Raises:
        InvalidRequest: Blank prompt for a text task, or missing/undecodable/non-image/
            oversized image for a vision task.
    """
    if request.task_kind is TaskKind.TEXT_RECIPE:
        if not request.prompt_text or not request.prompt_text.strip():
            raise InvalidRequest("promptText must not be empty for text tasks")
        return

    if not request.image_data:
        raise InvalidRequest("imageData is required for vision tasks")
    too_large = f"Image file is too large. Maximum size is {max_image_bytes // (1024 * 1024)}MB"
    # Reject on encoded length first so oversized uploads are never decoded
    if encoded_payload_length(request.image_data) > max_encoded_length(max_image_bytes):
        raise InvalidRequest(too_large)
    try:
        image_bytes = decode_image_data(request.image_data)
    except ValueError as e:
        raise InvalidRequest(str(e)) from e
    if not validate_image_format(image_bytes):
        raise InvalidRequest("imageData is not a recognised image format")
    if not validate_image_size(image_bytes, max_image_bytes):
        raise InvalidRequest(too_large)


class FallbackChain:
    """Ordered list of providers iterated with early exit on success."""

    def __init__(
        self,
        providers: Iterable[Provider],
        vision_fallback_to_text: bool = True,
        max_image_bytes: Optional[int] = None,
    ) -> None:
        # sorted() is stable: equal priorities keep registration order
        self.providers: tuple[Provider, ...] = tuple(sorted(providers, key=lambda p: p.descriptor.priority))
        if not self.providers:
            raise ValueError("FallbackChain needs at least one provider")
        self.vision_fallback_to_text = vision_fallback_to_text
        self.max_image_bytes = config.max_image_bytes if max_image_bytes is None else max_image_bytes

    @property
    def identifiers(self) -> list[str]:
        return [p.identifier for p in self.providers]

    def candidates_for(self, request: GenerationRequest) -> list[tuple[Provider, bool]]:
        """Ordered (provider, degraded) pairs for a request.

        Text tasks use priority order. Vision tasks try vision-capable remote providers
        first, then text-only remote providers with the image dropped (unless
        vision_fallback_to_text is off), then local templates. A provider_hint moves
        the named provider to the front.
        """
        if request.is_vision:
            vision = [p for p in self.providers if p.descriptor.supports_vision and not p.descriptor.is_local]
            text_only = [
                p for p in self.providers if not p.descriptor.supports_vision and not p.descriptor.is_local
            ]
            local = [p for p in self.providers if p.descriptor.is_local]
            if not self.vision_fallback_to_text:
                text_only = []
            ordered = vision + text_only + local
        else:
            ordered = list(self.providers)

        if request.provider_hint:
            hinted = [p for p in ordered if p.identifier == request.provider_hint]
            if hinted:
                ordered = hinted + [p for p in ordered if p.identifier != request.provider_hint]
            else:
                logger.warning(
                    f"Unknown or unavailable provider hint '{request.provider_hint}', using default order"
                )

        return [(p, request.is_vision and not p.descriptor.supports_vision) for p in ordered]

    async def _try_candidate(
        self, provider: Provider, request: GenerationRequest, degraded: bool, request_id: str
    ) -> GenerationResult:
        effective = request.without_image() if degraded else request
        if degraded:
            logger.warning(
                "Vision request degraded to text-only: image dropped",
                extra={"provider": provider.identifier, "request_id": request_id},
            )

        try:
            raw_text = await asyncio.wait_for(
                provider.attempt(effective), timeout=provider.descriptor.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise ProviderTransportFailure(
                provider.identifier, f"timed out after {provider.descriptor.timeout_seconds}s"
            ) from e
        except ProviderError:
            raise
        except Exception as e:
            # Providers are pluggable; any other error from a call still only sinks this candidate
            raise ProviderTransportFailure(provider.identifier, f"{type(e).__name__}: {e}") from e

        parsed = parse_structured(raw_text, SHAPES[request.task_kind], provider.identifier)
        return GenerationResult(
            raw_text=raw_text,
            provider=provider.identifier,
            succeeded=True,
            degraded=degraded,
            parsed=parsed,
        )

    async def run(self, request: GenerationRequest) -> GenerationResult:
        """Run the chain for one request.

        Args:
            request: The generation request.

        Returns:
            GenerationResult from the first candidate whose output decodes into the
            task's structured shape.

        Raises:
            InvalidRequest: Request failed validation; no provider was contacted.
            AllProvidersExhausted: Every candidate failed.
            asyncio.CancelledError: The caller cancelled; no later candidate is tried.
        """
        validate_request(request, self.max_image_bytes)

        request_id = uuid.uuid4().hex[:12]
        candidates = self.candidates_for(request)
        failures: list[CandidateFailure] = []

        logger.info(
            f"Generation request started ({request.task_kind.value}), "
            f"candidates: {[p.identifier for p, _ in candidates]}",
            extra={"request_id": request_id, "task_kind": request.task_kind.value},
        )

        for index, (provider, degraded) in enumerate(candidates, start=1):
            logger.debug(
                f"Trying candidate {index}/{len(candidates)}",
                extra={"provider": provider.identifier, "request_id": request_id},
            )
            try:
                result = await self._try_candidate(provider, request, degraded, request_id)
            except ProviderError as e:
                failures.append(CandidateFailure(provider=provider.identifier, kind=e.kind, reason=e.reason))
                logger.warning(
                    f"Candidate {index}/{len(candidates)} failed ({e.kind}): {e.reason}",
                    extra={"provider": provider.identifier, "request_id": request_id},
                )
                continue

            logger.info(
                f"Generation succeeded on candidate {index}/{len(candidates)}"
                f"{' (degraded)' if degraded else ''}",
                extra={"provider": provider.identifier, "request_id": request_id},
            )
            return result

        logger.error(
            f"All {len(candidates)} candidates failed", extra={"request_id": request_id}
        )
        raise AllProvidersExhausted(failures)


def build_providers(settings: Config) -> list[Provider]:
    """Instantiate remote providers that have an API key, plus the local template."""
    providers: list[Provider] = []
    if settings.GROQ_API_KEY:
        providers.append(
            GroqProvider(
                api_key=settings.GROQ_API_KEY,
                model=settings.GROQ_MODEL,
                url=settings.GROQ_API_URL,
                timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS,
            )
        )
    if settings.GEMINI_API_KEY:
        providers.append(
            GeminiProvider(
                api_key=settings.GEMINI_API_KEY,
                model=settings.GEMINI_MODEL,
                timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS,
            )
        )
    if settings.HUGGINGFACE_API_KEY:
        providers.append(
            HuggingFaceProvider(
                api_key=settings.HUGGINGFACE_API_KEY,
                model=settings.HUGGINGFACE_MODEL,
                base_url=settings.HUGGINGFACE_API_URL,
                timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS,
            )
        )
    providers.append(LocalTemplateProvider(timeout_seconds=settings.LOCAL_TIMEOUT_SECONDS))
    return providers


def build_default_chain(settings: Optional[Config] = None) -> FallbackChain:
    settings = settings or config
    providers = build_providers(settings)
    logger.info(f"Provider chain: {[p.identifier for p in sorted(providers, key=lambda p: p.descriptor.priority)]}")
    return FallbackChain(
        providers,
        vision_fallback_to_text=settings.VISION_FALLBACK_TO_TEXT,
        max_image_bytes=settings.max_image_bytes,
    )


def describe_chain(chain: FallbackChain) -> Sequence[dict]:
    """Provider descriptors in chain order, for status endpoints."""
    return [p.descriptor.model_dump(mode="json") for p in chain.providers]
