"""Provider capability shared by every backend in the fallback chain.

A provider turns a GenerationRequest into raw response text with a single
attempt. It does not retry, cache or parse: retries are the next candidate's
job and parsing belongs to the chain.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from src.chain.errors import ProviderTransportFailure
from src.models.models import GenerationRequest, ProviderDescriptor
from src.utils.logger import logger


class Provider(ABC):
    """One candidate backend with a fixed descriptor."""

    def __init__(self, descriptor: ProviderDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def identifier(self) -> str:
        return self.descriptor.identifier

    @abstractmethod
    async def attempt(self, request: GenerationRequest) -> str:
        """Issue one call and return the generated text.

        Raises:
            ProviderTransportFailure: On network error, non-2xx status or malformed body.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r}, priority={self.descriptor.priority})"


class RemoteProvider(Provider):
    """Provider reached over HTTPS with a JSON body."""

    def __init__(self, descriptor: ProviderDescriptor, api_key: str) -> None:
        if not api_key:
            raise ValueError(f"API key is required for provider {descriptor.identifier}")
        super().__init__(descriptor)
        self.api_key = api_key

    async def _post_json(self, url: str, payload: dict[str, Any], headers: Optional[dict[str, str]] = None) -> Any:
        """POST a JSON payload and return the decoded JSON body.

        The aiohttp timeout mirrors the candidate timeout; the chain enforces the
        same bound with asyncio.wait_for.

        Raises:
            ProviderTransportFailure: Connection error, non-2xx status or non-JSON body.
        """
        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        timeout = aiohttp.ClientTimeout(total=self.descriptor.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload, headers=request_headers) as response:
                    if response.status >= 300:
                        body = await response.text()
                        raise ProviderTransportFailure(
                            self.identifier, f"HTTP {response.status}: {body[:200]}"
                        )
                    return await response.json(content_type=None)
        except ProviderTransportFailure:
            raise
        except aiohttp.ClientError as e:
            raise ProviderTransportFailure(self.identifier, f"connection error: {e}") from e
        except ValueError as e:
            logger.debug(f"Undecodable response body: {e}", extra={"provider": self.identifier})
            raise ProviderTransportFailure(self.identifier, "response body is not valid JSON") from e
