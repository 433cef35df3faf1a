"""Error taxonomy for the provider fallback chain.

Only InvalidRequest and AllProvidersExhausted ever reach callers.
ProviderError subclasses describe why a single candidate was abandoned; the
chain records them and moves on to the next candidate.
"""

from typing import Sequence

from src.models.models import CandidateFailure


class ChainError(Exception):
    """Base class for fallback chain errors."""


class InvalidRequest(ChainError):
    """Request rejected before any provider was contacted."""


class ProviderError(ChainError):
    """A single candidate failed. Never propagates out of the chain."""

    kind = "provider"

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class ProviderTransportFailure(ProviderError):
    """Network error, timeout, non-2xx status or malformed response body."""

    kind = "transport"


class UnparseableResponse(ProviderError):
    """Provider answered but no structured object could be decoded from the text."""

    kind = "unparseable"


class AllProvidersExhausted(ChainError):
    """Every candidate failed, including the local template."""

    def __init__(self, failures: Sequence[CandidateFailure]) -> None:
        self.failures = list(failures)
        summary = "; ".join(f"{f.provider} ({f.kind}): {f.reason}" for f in self.failures)
        super().__init__(f"All AI providers failed: {summary or 'no candidates available'}")
