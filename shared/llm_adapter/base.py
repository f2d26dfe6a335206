"""Abstract base class that all LLM providers must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shared.llm_adapter.models import GenerationRequest, GenerationResult


class GenerationFailed(Exception):
    """Raised by a provider when a generation request cannot be fulfilled.

    ``message`` is shown to the user as-is, so it must be readable and must
    not leak credentials or raw upstream payloads.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LLMProvider(ABC):
    """
    Contract for LLM providers.

    Every implementation MUST:
    - Honour the sampling parameters carried by the request
    - Return a GenerationResult whose token_count describes the response
    - Signal any failure by raising GenerationFailed, never a transport error
    """

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send a prompt and return the model's response."""

