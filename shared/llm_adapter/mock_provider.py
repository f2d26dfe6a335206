"""
Simulated LLM provider for development and tests.

The response text echoes the model, the prompt and the parameters it was
sent with, so the same request always yields the same content. Latency
and a failure rate can be configured to exercise the pending and failed
paths of the workbench without network calls.
"""

from __future__ import annotations

import asyncio
import random

from shared.llm_adapter.base import GenerationFailed, LLMProvider
from shared.llm_adapter.models import GenerationRequest, GenerationResult

_PROMPT_PREVIEW_CHARS = 100

SIMULATED_FAILURE_MESSAGE = "API request failed. Please try again."


class MockProvider(LLMProvider):

    def __init__(
        self,
        latency_ms: tuple[int, int] = (0, 0),
        failure_rate: float = 0.0,
        seed: int | None = None,
    ) -> None:
        low, high = latency_ms
        if low < 0 or high < low:
            raise ValueError(f"Invalid latency range: {latency_ms!r}")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {failure_rate}")
        self._latency_ms = (low, high)
        self._failure_rate = failure_rate
        self._rng = random.Random(seed)
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self._call_count += 1

        low, high = self._latency_ms
        delay_ms = self._rng.uniform(low, high) if high else 0
        await asyncio.sleep(delay_ms / 1000)

        if self._failure_rate and self._rng.random() < self._failure_rate:
            raise GenerationFailed(SIMULATED_FAILURE_MESSAGE)

        content = _render(request)

        return GenerationResult(
            content=content,
            model=request.model,
            token_count=len(content) // 4,
        )


def _render(request: GenerationRequest) -> str:
    params = request.parameters
    preview = request.prompt[:_PROMPT_PREVIEW_CHARS]
    if len(request.prompt) > _PROMPT_PREVIEW_CHARS:
        preview += "..."

    return (
        f"This is a simulated response from {request.model}.\n\n"
        f'Your prompt: "{preview}"\n\n'
        "Model Parameters Used:\n"
        f"• Temperature: {params.temperature}\n"
        f"• Max Tokens: {params.max_tokens}\n"
        f"• Top P: {params.top_p}\n"
        f"• Frequency Penalty: {params.frequency_penalty}\n"
        f"• Presence Penalty: {params.presence_penalty}\n\n"
        "In a production environment, this would be replaced with actual AI model "
        "responses. The response would be generated based on your specific prompt "
        "and the configured parameters.\n\n"
        "This simulation demonstrates the complete workflow of AI Arena, including "
        "parameter configuration, response generation, and result presentation "
        "with metadata."
    )
