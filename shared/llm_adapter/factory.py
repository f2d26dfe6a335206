"""
Provider factory -- single entry point for building the generation backend.

Reads LLM_PROVIDER from env (default: 'mock') and returns the chosen
backend. The caller owns the instance; the arena service keeps it on
``app.state`` next to the session that uses it.

Supported providers:

  mock        Built-in simulation, no API key needed (default)
  openai      OpenAI API  -- needs OPENAI_API_KEY or LLM_API_KEY
  groq        Groq API    -- free tier, needs LLM_API_KEY
                            https://console.groq.com/keys
  gemini      Google AI   -- free tier, needs LLM_API_KEY
                            https://aistudio.google.com/apikey
  openrouter  OpenRouter  -- free models available, needs LLM_API_KEY
                            https://openrouter.ai/keys
  local       Any OpenAI-compatible local server
                            e.g. Ollama / LM Studio (no key required)

The model id selected in the workbench is sent as-is unless LLM_MODEL
overrides it for OpenAI-compatible backends.
"""

from __future__ import annotations

import logging
import os

from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.mock_provider import MockProvider

logger = logging.getLogger(__name__)

_OPENAI_COMPATIBLE = {"openai", "groq", "gemini", "openrouter", "local"}

AVAILABLE_PROVIDERS = ("mock", *sorted(_OPENAI_COMPATIBLE))


def create_llm_provider(
    provider_name: str | None = None,
    mock_latency_ms: tuple[int, int] = (0, 0),
    mock_failure_rate: float = 0.0,
) -> LLMProvider:
    """
    Build the configured generation backend.

    Args:
        provider_name:     Override for LLM_PROVIDER env var.
        mock_latency_ms:   Simulated (min, max) latency for the mock provider.
        mock_failure_rate: Probability in [0, 1] that a mock call fails.
    """
    name = (provider_name or os.environ.get("LLM_PROVIDER", "mock")).lower()

    if name == "mock":
        provider: LLMProvider = MockProvider(
            latency_ms=mock_latency_ms,
            failure_rate=mock_failure_rate,
        )
    elif name in _OPENAI_COMPATIBLE:
        from shared.llm_adapter.openai_provider import OpenAIProvider

        provider = OpenAIProvider(provider_name=name)
    else:
        raise ValueError(
            f"Unknown LLM provider '{name}'. "
            f"Available: {', '.join(AVAILABLE_PROVIDERS)}"
        )

    logger.info(
        "LLM provider initialized: %s (model override=%s)",
        name,
        os.environ.get("LLM_MODEL") or "none",
    )
    return provider
