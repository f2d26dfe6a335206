"""
OpenAI-compatible LLM provider.

Works with any API that speaks the OpenAI Chat Completions protocol:
  - OpenAI      (base_url=https://api.openai.com/v1)
  - Groq        (base_url=https://api.groq.com/openai/v1)         -- free tier
  - Google      (base_url=https://generativelanguage.googleapis.com/v1beta/openai)  -- free tier
  - OpenRouter  (base_url=https://openrouter.ai/api/v1)           -- free models

All five workbench parameters are forwarded unchanged. SDK errors are
converted to GenerationFailed so callers only ever see one failure type.
"""

from __future__ import annotations

import logging
import os

from shared.llm_adapter.base import GenerationFailed, LLMProvider
from shared.llm_adapter.models import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

_BASE_URLS: dict[str, str] = {
    "openai":     "https://api.openai.com/v1",
    "groq":       "https://api.groq.com/openai/v1",
    "gemini":     "https://generativelanguage.googleapis.com/v1beta/openai/",
    "openrouter": "https://openrouter.ai/api/v1",
}


class OpenAIProvider(LLMProvider):
    """
    OpenAI Chat Completions adapter.

    Reads from env:
      LLM_PROVIDER  -- selects base_url
      LLM_API_KEY   -- API key (also checked as OPENAI_API_KEY for compatibility)
      LLM_MODEL     -- when set, replaces the model id chosen in the workbench
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        provider_name: str = "openai",
        client=None,
    ) -> None:
        self._provider_name = provider_name

        self._api_key = (
            api_key
            or os.environ.get("LLM_API_KEY", "")
            or os.environ.get("OPENAI_API_KEY", "")
        )
        # Local providers (e.g. Ollama / LM Studio) often don't require a key.
        if not self._api_key and provider_name == "local":
            self._api_key = "local-placeholder-key"
        elif not self._api_key and client is None:
            raise ValueError(
                f"An API key is required for provider '{provider_name}'. "
                "Set LLM_API_KEY (or OPENAI_API_KEY) in your environment."
            )

        self._base_url = (
            base_url
            or os.environ.get("LLM_BASE_URL", "")
            or _BASE_URLS.get(provider_name, _BASE_URLS["openai"])
        )
        self._model_override = model or os.environ.get("LLM_MODEL", "")

        try:
            import openai
        except ImportError as exc:
            raise ImportError(
                "openai package is required. Install it with: pip install openai"
            ) from exc

        self._sdk = openai
        if client is None:
            timeout = float(os.environ.get("LLM_REQUEST_TIMEOUT", "120"))
            client = openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=timeout,
            )
        self._client = client

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        model = self._model_override or request.model
        params = request.parameters

        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=params.temperature,
                max_tokens=params.max_tokens,
                top_p=params.top_p,
                frequency_penalty=params.frequency_penalty,
                presence_penalty=params.presence_penalty,
                messages=[{"role": "user", "content": request.prompt}],
            )
        except self._sdk.OpenAIError as exc:
            logger.warning(
                "%s generation failed for model %s: %s",
                self._provider_name, model, exc,
            )
            raise GenerationFailed(self._describe(exc)) from exc

        if not response.choices:
            raise GenerationFailed("The model returned an empty response.")

        choice = response.choices[0]
        usage = response.usage

        return GenerationResult(
            content=choice.message.content or "",
            model=response.model or model,
            token_count=usage.completion_tokens if usage else 0,
        )

    def _describe(self, exc: Exception) -> str:
        if isinstance(exc, self._sdk.APITimeoutError):
            return "The generation request timed out. Please try again."
        if isinstance(exc, self._sdk.APIConnectionError):
            return f"Could not reach the {self._provider_name} API. Please try again."
        if isinstance(exc, self._sdk.APIStatusError):
            return (
                f"API request failed with status {exc.status_code}. "
                "Please try again."
            )
        return "API request failed. Please try again."
