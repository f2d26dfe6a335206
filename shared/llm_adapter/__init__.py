from shared.llm_adapter.base import GenerationFailed, LLMProvider
from shared.llm_adapter.factory import AVAILABLE_PROVIDERS, create_llm_provider
from shared.llm_adapter.models import GenerationRequest, GenerationResult, ModelParameters
from shared.llm_adapter.mock_provider import MockProvider

__all__ = [
    "LLMProvider",
    "GenerationFailed",
    "GenerationRequest",
    "GenerationResult",
    "ModelParameters",
    "MockProvider",
    "AVAILABLE_PROVIDERS",
    "create_llm_provider",
]
