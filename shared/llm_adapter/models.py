"""Data models for the LLM adapter layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModelParameters(BaseModel):
    """The five sampling controls sent with every generation request.

    Serialized with camelCase keys (``maxTokens``, ``topP``...) so the
    same shape can be handed to the browser and written to exports.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, ge=1, le=8192)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    model: str
    parameters: ModelParameters = Field(default_factory=ModelParameters)


class GenerationResult(BaseModel):
    content: str
    model: str
    token_count: int = Field(default=0, ge=0)
