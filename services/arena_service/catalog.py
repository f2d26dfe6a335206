from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    description: str
    category: str


MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="claude-sonnet-4",
        name="Claude Sonnet 4",
        description="Most advanced reasoning and analysis capabilities",
        category="Premium",
    ),
    ModelInfo(
        id="gpt-4",
        name="GPT-4",
        description="Powerful language model for complex tasks",
        category="Standard",
    ),
    ModelInfo(
        id="llama",
        name="Llama",
        description="Open-source model for efficient processing",
        category="Open Source",
    ),
)

DEFAULT_MODEL_ID = MODELS[0].id


def find_model(model_id: str) -> ModelInfo | None:
    for model in MODELS:
        if model.id == model_id:
            return model
    return None


def catalog_as_dicts() -> list[dict[str, str]]:
    return [asdict(m) for m in MODELS]
