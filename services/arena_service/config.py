from __future__ import annotations

import os
from dataclasses import dataclass

from services.arena_service.catalog import DEFAULT_MODEL_ID


def _flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ArenaConfig:
    llm_provider: str
    default_model: str
    log_level: str
    mock_latency_ms_min: int
    mock_latency_ms_max: int
    mock_failure_rate: float
    seed_templates: bool
    cors_origins: tuple[str, ...]

    @classmethod
    def from_env(cls) -> ArenaConfig:
        return cls(
            llm_provider=os.environ.get("LLM_PROVIDER", "mock"),
            default_model=os.environ.get("ARENA_DEFAULT_MODEL", DEFAULT_MODEL_ID),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            mock_latency_ms_min=int(os.environ.get("MOCK_LATENCY_MS_MIN", "1500") or 0),
            mock_latency_ms_max=int(os.environ.get("MOCK_LATENCY_MS_MAX", "3500") or 0),
            mock_failure_rate=float(os.environ.get("MOCK_FAILURE_RATE", "0.1") or 0),
            seed_templates=_flag(os.environ.get("ARENA_SEED_TEMPLATES", "true")),
            cors_origins=tuple(
                origin.strip()
                for origin in os.environ.get("ARENA_CORS_ORIGINS", "*").split(",")
                if origin.strip()
            ),
        )

    @property
    def mock_latency_ms(self) -> tuple[int, int]:
        return (self.mock_latency_ms_min, max(self.mock_latency_ms_min, self.mock_latency_ms_max))
