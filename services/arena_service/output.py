"""
Completed generation results and their export encodings.

``to_json`` is the one serialization other tools consume (the downloaded
``ai-response-*.json`` file), so its key names are fixed:
``response``, ``model``, ``timestamp``, ``parameters``, ``metadata``.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.llm_adapter.models import ModelParameters


class OutputMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tokens: int = Field(ge=0)
    processing_time_ms: int = Field(ge=0, alias="processingTime")


class Output(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    model: str
    timestamp: datetime
    parameters: ModelParameters
    metadata: OutputMetadata


def elapsed_ms(started_at: datetime, completed_at: datetime) -> int:
    """Whole milliseconds between two instants, never negative."""
    return max((completed_at - started_at) // timedelta(milliseconds=1), 0)


def to_json(output: Output) -> dict[str, Any]:
    return {
        "response": output.content,
        "model": output.model,
        "timestamp": _iso(output.timestamp),
        "parameters": output.parameters.model_dump(by_alias=True),
        "metadata": output.metadata.model_dump(by_alias=True),
    }


def dumps(output: Output) -> str:
    return json.dumps(to_json(output), indent=2, ensure_ascii=False)


def copy_text(output: Output) -> str:
    return output.content


def export_filename(at: datetime | None = None) -> str:
    at = at or datetime.now(timezone.utc)
    return f"ai-response-{int(at.timestamp() * 1000)}.json"


def _iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
