"""
Event contracts pushed from the arena service to the presentation layer.

Every message sent over the WebSocket MUST be one of these envelopes.
BaseEvent provides the envelope; specific event types define typed payloads.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    NOTIFICATION = "notification"
    SESSION_STATE = "session.state"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class BaseEvent(BaseModel):
    """
    Canonical envelope for all events sent to clients.

    - event_id is a UUID4 generated at creation time
    - timestamp uses UTC with explicit timezone
    - sequence is assigned by the producing session and increases by one
      per event, so clients can drop anything older than what they hold
    """

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: EventType
    version: str = "1.0"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    producer: str
    sequence: int = 0
    payload: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class NotificationPayload(BaseModel):
    """A toast the presentation layer should display; timing is its concern."""

    message: str
    severity: Severity


# ---------------------------------------------------------------------------
# Typed event constructors (factory helpers)
# ---------------------------------------------------------------------------


def notification(
    producer: str, payload: NotificationPayload, sequence: int = 0
) -> BaseEvent:
    return BaseEvent(
        event_type=EventType.NOTIFICATION,
        producer=producer,
        sequence=sequence,
        payload=payload.model_dump(mode="json"),
    )


def session_state(
    producer: str, snapshot: dict[str, Any], sequence: int = 0
) -> BaseEvent:
    return BaseEvent(
        event_type=EventType.SESSION_STATE,
        producer=producer,
        sequence=sequence,
        payload=snapshot,
    )
