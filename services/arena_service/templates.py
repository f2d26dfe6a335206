"""In-memory catalog of named, reusable prompt bodies (newest first)."""

from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from services.arena_service.errors import TemplateNotFound, ValidationRejected

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 120


class Template(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    body: str
    created_at: datetime


STARTER_TEMPLATES: list[tuple[str, str, datetime]] = [
    (
        "Code Review",
        "Please review the following code and provide feedback on:\n\n"
        "1. Code quality and structure\n"
        "2. Potential bugs or issues\n"
        "3. Performance optimizations\n"
        "4. Best practices adherence\n\n"
        "Code:\n```\n[INSERT CODE HERE]\n```",
        datetime(2024, 1, 15, tzinfo=timezone.utc),
    ),
    (
        "Data Analysis",
        "Analyze the following dataset and provide insights on:\n\n"
        "1. Key patterns and trends\n"
        "2. Statistical significance\n"
        "3. Potential correlations\n"
        "4. Recommendations based on findings\n\n"
        "Dataset:\n[INSERT DATA HERE]",
        datetime(2024, 1, 10, tzinfo=timezone.utc),
    ),
    (
        "Document Summary",
        "Please summarize the following document focusing on:\n\n"
        "1. Main points and key findings\n"
        "2. Important details and context\n"
        "3. Actionable recommendations\n"
        "4. Executive summary\n\n"
        "Document:\n[INSERT DOCUMENT HERE]",
        datetime(2024, 1, 5, tzinfo=timezone.utc),
    ),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TemplateStore:
    """
    Templates live for the lifetime of the process.

    Ids come from a counter, so two templates saved within the same clock
    tick still get distinct ids and later ids always sort after earlier ones.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._sequence = itertools.count(1)
        self._templates: list[Template] = []

    def __len__(self) -> int:
        return len(self._templates)

    def save(self, name: str, body: str) -> Template:
        if not name or not name.strip():
            raise ValidationRejected("Please enter a template name")
        if not body or not body.strip():
            raise ValidationRejected("Cannot save an empty prompt as a template")
        return self._insert(name.strip(), body, self._clock())

    def list(self) -> list[Template]:
        return list(self._templates)

    def get(self, template_id: str) -> Template:
        for template in self._templates:
            if template.id == template_id:
                return template
        raise TemplateNotFound(template_id)

    def load(self, template_id: str) -> str:
        return self.get(template_id).body

    def delete(self, template_id: str) -> bool:
        remaining = [t for t in self._templates if t.id != template_id]
        removed = len(remaining) != len(self._templates)
        self._templates = remaining
        if removed:
            logger.info("Deleted template %s", template_id)
        return removed

    def seed(self, starters: list[tuple[str, str, datetime]] = STARTER_TEMPLATES) -> None:
        """Load starter templates given newest first, keeping that order."""
        for name, body, created_at in reversed(starters):
            self._insert(name, body, created_at)

    def _insert(self, name: str, body: str, created_at: datetime) -> Template:
        template = Template(
            id=f"tpl-{next(self._sequence)}",
            name=name,
            body=body,
            created_at=created_at,
        )
        self._templates.insert(0, template)
        logger.info("Saved template %s (%s)", template.id, name)
        return template


def preview(body: str, limit: int = PREVIEW_CHARS) -> str:
    """Shorten a body for display. The stored template is left untouched."""
    if len(body) <= limit:
        return body
    return body[: max(limit - 1, 0)].rstrip() + "…"
