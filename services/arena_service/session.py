"""
Session orchestration for one workbench user.

A Session owns the prompt text, the selected model, the current
parameters, the template store and the submission controller. It is
created once per running service and handed to whatever drives it (HTTP
routes, the WebSocket loop, tests); nothing here is module-global.

Every user-facing outcome is emitted as a notification event and every
observable change as a ``session.state`` event through the ``sink``
callable. The presentation layer decides how to show them.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

from services.arena_service import parameters as params_model
from services.arena_service.catalog import DEFAULT_MODEL_ID, find_model
from services.arena_service.errors import ArenaError, ExportFailed, ValidationRejected
from services.arena_service import output as output_model
from services.arena_service.output import Output
from services.arena_service.submission import (
    Failed,
    SubmissionController,
    SubmissionState,
    Succeeded,
)
from services.arena_service.templates import Template, TemplateStore, preview
from shared.contracts.events import (
    BaseEvent,
    NotificationPayload,
    Severity,
    notification,
    session_state,
)
from shared.llm_adapter import LLMProvider, ModelParameters
from shared.observability.metrics import notifications

logger = logging.getLogger(__name__)

SERVICE_NAME = "arena_service"
SUBMIT_KEY = "Enter"

EventSink = Callable[[BaseEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session:

    def __init__(
        self,
        provider: LLMProvider,
        *,
        default_model: str = DEFAULT_MODEL_ID,
        templates: TemplateStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sink: EventSink | None = None,
    ) -> None:
        if find_model(default_model) is None:
            raise ValueError(f"Unknown default model {default_model!r}")

        self._clock = clock
        self._sink = sink
        self._sequence = 0

        self._prompt = ""
        self._model_id = default_model
        self._parameters = params_model.reset()
        self._templates = templates if templates is not None else TemplateStore(clock)
        self._controller = SubmissionController(
            provider, clock=clock, on_settled=self._on_settled
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def parameters(self) -> ModelParameters:
        return self._parameters

    @property
    def parameters_modified(self) -> bool:
        return params_model.is_modified(self._parameters)

    @property
    def state(self) -> SubmissionState:
        return self._controller.state

    @property
    def output(self) -> Output | None:
        return self._controller.output

    @property
    def is_pending(self) -> bool:
        return self._controller.is_pending

    @property
    def templates(self) -> TemplateStore:
        return self._templates

    def set_sink(self, sink: EventSink | None) -> None:
        self._sink = sink

    # ------------------------------------------------------------------
    # Prompt, model, parameters
    # ------------------------------------------------------------------

    def set_prompt(self, text: str) -> None:
        self._prompt = text
        self._publish_state()

    def set_model(self, model_id: str) -> None:
        with self._surfacing_errors():
            if find_model(model_id) is None:
                raise ValidationRejected(f"Unknown model {model_id!r}")
        self._model_id = model_id
        logger.info("Model selected: %s", model_id)
        self._publish_state()

    def set_parameter(self, field: str, value: float) -> ModelParameters:
        return self._replace_parameters(
            params_model.set_parameter(self._parameters, field, value)
        )

    def set_from_slider(self, field: str, position: float) -> ModelParameters:
        return self._replace_parameters(
            params_model.from_slider(self._parameters, field, position)
        )

    def set_from_entry(self, field: str, text: str) -> ModelParameters:
        return self._replace_parameters(
            params_model.from_entry(self._parameters, field, text)
        )

    def reset_parameters(self) -> ModelParameters:
        return self._replace_parameters(params_model.reset())

    def _replace_parameters(self, updated: ModelParameters) -> ModelParameters:
        self._parameters = updated
        self._publish_state()
        return updated

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_template(self, name: str, body: str | None = None) -> Template:
        """Save ``body`` (the current prompt when omitted) under ``name``."""
        with self._surfacing_errors():
            template = self._templates.save(name, self._prompt if body is None else body)
        self.notify(f'Template "{template.name}" saved')
        self._publish_state()
        return template

    def load_template(self, template_id: str) -> str:
        with self._surfacing_errors():
            body = self._templates.load(template_id)
        self._prompt = body
        self._publish_state()
        return body

    def delete_template(self, template_id: str) -> bool:
        removed = self._templates.delete(template_id)
        if removed:
            self.notify("Template deleted")
            self._publish_state()
        return removed

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self) -> asyncio.Task | None:
        """Submit the current prompt, parameters and model.

        Raises ValidationRejected (after notifying) for a blank prompt and
        returns None while a submission is pending.
        """
        with self._surfacing_errors():
            task = self._controller.submit(self._prompt, self._parameters, self._model_id)
        if task is not None:
            self._publish_state()
        return task

    def handle_key(self, key: str, ctrl: bool = False, meta: bool = False) -> asyncio.Task | None:
        """Ctrl+Enter / Cmd+Enter submits; every other key is ignored.

        Uses ``submit`` itself, so the guards are the same. A rejection has
        already been notified and there is no caller to raise it to.
        """
        if key != SUBMIT_KEY or not (ctrl or meta):
            return None
        try:
            return self.submit()
        except ValidationRejected:
            return None

    def reset(self) -> None:
        """Start a new assessment. The selected model is kept."""
        self._controller.reset()
        self._prompt = ""
        self._parameters = params_model.reset()
        self.notify("New assessment started")
        self._publish_state()

    async def close(self) -> None:
        """Stop emitting events and drop any in-flight generation."""
        self._sink = None
        await self._controller.aclose()

    def _on_settled(self, state: SubmissionState) -> None:
        if isinstance(state, Succeeded):
            self.notify("Response generated successfully")
        elif isinstance(state, Failed):
            self.notify(state.message, Severity.ERROR)
        self._publish_state()

    # ------------------------------------------------------------------
    # Output export
    # ------------------------------------------------------------------

    def copy_text(self) -> str:
        with self._surfacing_errors():
            output = self._require_output()
            if not output.content:
                raise ExportFailed("There is no response to copy yet")
        return output_model.copy_text(output)

    def report_copy(self, ok: bool) -> None:
        """Record what happened when the host tried to place text on the clipboard."""
        if ok:
            self.notify("Response copied to clipboard")
        else:
            self.notify("Failed to copy to clipboard", Severity.ERROR)

    def copy_output(self, writer: Callable[[str], None]) -> bool:
        """Copy with an in-process clipboard writer; failures only notify."""
        text = self.copy_text()
        try:
            writer(text)
        except Exception:
            logger.warning("Clipboard placement failed", exc_info=True)
            self.report_copy(False)
            return False
        self.report_copy(True)
        return True

    def export_json(self) -> tuple[str, dict[str, Any]]:
        """Return (filename, document) for the downloadable JSON artifact."""
        filename, output = self._export()
        return filename, output_model.to_json(output)

    def export_file(self) -> tuple[str, str]:
        """Return (filename, text) with the document rendered as indented JSON."""
        filename, output = self._export()
        return filename, output_model.dumps(output)

    def _export(self) -> tuple[str, Output]:
        with self._surfacing_errors():
            output = self._require_output()
        self.notify("Response downloaded as JSON")
        return output_model.export_filename(self._clock()), output

    def _require_output(self) -> Output:
        output = self._controller.output
        if output is None:
            raise ExportFailed("There is no response to export yet")
        return output

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Everything the presentation layer needs to render the session."""
        return {
            "prompt": self._prompt,
            "characters": len(self._prompt),
            "model": self._model_id,
            "parameters": self._parameters.model_dump(by_alias=True),
            "parametersModified": self.parameters_modified,
            "controls": params_model.describe_controls(self._parameters),
            "canSubmit": bool(self._prompt.strip()) and not self.is_pending,
            "state": self.state.model_dump(mode="json", by_alias=True),
            "templates": [
                {
                    "id": t.id,
                    "name": t.name,
                    "createdAt": t.created_at.isoformat(),
                    "preview": preview(t.body),
                }
                for t in self._templates.list()
            ],
        }

    def notify(self, message: str, severity: Severity = Severity.SUCCESS) -> None:
        notifications.labels(severity=severity.value).inc()
        logger.debug("Notification (%s): %s", severity.value, message)
        self._emit(
            notification(
                SERVICE_NAME,
                NotificationPayload(message=message, severity=severity),
                sequence=self._next_sequence(),
            )
        )

    def _publish_state(self) -> None:
        if self._sink is None:
            return
        self._emit(session_state(SERVICE_NAME, self.snapshot(), sequence=self._next_sequence()))

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _emit(self, event: BaseEvent) -> None:
        if self._sink is not None:
            self._sink(event)

    @contextmanager
    def _surfacing_errors(self) -> Iterator[None]:
        try:
            yield
        except ArenaError as exc:
            self.notify(exc.message, Severity.ERROR)
            raise
