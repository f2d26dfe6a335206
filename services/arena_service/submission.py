"""
Submission lifecycle: Idle -> Pending -> Succeeded | Failed.

At most one generation is in flight per controller. Each accepted submit
and each reset advances ``generation``; a completion carries the
generation it was issued under and is dropped when that is no longer
current, so a slow response can never overwrite newer state. The call to
the provider itself is not cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from services.arena_service.errors import ValidationRejected
from services.arena_service.output import Output, OutputMetadata, elapsed_ms
from shared.llm_adapter import GenerationFailed, GenerationRequest, LLMProvider, ModelParameters
from shared.observability.metrics import generation_time, llm_tokens, submissions

logger = logging.getLogger(__name__)

UNEXPECTED_FAILURE_MESSAGE = "An unexpected error occurred"


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["idle"] = "idle"


class Pending(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["pending"] = "pending"
    started_at: datetime


class Succeeded(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["succeeded"] = "succeeded"
    output: Output


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["failed"] = "failed"
    message: str


SubmissionState = Annotated[
    Union[Idle, Pending, Succeeded, Failed],
    Field(discriminator="kind"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionController:

    def __init__(
        self,
        provider: LLMProvider,
        clock: Callable[[], datetime] = _utcnow,
        on_settled: Callable[[SubmissionState], None] | None = None,
    ) -> None:
        self._provider = provider
        self._clock = clock
        self._on_settled = on_settled
        self._state: SubmissionState = Idle()
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_pending(self) -> bool:
        return isinstance(self._state, Pending)

    @property
    def output(self) -> Output | None:
        if isinstance(self._state, Succeeded):
            return self._state.output
        return None

    def submit(
        self, prompt: str, parameters: ModelParameters, model_id: str
    ) -> asyncio.Task | None:
        """Start a generation on the running loop.

        Raises ValidationRejected for a blank prompt. Returns None, with no
        side effect, while another submission is pending. Otherwise returns
        the task that will settle this submission.
        """
        if not prompt or not prompt.strip():
            submissions.labels(outcome="rejected").inc()
            raise ValidationRejected("Please enter a prompt")
        if self.is_pending:
            logger.debug("Submit ignored: generation %d still pending", self._generation)
            submissions.labels(outcome="ignored").inc()
            return None

        loop = asyncio.get_running_loop()
        request = GenerationRequest(prompt=prompt, model=model_id, parameters=parameters)

        self._generation += 1
        ticket = self._generation
        started_at = self._clock()
        self._state = Pending(started_at=started_at)
        submissions.labels(outcome="accepted").inc()
        logger.info(
            "Submission %d accepted (model=%s, prompt_chars=%d)",
            ticket, model_id, len(prompt),
        )

        self._task = loop.create_task(self._run(ticket, request, started_at))
        return self._task

    def reset(self) -> None:
        """Return to Idle whatever the current state; any in-flight result is dropped."""
        self._generation += 1
        self._state = Idle()
        logger.info("Submission state reset (generation=%d)", self._generation)

    async def aclose(self) -> None:
        """Cancel and await the in-flight generation, if any. Nothing settles afterwards."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        self._generation += 1
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("In-flight generation cancelled on shutdown")

    async def _run(
        self, ticket: int, request: GenerationRequest, started_at: datetime
    ) -> None:
        try:
            result = await self._provider.generate(request)
        except GenerationFailed as exc:
            self._settle(ticket, Failed(message=exc.message), started_at, self._clock())
            return
        except Exception:
            logger.exception("Generation %d raised an unexpected error", ticket)
            self._settle(
                ticket, Failed(message=UNEXPECTED_FAILURE_MESSAGE), started_at, self._clock()
            )
            return

        completed_at = self._clock()
        output = Output(
            content=result.content,
            model=request.model,
            timestamp=completed_at,
            parameters=request.parameters,
            metadata=OutputMetadata(
                tokens=result.token_count,
                processing_time_ms=elapsed_ms(started_at, completed_at),
            ),
        )
        if self._settle(ticket, Succeeded(output=output), started_at, completed_at):
            llm_tokens.labels(model=request.model).inc(result.token_count)

    def _settle(
        self,
        ticket: int,
        state: SubmissionState,
        started_at: datetime,
        completed_at: datetime,
    ) -> bool:
        if ticket != self._generation:
            logger.info(
                "Discarding stale result for generation %d (current=%d)",
                ticket, self._generation,
            )
            submissions.labels(outcome="discarded").inc()
            return False

        self._state = state
        submissions.labels(outcome=state.kind).inc()
        generation_time.observe(max((completed_at - started_at).total_seconds(), 0.0))

        if isinstance(state, Failed):
            logger.warning("Generation %d failed: %s", ticket, state.message)
        else:
            logger.info(
                "Generation %d succeeded (tokens=%d, processing_time_ms=%d)",
                ticket,
                state.output.metadata.tokens,
                state.output.metadata.processing_time_ms,
            )

        if self._on_settled is not None:
            self._on_settled(state)
        return True
