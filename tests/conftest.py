"""
Pytest fixtures shared by the arena tests.

Nothing here touches the network: providers are scripted in-process and
time comes from a clock the test advances by hand.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from shared.llm_adapter import (
    GenerationFailed,
    GenerationRequest,
    GenerationResult,
    LLMProvider,
)
from services.arena_service.session import Session
from services.arena_service.templates import TemplateStore


class FakeClock:
    def __init__(self, start=datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += timedelta(milliseconds=ms)


class InstantProvider(LLMProvider):
    """Answers straight away, advancing the clock to simulate latency."""

    def __init__(self, content="Generated text", token_count=42, clock=None, latency_ms=0):
        self.content = content
        self.token_count = token_count
        self.clock = clock
        self.latency_ms = latency_ms
        self.requests = []

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.clock is not None:
            self.clock.advance(self.latency_ms)
        return GenerationResult(
            content=self.content, model=request.model, token_count=self.token_count
        )


class FailingProvider(LLMProvider):
    def __init__(self, message="API request failed. Please try again."):
        self.message = message
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        raise GenerationFailed(self.message)


class ControlledProvider(LLMProvider):
    """Every call blocks until the test resolves it, in any order."""

    def __init__(self):
        self.calls = []

    async def generate(self, request):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((request, future))
        return await future

    @property
    def requests(self):
        return [request for request, _ in self.calls]

    def succeed(self, index, content="Generated text", token_count=42):
        request, future = self.calls[index]
        future.set_result(
            GenerationResult(content=content, model=request.model, token_count=token_count)
        )

    def fail(self, index, message="API request failed. Please try again."):
        self.calls[index][1].set_exception(GenerationFailed(message))


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def notifications(self):
        return [
            (e.payload["message"], e.payload["severity"])
            for e in self.events
            if e.event_type.value == "notification"
        ]

    def states(self):
        return [e.payload for e in self.events if e.event_type.value == "session.state"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def controlled():
    return ControlledProvider()


@pytest.fixture
def make_session(clock, sink):
    def _make(provider, seed=False, **kwargs):
        templates = TemplateStore(clock)
        if seed:
            templates.seed()
        return Session(provider, templates=templates, clock=clock, sink=sink, **kwargs)

    return _make


async def settle():
    """Let freshly created tasks reach their first await."""
    for _ in range(3):
        await asyncio.sleep(0)
