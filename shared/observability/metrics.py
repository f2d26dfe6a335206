from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import Response


submissions = Counter(
    "arena_submissions_total",
    "Generation submissions by outcome",
    ["outcome"],
)

generation_time = Histogram(
    "arena_generation_seconds",
    "Time between submit and a settled generation",
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

llm_tokens = Counter(
    "llm_tokens_total",
    "Total LLM tokens reported by the generation backend",
    ["model"],
)

notifications = Counter(
    "arena_notifications_total",
    "Notifications emitted to the presentation layer",
    ["severity"],
)


def metrics_response() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
