import time
from contextlib import contextmanager

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

volam_rank_requests_total = Counter("volam_rank_requests_total", "Ranking requests by mode", ["mode"])
volam_rank_failures_total = Counter("volam_rank_failures_total", "Ranking requests that failed in retrieval")
volam_nullness_updates_total = Counter(
    "volam_nullness_updates_total",
    "Explicit nullness updates by action",
    ["action"],
)
volam_external_calls_total = Counter(
    "volam_external_calls_total",
    "External collaborator calls by provider and status",
    ["provider", "status"],
)
volam_stage_duration_seconds = Histogram(
    "volam_stage_duration_seconds",
    "Ranking pipeline stage duration seconds",
    ["stage"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)


@contextmanager
def stage_timer(stage: str):
    start = time.perf_counter()
    try:
        yield
    finally:
        volam_stage_duration_seconds.labels(stage=stage).observe(time.perf_counter() - start)


def metrics_payload() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
