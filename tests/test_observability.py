import pytest

from volam.core.observability import metrics_payload, stage_timer, volam_stage_duration_seconds


def _observations(stage):
    for metric in volam_stage_duration_seconds.collect():
        for sample in metric.samples:
            if sample.name.endswith("_count") and sample.labels.get("stage") == stage:
                return sample.value
    return 0.0


def test_stage_timer_observes_on_error():
    before = _observations("unit-test")

    with pytest.raises(KeyError):
        with stage_timer("unit-test"):
            raise KeyError("boom")

    assert _observations("unit-test") == before + 1


def test_metrics_payload_exposes_counters():
    with stage_timer("payload-test"):
        pass

    body, content_type = metrics_payload()

    assert b"volam_stage_duration_seconds" in body
    assert content_type.startswith("text/plain")
