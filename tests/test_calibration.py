from unittest.mock import AsyncMock, MagicMock

import pytest

from volam.services.eval import (
    EvaluationQuestion,
    EvaluationRow,
    brier_score,
    compare_reports,
    compute_calibration_metrics,
    evaluate,
    expected_calibration_error,
    keyword_accuracy,
    load_questions,
)
from volam.services.pipeline import VolamPipeline
from volam.services.retrieval import RetrievalError, RetrievalOrchestrator


def _row(confidence, accuracy, **kwargs):
    return EvaluationRow(
        question_id=kwargs.get("question_id", "q"),
        query="query",
        predicted_answer="",
        expected_answer="",
        confidence=confidence,
        accuracy=accuracy,
        brier_score=brier_score(confidence, accuracy),
        nullness=kwargs.get("nullness", 0.5),
        top_score=kwargs.get("top_score", 0.0),
        top_empathy_fit=kwargs.get("top_empathy_fit", 0.0),
    )


def test_keyword_accuracy():
    assert keyword_accuracy("emissions are rising fast", "rising emissions") == 1.0
    assert keyword_accuracy("nothing relevant", "rising emissions") == 0.0
    assert keyword_accuracy("anything", "") == 0.0
    assert keyword_accuracy("rising", "rising sea levels today") == pytest.approx(0.25)


def test_brier_score():
    assert brier_score(0.8, 1.0) == pytest.approx(0.04)
    assert brier_score(0.0, 0.0) == 0.0


def test_ece_perfect_calibration_is_zero():
    rows = [_row(0.25, 0.25), _row(0.75, 0.75)]
    assert expected_calibration_error(rows) == pytest.approx(0.0)


def test_ece_weights_bins_by_size():
    rows = [_row(0.9, 0.5), _row(0.95, 0.5), _row(0.1, 0.1), _row(1.0, 1.0)]
    # bin 9 holds 0.9, 0.95 and 1.0: |0.95 - 0.6667| * 3/4; bin 1 is calibrated
    assert expected_calibration_error(rows) == pytest.approx(abs(0.95 - 2.0 / 3.0) * 0.75)


def test_ece_empty():
    assert expected_calibration_error([]) == 0.0


def test_compute_metrics():
    rows = [_row(0.8, 1.0, nullness=0.2, top_score=0.9), _row(0.4, 0.0, nullness=0.6, top_score=0.5)]

    metrics = compute_calibration_metrics(rows)

    assert metrics["total_questions"] == 2
    assert metrics["accuracy"] == pytest.approx(0.5)
    assert metrics["brier_score"] == pytest.approx((0.04 + 0.16) / 2)
    assert metrics["nullness"] == pytest.approx(0.4)
    assert metrics["volam_score"] == pytest.approx(0.7)


def test_compute_metrics_empty():
    assert compute_calibration_metrics([])["total_questions"] == 0


def test_compare_reports_flags_targets():
    baseline = {"accuracy": 0.5, "brier_score": 0.2, "ece": 0.2}
    volam = {"accuracy": 0.65, "brier_score": 0.15, "ece": 0.19}

    report = compare_reports(baseline, volam)

    assert report["improvements"]["accuracy_delta"] == pytest.approx(0.15)
    assert report["improvements"]["brier_score_improvement"] == pytest.approx(0.25)
    assert report["summary"] == {
        "meets_accuracy_target": True,
        "meets_brier_target": True,
        "meets_ece_target": False,
    }


def test_load_questions_accepts_camel_case():
    questions = load_questions(
        [
            {"id": 1, "query": "q1", "expectedAnswer": "a1", "relevantChunks": ["c1"]},
            {"id": "2", "query": "q2", "expected_answer": "a2"},
        ]
    )

    assert questions[0].id == "1"
    assert questions[0].expected_answer == "a1"
    assert questions[0].relevant_chunks == ["c1"]
    assert questions[1].relevant_chunks == []


@pytest.mark.asyncio
async def test_evaluate_runs_pipeline(embedder, flat_index):
    pipeline = VolamPipeline(RetrievalOrchestrator(embedder, flat_index))
    questions = [
        EvaluationQuestion(id="1", query="climate emissions", expected_answer="climate change is driven by emissions"),
        EvaluationQuestion(id="2", query="solar energy", expected_answer="solar energy is renewable"),
    ]

    report = await evaluate(pipeline, questions, mode="volam", k=2)

    assert report["mode"] == "volam"
    assert report["metrics"]["total_questions"] == 2
    assert len(report["results"]) == 2
    for row in report["results"]:
        assert 0.0 <= row["confidence"] <= 1.0
        assert 0.0 <= row["accuracy"] <= 1.0
        assert row["failed"] is False


@pytest.mark.asyncio
async def test_evaluate_records_failed_questions():
    pipeline = MagicMock()
    pipeline.rank = AsyncMock(side_effect=RetrievalError("index unreachable"))

    report = await evaluate(pipeline, [EvaluationQuestion(id="1", query="q", expected_answer="a")])

    row = report["results"][0]
    assert row["failed"] is True
    assert row["confidence"] == 0.0
    assert row["brier_score"] == 1.0
    assert row["nullness"] == 1.0
    assert report["metrics"]["brier_score"] == 1.0
