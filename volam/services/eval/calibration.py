"""
Offline calibration evaluation for baseline vs VOLaM ranking.

Per question: keyword accuracy of the composed answer against a reference
answer, and the Brier score (confidence - accuracy)^2. Across questions:
mean accuracy, mean Brier score and expected calibration error (ECE).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from volam.constants.config import (
    CALIBRATION_BINS,
    TARGET_ACCURACY_GAIN,
    TARGET_BRIER_REDUCTION,
    TARGET_ECE_REDUCTION,
)
from volam.core.logger import get_logger
from volam.core.schemas import RankRequest
from volam.services.retrieval import RetrievalError

logger = get_logger(__name__)


@dataclass
class EvaluationQuestion:
    id: str
    query: str
    expected_answer: str
    relevant_chunks: List[str] = field(default_factory=list)


@dataclass
class EvaluationRow:
    question_id: str
    query: str
    predicted_answer: str
    expected_answer: str
    confidence: float
    accuracy: float
    brier_score: float
    nullness: float
    top_score: float = 0.0
    top_empathy_fit: float = 0.0
    failed: bool = False


def keyword_accuracy(predicted: str, expected: str) -> float:
    """
    Fraction of predicted words that overlap (substring either way) with a
    word of the expected answer, relative to the expected answer length.
    Capped at 1.0.
    """
    predicted_words = (predicted or "").lower().split()
    expected_words = (expected or "").lower().split()
    if not expected_words:
        return 0.0

    hits = sum(1 for w in predicted_words if any(e in w or w in e for e in expected_words))
    return min(hits / len(expected_words), 1.0)


def brier_score(confidence: float, accuracy: float) -> float:
    return (float(confidence) - float(accuracy)) ** 2


def expected_calibration_error(rows: List[EvaluationRow], bins: int = CALIBRATION_BINS) -> float:
    """
    ECE over equal-width confidence bins [i/b, (i+1)/b); confidence 1.0 is
    counted in the last bin.
    """
    if not rows or bins <= 0:
        return 0.0

    buckets: List[List[EvaluationRow]] = [[] for _ in range(bins)]
    for row in rows:
        idx = min(int(max(row.confidence, 0.0) * bins), bins - 1)
        buckets[idx].append(row)

    ece = 0.0
    for bucket in buckets:
        if not bucket:
            continue
        avg_conf = sum(r.confidence for r in bucket) / len(bucket)
        avg_acc = sum(r.accuracy for r in bucket) / len(bucket)
        ece += (len(bucket) / len(rows)) * abs(avg_conf - avg_acc)
    return ece


def compute_calibration_metrics(rows: List[EvaluationRow]) -> Dict[str, float]:
    n = len(rows)
    if n == 0:
        return {
            "total_questions": 0.0,
            "accuracy": 0.0,
            "brier_score": 0.0,
            "ece": 0.0,
            "nullness": 0.0,
            "volam_score": 0.0,
            "empathy_fit": 0.0,
        }
    return {
        "total_questions": float(n),
        "accuracy": round(sum(r.accuracy for r in rows) / n, 4),
        "brier_score": round(sum(r.brier_score for r in rows) / n, 4),
        "ece": round(expected_calibration_error(rows), 4),
        "nullness": round(sum(r.nullness for r in rows) / n, 4),
        "volam_score": round(sum(r.top_score for r in rows) / n, 4),
        "empathy_fit": round(sum(r.top_empathy_fit for r in rows) / n, 4),
    }


def _relative_reduction(before: float, after: float) -> float:
    return (before - after) / before if before else 0.0


def compare_reports(baseline: Dict[str, float], volam: Dict[str, float]) -> Dict[str, Any]:
    accuracy_delta = volam["accuracy"] - baseline["accuracy"]
    brier_reduction = _relative_reduction(baseline["brier_score"], volam["brier_score"])
    ece_reduction = _relative_reduction(baseline["ece"], volam["ece"])

    return {
        "baseline": dict(baseline),
        "volam": dict(volam),
        "improvements": {
            "accuracy_delta": accuracy_delta,
            "brier_score_delta": volam["brier_score"] - baseline["brier_score"],
            "ece_delta": volam["ece"] - baseline["ece"],
            "accuracy_improvement": (accuracy_delta / baseline["accuracy"]) if baseline["accuracy"] else 0.0,
            "brier_score_improvement": brier_reduction,
            "ece_improvement": ece_reduction,
        },
        "summary": {
            "meets_accuracy_target": accuracy_delta >= TARGET_ACCURACY_GAIN,
            "meets_brier_target": brier_reduction >= TARGET_BRIER_REDUCTION,
            "meets_ece_target": ece_reduction >= TARGET_ECE_REDUCTION,
        },
    }


async def evaluate(
    pipeline: Any,
    questions: List[EvaluationQuestion],
    mode: str = "baseline",
    k: int = 3,
    alpha: float = 0.6,
    beta: float = 0.3,
    gamma: float = 0.1,
    empathy_profile: str = "default",
) -> Dict[str, Any]:
    """
    Run every question through the pipeline and score calibration.

    A question whose retrieval fails is kept as a failed row with confidence
    0, accuracy 0, Brier 1 and nullness 1.
    """
    rows: List[EvaluationRow] = []
    for q in questions:
        request = RankRequest(
            query=q.query,
            mode=mode,
            k=k,
            alpha=alpha,
            beta=beta,
            gamma=gamma,
            empathy_profile=empathy_profile,
        )
        try:
            result = await pipeline.rank(request)
        except RetrievalError as e:
            logger.warning(f"[Calibration] Question {q.id} failed: {e}")
            rows.append(
                EvaluationRow(
                    question_id=q.id,
                    query=q.query,
                    predicted_answer="",
                    expected_answer=q.expected_answer,
                    confidence=0.0,
                    accuracy=0.0,
                    brier_score=1.0,
                    nullness=1.0,
                    failed=True,
                )
            )
            continue

        accuracy = keyword_accuracy(result.answer, q.expected_answer)
        top = result.evidence[0] if result.evidence else None
        rows.append(
            EvaluationRow(
                question_id=q.id,
                query=q.query,
                predicted_answer=result.answer,
                expected_answer=q.expected_answer,
                confidence=result.confidence,
                accuracy=accuracy,
                brier_score=brier_score(result.confidence, accuracy),
                nullness=result.nullness,
                top_score=top.score if top else 0.0,
                top_empathy_fit=top.empathy_fit if top else 0.0,
            )
        )

    metrics = compute_calibration_metrics(rows)
    logger.info(
        f"[Calibration] mode={mode} questions={len(rows)} accuracy={metrics['accuracy']:.3f} "
        f"brier={metrics['brier_score']:.3f} ece={metrics['ece']:.3f}"
    )
    return {"mode": mode, "metrics": metrics, "results": [asdict(r) for r in rows]}


def load_questions(data: List[Dict[str, Any]]) -> List[EvaluationQuestion]:
    questions = []
    for item in data or []:
        expected: Optional[str] = item.get("expected_answer") or item.get("expectedAnswer")
        questions.append(
            EvaluationQuestion(
                id=str(item["id"]),
                query=str(item["query"]),
                expected_answer=str(expected or ""),
                relevant_chunks=list(item.get("relevant_chunks") or item.get("relevantChunks") or []),
            )
        )
    return questions
