"""
Offline calibration evaluation.
"""

from .calibration import (
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

__all__ = [
    "EvaluationQuestion",
    "EvaluationRow",
    "brier_score",
    "compare_reports",
    "compute_calibration_metrics",
    "evaluate",
    "expected_calibration_error",
    "keyword_accuracy",
    "load_questions",
]
