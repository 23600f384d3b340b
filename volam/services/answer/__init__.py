from .composer import AnswerComposer, evidence_confidence, extract_quoted_text

__all__ = [
    "AnswerComposer",
    "evidence_confidence",
    "extract_quoted_text",
]
