import pytest

from volam.core.types import Evidence
from volam.services.answer.composer import AnswerComposer, confidence_band, evidence_confidence, extract_quoted_text
from volam.services.nullness.tracker import NullnessTracker


def _ev(ev_id, score, nullness, content="Some evidence text. With a second sentence."):
    return Evidence(
        id=ev_id,
        content=content,
        source=f"{ev_id}.md",
        cosine_score=score,
        nullness=nullness,
        score=score,
    )


def test_empty_evidence_gives_zero_confidence():
    composition = AnswerComposer().compose("What is dark matter?", [], "volam")

    assert composition.confidence == 0.0
    assert composition.citations == []
    assert '"What is dark matter?"' in composition.answer
    assert composition.rationale == "No evidence was found matching the query criteria."
    assert composition.metadata["synthesis_method"] == "empty-response"


def test_quoted_text_uses_first_sentence():
    assert extract_quoted_text("Short sentence. More text follows!") == "Short sentence"
    assert extract_quoted_text("Is it? Yes.") == "Is it"
    assert extract_quoted_text("No punctuation here") == "No punctuation here"


def test_quoted_text_truncates_long_content():
    content = "x" * 150
    quoted = extract_quoted_text(content)

    assert quoted == "x" * 97 + "..."
    assert len(quoted) == 100


def test_quoted_text_short_content_with_empty_first_sentence():
    assert extract_quoted_text("...tail end") == "...tail end"


def test_evidence_confidence_is_score_weighted():
    evidence = [_ev("a", 0.8, 0.2), _ev("b", 0.4, 0.6)]
    assert evidence_confidence(evidence) == pytest.approx((0.8 * 0.8 + 0.4 * 0.4) / 1.2)


def test_evidence_confidence_zero_total_score():
    assert evidence_confidence([_ev("a", 0.0, 0.3)]) == 0.0


def test_confidence_uses_concept_nullness():
    tracker = NullnessTracker()
    tracker.record("climate_change_impacts", 0.2, confidence=0.5, evidence_count=2)
    evidence = [_ev("a", 0.8, 0.2), _ev("b", 0.4, 0.6)]

    tracked = AnswerComposer(tracker).compose("climate change impacts", evidence, "volam")
    untracked = AnswerComposer(tracker).compose("solar power costs", evidence, "volam")

    base = (0.8 * 0.8 + 0.4 * 0.4) / 1.2
    assert tracked.confidence == pytest.approx(0.8 * base)
    assert untracked.confidence == pytest.approx(0.5 * base)


def test_confidence_stays_in_bounds():
    composition = AnswerComposer().compose("q", [_ev("a", 1.0, 0.0)], "baseline")
    assert 0.0 <= composition.confidence <= 1.0


def test_citations_and_sources():
    evidence = [_ev("a", 0.8, 0.2, content="Emissions rose in 2023. Details follow."), _ev("b", 0.4, 0.6)]
    composition = AnswerComposer().compose("emissions trend", evidence, "baseline")

    assert [c.index for c in composition.citations] == [1, 2]
    assert composition.citations[0].quoted_text == "Emissions rose in 2023"
    assert composition.answer.startswith('Based on the available evidence, here\'s what I found regarding "emissions trend":')
    assert 'According to the evidence, "Emissions rose in 2023" [1]' in composition.answer
    assert "**Sources:**" in composition.answer
    assert "[1] a.md (Score: 0.800)" in composition.answer
    assert composition.metadata["evidence_count"] == 2
    assert composition.metadata["synthesis_method"] == "template-based"


def test_rationale_mentions_mode_and_band():
    evidence = [_ev("a", 0.8, 0.2), _ev("b", 0.4, 0.6)]

    volam = AnswerComposer().compose("q", evidence, "volam")
    baseline = AnswerComposer().compose("q", evidence[:1], "baseline")

    assert "2 pieces of evidence" in volam.rationale
    assert "VOLaM algorithm" in volam.rationale
    assert "low confidence score" in volam.rationale
    assert "1 piece of evidence" in baseline.rationale
    assert "baseline algorithm used cosine similarity" in baseline.rationale


@pytest.mark.parametrize("value,band", [(0.95, "high"), (0.8, "high"), (0.7, "moderate"), (0.6, "moderate"), (0.1, "low")])
def test_confidence_band(value, band):
    assert confidence_band(value) == band
