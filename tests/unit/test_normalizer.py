from __future__ import annotations

import pytest
from pydantic import ValidationError

from feedback.models import FeedbackRecord, HeuristicScores, StructuredFeedback
from feedback.normalizer import DEFAULT_ANALYSIS, ResultNormalizer, clamp_score, dedupe, round_half_up

HEURISTICS = HeuristicScores(technical_knowledge=6.4, problem_solving=4.5, communication=7.6)


def test_round_half_up_and_clamp():
    assert round_half_up(4.5) == 5
    assert round_half_up(4.49) == 4
    assert round_half_up(0.5) == 1
    assert clamp_score(14) == 10
    assert clamp_score(-3) == 0
    assert clamp_score(7.5) == 8


def test_dedupe_trims_and_caps():
    items = [" Good ", "Good", "", "   ", "Clear", 3, "Clear"]
    assert dedupe(items) == ["Good", "Clear", "3"]
    assert dedupe([f"item {n}" for n in range(20)], limit=10) == [f"item {n}" for n in range(10)]
    assert dedupe(None) == []


def test_model_scores_win_and_total_is_recomputed():
    structured = StructuredFeedback(
        strengths=["Clear communicator", "Clear communicator"],
        technicalKnowledge=8,
        problemSolving=7,
        communication=9,
        totalScore=30,
        detailedAnalysis="  Solid answers.  ",
    )
    record = ResultNormalizer().normalize(structured, HEURISTICS)

    assert record.strengths == ["Clear communicator"]
    assert (record.technical_knowledge, record.problem_solving, record.communication) == (8, 7, 9)
    assert record.total_score == 24
    assert record.detailed_analysis == "Solid answers."
    assert record.source == "model"


def test_missing_model_scores_use_heuristics():
    structured = StructuredFeedback(strengths=["Good"], communication=9)
    record = ResultNormalizer().normalize(structured, HEURISTICS)

    assert record.technical_knowledge == 6
    assert record.problem_solving == 5
    assert record.communication == 9
    assert record.total_score == 20


def test_model_zero_is_accepted_negative_falls_back():
    structured = StructuredFeedback(technicalKnowledge=0, problemSolving=-2, communication=12)
    record = ResultNormalizer().normalize(structured, HEURISTICS)

    assert record.technical_knowledge == 0
    assert record.problem_solving == 5
    assert record.communication == 10


def test_empty_structured_uses_default_analysis():
    record = ResultNormalizer().normalize(StructuredFeedback(), HEURISTICS)

    assert record.source == "heuristic"
    assert record.detailed_analysis == DEFAULT_ANALYSIS
    assert record.strengths == [] and record.improvements == [] and record.recommendations == []
    assert record.total_score == 6 + 5 + 8


def test_all_zero_heuristics_give_zero_total():
    zeros = HeuristicScores(technical_knowledge=0, problem_solving=0, communication=0)
    record = ResultNormalizer().normalize(None, zeros)
    assert record.total_score == 0
    assert record.scores() == {"technicalKnowledge": 0, "problemSolving": 0, "communication": 0}


def test_list_cap_is_configurable():
    structured = StructuredFeedback(improvements=[f"tip {n}" for n in range(8)])
    record = ResultNormalizer(max_items=3).normalize(structured, HEURISTICS)
    assert record.improvements == ["tip 0", "tip 1", "tip 2"]


def test_normalize_is_idempotent():
    structured = StructuredFeedback(
        strengths=[" a ", "a", "b"],
        improvements=["x"],
        technicalKnowledge=7.5,
        problemSolving=3.2,
        detailedAnalysis="ok",
    )
    normalizer = ResultNormalizer()
    first = normalizer.normalize(structured, HEURISTICS)
    second = normalizer.normalize(first.as_structured(), HEURISTICS)

    assert second == first


def test_record_rejects_inconsistent_total():
    with pytest.raises(ValidationError):
        FeedbackRecord(technical_knowledge=5, problem_solving=5, communication=5, total_score=14)


def test_record_rejects_out_of_range_scores():
    with pytest.raises(ValidationError):
        FeedbackRecord(technical_knowledge=11, problem_solving=0, communication=0, total_score=11)
