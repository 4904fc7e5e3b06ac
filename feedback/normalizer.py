from __future__ import annotations  # Merge model output with heuristic scores

import math
from typing import Iterable, List, Optional

from .models import FeedbackRecord, HeuristicScores, StructuredFeedback

DEFAULT_ANALYSIS = (
    "Detailed AI analysis was unavailable for this interview. "
    "Scores were estimated from the length, relevance and coverage of your answers."
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float, upper: int = 10) -> int:
    return max(0, min(upper, round_half_up(value)))


def pick_score(model_value: Optional[float], heuristic_value: float) -> int:  # Model value wins when present and >= 0
    if model_value is not None and model_value >= 0:
        return clamp_score(model_value)
    return clamp_score(heuristic_value)


def dedupe(items: Optional[Iterable[object]], limit: int = 10) -> List[str]:
    """Trim, drop empties, keep first occurrence, cap at ``limit``."""

    seen: set[str] = set()
    result: List[str] = []
    for item in items or []:
        text = str(item).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        result.append(text)
        if len(result) >= limit:
            break
    return result


class ResultNormalizer:  # Builds the final FeedbackRecord
    def __init__(self, *, max_items: int = 10) -> None:
        self.max_items = max_items

    def normalize(self, structured: Optional[StructuredFeedback], heuristics: HeuristicScores) -> FeedbackRecord:
        structured = structured or StructuredFeedback()
        technical = pick_score(structured.technicalKnowledge, heuristics.technical_knowledge)
        solving = pick_score(structured.problemSolving, heuristics.problem_solving)
        communication = pick_score(structured.communication, heuristics.communication)

        if structured.is_empty():
            analysis = DEFAULT_ANALYSIS
        else:
            analysis = (structured.detailedAnalysis or "").strip()

        return FeedbackRecord(
            strengths=dedupe(structured.strengths, self.max_items),
            improvements=dedupe(structured.improvements, self.max_items),
            recommendations=dedupe(structured.recommendations, self.max_items),
            technical_knowledge=technical,
            problem_solving=solving,
            communication=communication,
            total_score=technical + solving + communication,
            detailed_analysis=analysis,
            source="heuristic" if structured.is_empty() else "model",
        )


__all__ = ["DEFAULT_ANALYSIS", "ResultNormalizer", "clamp_score", "dedupe", "pick_score", "round_half_up"]
