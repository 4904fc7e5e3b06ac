from __future__ import annotations  # Model-independent scoring from answer text

import re
from typing import FrozenSet, List

from .models import HeuristicScores, Transcript, TranscriptFeatures

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "if", "in", "on", "at", "for", "of", "to", "with",
        "by", "is", "are", "was", "were", "be", "as", "that", "this", "it", "from",
    }
)

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")
_SKIP_RE = re.compile(r"^(skipped|no answer)", re.IGNORECASE)
_TECH_TERMS_RE = re.compile(
    r"react|node|java|spring|python|sql|api|system|architecture|algorithm|data|docker|kubernetes",
    re.IGNORECASE,
)
_BEHAVIOR_TERMS_RE = re.compile(
    r"team|collaborat|lead|communicat|resolve|conflict|adapt|learn|improv|feedback",
    re.IGNORECASE,
)

TECH_LENGTH_FULL = 300.0
SOLVING_LENGTH_FULL = 180.0
COMM_LENGTH_FULL = 160.0


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def tokenize(text: str) -> List[str]:  # Lower-case alphanumeric tokens without stop words
    return [token for token in _TOKEN_SPLIT_RE.split((text or "").lower()) if token and token not in STOP_WORDS]


def is_skip(answer: str) -> bool:
    return bool(_SKIP_RE.match(answer.strip()))


def is_substantive(answer: str) -> bool:  # Non-blank and not a skip marker
    return bool(answer and answer.strip()) and not is_skip(answer)


def relevance(question: str, answer: str) -> float:
    """Share of the question's vocabulary echoed in the answer, scaled to [0, 1]."""

    if not is_substantive(answer):
        return 0.0
    question_tokens = set(tokenize(question))
    answer_tokens = tokenize(answer)
    if not question_tokens or not answer_tokens:
        return 0.0
    overlap = sum(1 for token in answer_tokens if token in question_tokens)
    return clamp01(2.0 * overlap / max(3, len(question_tokens)))


class HeuristicScorer:
    """Deterministic category scores computed from the transcript alone.

    Long answers only score well when they are also on topic: the relevance
    average carries half or more of the weight in the technical and
    problem-solving categories.
    """

    def features(self, transcript: Transcript) -> TranscriptFeatures:
        items = transcript.items
        if not items:
            return TranscriptFeatures()
        per_item = [relevance(item.question, item.answer) for item in items]
        # Skip markers count as answered; only relevance zeroes them.
        answered = [item.answer for item in items if item.answer and item.answer.strip()]
        joined = " ".join(answered)
        return TranscriptFeatures(
            relevance=per_item,
            rel_avg=sum(per_item) / len(per_item),
            answered_ratio=len(answered) / len(items),
            answered_count=len(answered),
            avg_length=(sum(len(answer) for answer in answered) / len(answered)) if answered else 0.0,
            has_technical_terms=bool(_TECH_TERMS_RE.search(joined)),
            has_behavioral_terms=bool(_BEHAVIOR_TERMS_RE.search(joined)),
        )

    def score(self, transcript: Transcript) -> HeuristicScores:
        feats = self.features(transcript)
        if feats.answered_count == 0:
            return HeuristicScores(technical_knowledge=0.0, problem_solving=0.0, communication=0.0)

        tech_lexical = clamp01(
            (0.8 if feats.has_technical_terms else 0.4) + 0.2 * clamp01(feats.avg_length / TECH_LENGTH_FULL)
        )
        length_score = clamp01(feats.avg_length / SOLVING_LENGTH_FULL)
        comm_length = clamp01(0.2 + 0.8 * clamp01(feats.avg_length / COMM_LENGTH_FULL))
        rel_avg = clamp01(feats.rel_avg)
        answered_ratio = clamp01(feats.answered_ratio)

        return HeuristicScores(
            technical_knowledge=10.0 * clamp01(0.5 * tech_lexical + 0.5 * rel_avg),
            problem_solving=10.0 * clamp01(0.4 * length_score + 0.6 * rel_avg),
            communication=10.0 * clamp01(0.6 * comm_length + 0.4 * answered_ratio),
        )


__all__ = [
    "HeuristicScorer",
    "STOP_WORDS",
    "clamp01",
    "is_skip",
    "is_substantive",
    "relevance",
    "tokenize",
]
