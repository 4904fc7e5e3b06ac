from __future__ import annotations  # Re-export feedback public API

from .extraction import ResponseExtractor, parse_structured, repair_text  # noqa: F401
from .generator import APOLOGY_MESSAGE, FeedbackGenerationFailed, generate_feedback  # noqa: F401
from .heuristics import HeuristicScorer  # noqa: F401
from .models import (  # noqa: F401
    ConversationTurn,
    FeedbackRecord,
    FeedbackResult,
    HeuristicScores,
    InterviewContext,
    PersistenceReceipt,
    QAItem,
    StructuredFeedback,
    Transcript,
    TranscriptFeatures,
    build_conversation,
)
from .normalizer import ResultNormalizer  # noqa: F401

__all__ = [
    "APOLOGY_MESSAGE",
    "ConversationTurn",
    "FeedbackGenerationFailed",
    "FeedbackRecord",
    "FeedbackResult",
    "HeuristicScorer",
    "HeuristicScores",
    "InterviewContext",
    "PersistenceReceipt",
    "QAItem",
    "ResponseExtractor",
    "ResultNormalizer",
    "StructuredFeedback",
    "Transcript",
    "TranscriptFeatures",
    "build_conversation",
    "generate_feedback",
    "parse_structured",
    "repair_text",
]
