from __future__ import annotations  # "Generate feedback" orchestration

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from llm_gateway import ModelInvoker, ModelUnavailable
from observability import log_event, new_trace_id, span

from .extraction import ResponseExtractor
from .heuristics import HeuristicScorer
from .models import (
    FeedbackResult,
    InterviewContext,
    PersistenceReceipt,
    StructuredFeedback,
    Transcript,
    build_conversation,
)
from .normalizer import ResultNormalizer
from .prompts import build_feedback_prompt

if TYPE_CHECKING:
    from storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "Thank you for your interview. We're experiencing technical difficulties generating "
    "detailed feedback. Please try again later."
)


class FeedbackGenerationFailed(RuntimeError):  # Model entirely unreachable; carries a client-safe message
    def __init__(self, safe_message: str = APOLOGY_MESSAGE) -> None:
        super().__init__("Feedback generation failed: model unavailable")
        self.safe_message = safe_message


def generate_feedback(
    context: InterviewContext,
    transcript: Transcript,
    *,
    invoker: ModelInvoker,
    model_name: Optional[str] = None,
    gateway: Optional["PersistenceGateway"] = None,
    caller_id: Optional[str] = None,
    resume_summary: str = "",
    max_repair_rounds: int = 2,
    max_items: int = 10,
) -> FeedbackResult:
    """Critique a transcript with the model and return normalized, persisted feedback.

    Only total model unavailability is raised (as ``FeedbackGenerationFailed``);
    unusable model output falls back to heuristic scores and persistence
    problems are logged.
    """

    trace_id = new_trace_id()
    events: List[Dict[str, Any]] = []
    log_event(
        "feedback.start",
        trace_id,
        caller=caller_id or "anon",
        role=context.role,
        questions=len(transcript),
    )

    prompt = build_feedback_prompt(context, transcript)
    try:
        with span(events, "model"):
            raw_reply = invoker.invoke(model_name, prompt)
    except ModelUnavailable as exc:
        logger.error("Feedback generation error trace=%s: %s", trace_id, exc)
        log_event("feedback.failed", trace_id, outcome="model_unavailable")
        raise FeedbackGenerationFailed() from exc

    extractor = ResponseExtractor(invoker, model_name, max_repair_rounds=max_repair_rounds)
    with span(events, "extract"):
        structured: StructuredFeedback = extractor.extract(raw_reply.strip(), StructuredFeedback)
    log_event(
        "feedback.extracted",
        trace_id,
        outcome="empty" if structured.is_empty() else "parsed",
        repair_rounds=extractor.last_repair_rounds,
    )

    heuristics = HeuristicScorer().score(transcript)
    record = ResultNormalizer(max_items=max_items).normalize(structured, heuristics)
    conversation = build_conversation(transcript)

    reference = PersistenceReceipt()
    if gateway is not None:
        with span(events, "persist"):
            reference = gateway.persist(
                record,
                context,
                transcript,
                conversation,
                caller_id=caller_id,
                resume_summary=resume_summary,
            )

    log_event(
        "feedback.done",
        trace_id,
        source=record.source,
        total_score=record.total_score,
        ms=sum(event["ms"] for event in events),
        spans=events,
    )
    return FeedbackResult(record=record, conversation=conversation, reference=reference)


__all__ = ["APOLOGY_MESSAGE", "FeedbackGenerationFailed", "generate_feedback"]
