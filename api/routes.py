"""FastAPI routes for feedback and question generation."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.schemas import (
    ConversationItem,
    FeedbackErrorResp,
    FeedbackReq,
    FeedbackResp,
    QuestionsReq,
    QuestionsResp,
)
from config.policy import build_policy, probe_local_accelerator
from config.settings import settings
from feedback import FeedbackGenerationFailed, FeedbackResult, InterviewContext, Transcript, generate_feedback
from llm_gateway import ModelInvoker
from questions import QuestionProfile, generate_questions
from storage.gateway import PersistenceGateway


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@lru_cache(maxsize=1)
def get_invoker() -> ModelInvoker:  # One invoker per process so local calls share a lock
    policy = build_policy(settings, accelerator_available=probe_local_accelerator())
    logger.info(
        "Model routing local=%s hosted=%s prefer_hosted=%s",
        policy.local.url,
        policy.hosted.url if policy.hosted else None,
        policy.prefer_hosted,
    )
    return ModelInvoker(policy)


def get_gateway() -> PersistenceGateway:
    return PersistenceGateway()


def _feedback_resp(result: FeedbackResult) -> FeedbackResp:
    record = result.record
    return FeedbackResp(
        aiFeedback=record.detailed_analysis,
        detailedAnalysis=record.detailed_analysis,
        strengths=record.strengths,
        improvements=record.improvements,
        recommendations=record.recommendations,
        scores=record.scores(),
        totalScore=record.total_score,
        conversation=[ConversationItem(**turn.model_dump()) for turn in result.conversation],
    )


@router.post("/feedback", response_model=FeedbackResp, responses={500: {"model": FeedbackErrorResp}})
def feedback(
    req: FeedbackReq,
    invoker: ModelInvoker = Depends(get_invoker),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Union[FeedbackResp, JSONResponse]:
    context = InterviewContext(
        role=req.interviewForm.role,
        interview_type=req.interviewForm.interviewType,
        duration=req.interviewForm.duration,
    )
    transcript = Transcript.from_lists(req.questions, req.userAnswers)
    try:
        result = generate_feedback(
            context,
            transcript,
            invoker=invoker,
            model_name=settings.MODEL_NAME,
            gateway=gateway,
            caller_id=req.caller_id,
            resume_summary=req.resumeSummary or "",
            max_repair_rounds=settings.MAX_REPAIR_ROUNDS,
            max_items=settings.MAX_LIST_ITEMS,
        )
    except FeedbackGenerationFailed as exc:
        body = FeedbackErrorResp(error="Failed to generate feedback", aiFeedback=exc.safe_message)
        return JSONResponse(status_code=500, content=body.model_dump())
    return _feedback_resp(result)


@router.post("/generateQuestions", response_model=QuestionsResp)
def generate_questions_route(req: QuestionsReq, invoker: ModelInvoker = Depends(get_invoker)) -> QuestionsResp:
    profile = QuestionProfile(
        role=req.role,
        interview_type=req.interviewType,
        duration=req.duration,
        resume_summary=req.resumeSummary or "",
    )
    questions = generate_questions(
        profile,
        invoker=invoker,
        model_name=settings.MODEL_NAME,
        count=settings.QUESTION_COUNT,
        max_summary_chars=settings.MAX_SUMMARY_CHARS,
    )
    return QuestionsResp(questions=questions)
