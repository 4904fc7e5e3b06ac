from __future__ import annotations  # Interview question generation module

import json
import logging
import re
from typing import List, Optional

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from llm_gateway import LlmGatewayError, ModelInvoker

logger = logging.getLogger(__name__)

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)
_EDGE_JUNK_RE = re.compile(r"^[`\"' ]+|[`\"' ]+$")
_LIST_PREFIX_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


class QuestionProfile(BaseModel):  # Inputs for question generation
    role: str
    interview_type: str = "Technical"
    duration: int = Field(default=10, ge=0)
    resume_summary: str = ""


def truncate_summary(summary: str, limit: int) -> str:
    if len(summary) <= limit:
        return summary
    return summary[:limit] + "\n\n[TRUNCATED]"


QUESTIONS_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert interviewer for {role} positions."),
        (
            "human",
            (
                "Based on the following resume summary, generate {count} interview questions "
                "for a {duration}-minute interview:\n"
                "- The first {resume_count} questions should be based on the candidate's resume and experience.\n"
                "- The next {role_count} questions should be based on the job role ({role}) "
                "and general expectations for this position.\n\n"
                "RESUME SUMMARY:\n{resume_summary}\n\n"
                "JOB ROLE: {role}\n"
                "INTERVIEW TYPE: {interview_type}\n"
                "DURATION: {duration} minutes\n\n"
                "Format your response as a JSON array of strings, with each string being a question. "
                "Example format: {example}"
            ),
        ),
    ]
)


def build_task(profile: QuestionProfile, count: int) -> List[BaseMessage]:  # Build task prompt for LLM
    resume_count = count // 2
    examples = [f"Resume Q{index + 1}?" for index in range(resume_count)]
    examples += [f"Role Q{index + 1}?" for index in range(count - resume_count)]
    return QUESTIONS_PROMPT.format_messages(
        role=profile.role,
        count=count,
        duration=profile.duration,
        resume_count=resume_count,
        role_count=count - resume_count,
        resume_summary=profile.resume_summary,
        interview_type=profile.interview_type,
        example=json.dumps(examples),
    )


def _question_lines(text: str) -> List[str]:
    lines = (_LIST_PREFIX_RE.sub("", line).strip().strip("\",'") for line in text.splitlines())
    return [line for line in lines if line.endswith("?")]


def parse_questions(reply: str) -> List[str]:
    """Pull questions from a reply: JSON array first, then lines ending in '?'."""

    text = (reply or "").strip()
    match = _ARRAY_RE.search(text)
    if not match:
        return _question_lines(text)
    candidate = _EDGE_JUNK_RE.sub("", match.group(0))
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return _question_lines(candidate)
    if not isinstance(parsed, list):
        return _question_lines(candidate)
    return [str(item).strip() for item in parsed if isinstance(item, (str, int, float)) and str(item).strip()]


def fallback_questions(profile: QuestionProfile) -> List[str]:  # Used when the model gives nothing usable
    if profile.interview_type == "Technical":
        return [
            f"Explain your experience with {profile.role}.",
            "Describe a technical challenge you faced and how you solved it.",
            "What are the key technologies mentioned in your resume?",
            f"How would you approach a new project as a {profile.role}?",
        ]
    if profile.interview_type == "HR":
        return [
            "Tell me about yourself.",
            "Where do you see yourself in five years?",
            "Why do you want to join this company?",
            "How do you handle stress and pressure?",
        ]
    return []


def pad_questions(questions: List[str], profile: QuestionProfile, count: int) -> List[str]:
    """Top up to ``count``: generic resume questions for the first half, then role questions."""

    result = list(questions)
    resume_generic = [
        "Can you elaborate on a key achievement from your resume?",
        "Describe a challenge you overcame in your previous experience.",
        "What skills from your resume do you consider most relevant?",
        "How has your experience prepared you for this role?",
    ]
    role_generic = [
        f"What do you think are the most important skills for a {profile.role}?",
        f"How would you approach a new project as a {profile.role}?",
        f"Describe your understanding of the responsibilities of a {profile.role}.",
        f"What makes you a good fit for the {profile.role} position?",
    ]
    resume_target = count // 2
    while len(result) < resume_target and resume_generic:
        result.append(resume_generic.pop(0))
    while len(result) < count and role_generic:
        result.append(role_generic.pop(0))
    return result[:count]


def generate_questions(
    profile: QuestionProfile,
    *,
    invoker: ModelInvoker,
    model_name: Optional[str] = None,
    count: int = 8,
    max_summary_chars: int = 2000,
) -> List[str]:  # Ask the model for questions; never raises on model failure
    bounded = profile.model_copy(update={"resume_summary": truncate_summary(profile.resume_summary, max_summary_chars)})
    questions: List[str] = []
    try:
        reply = invoker.invoke(model_name, build_task(bounded, count))
        questions = parse_questions(reply)
    except LlmGatewayError as exc:
        logger.error("Question generation could not reach the model: %s", exc)
    if not questions:
        logger.warning("No questions parsed from model reply; using %s fallback set", profile.interview_type)
        questions = fallback_questions(profile)
    return pad_questions(questions, profile, count)


__all__ = [
    "QUESTIONS_PROMPT",
    "QuestionProfile",
    "build_task",
    "fallback_questions",
    "generate_questions",
    "pad_questions",
    "parse_questions",
    "truncate_summary",
]
