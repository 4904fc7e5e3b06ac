from __future__ import annotations  # Prompt templates for feedback generation

from textwrap import dedent
from typing import List, Type

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from .models import InterviewContext, Transcript

FEEDBACK_KEYS = (
    "strengths (array of short strings), improvements (array of short strings), "
    "recommendations (array of short strings), technicalKnowledge (integer 0-10), "
    "problemSolving (integer 0-10), communication (integer 0-10), totalScore (integer 0-30), "
    "detailedAnalysis (string)"
)

FEEDBACK_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            dedent(
                """
                You are an expert interview coach. Analyze the candidate's answers and provide constructive feedback.
                NOTE: Ignore the resume and base all feedback and scoring ONLY on the candidate's answers.
                If the candidate skipped questions or provided very short answers, reflect that in the scores.
                """
            ).strip(),
        ),
        (
            "human",
            (
                "JOB ROLE: {role}\n"
                "INTERVIEW TYPE: {interview_type}\n\n"
                "QUESTIONS AND ANSWERS:\n{pairs}\n\n"
                "Return a single JSON object only, exactly with these keys: {keys}.\n\n"
                "Keep arrays short (3-6 concise bullets). Do not include any duplicate sections "
                "or repeat the same content twice."
            ),
        ),
    ]
)

REPAIR_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            (
                "You previously generated this output: '''\n{previous_output}\n'''\n\n"
                "Please convert that output into a single VALID JSON object with these keys exactly: {keys}. "
                "Return only the JSON object and nothing else."
            ),
        ),
    ]
)


def format_pairs(transcript: Transcript) -> str:
    return "\n\n".join(
        f"Q: {item.question}\nA: {item.answer or 'No answer provided'}" for item in transcript.items
    )


def build_feedback_prompt(context: InterviewContext, transcript: Transcript) -> List[BaseMessage]:  # Ask for scored feedback on the answers
    return FEEDBACK_PROMPT.format_messages(
        role=context.role,
        interview_type=context.interview_type,
        pairs=format_pairs(transcript),
        keys=FEEDBACK_KEYS,
    )


def describe_keys(schema: Type[BaseModel]) -> str:  # Key list used in repair prompts
    return FEEDBACK_KEYS if schema.__name__ == "StructuredFeedback" else ", ".join(schema.model_fields)


def build_repair_prompt(previous_output: str, schema: Type[BaseModel]) -> List[BaseMessage]:  # Ask the model to restate its own output as JSON
    return REPAIR_PROMPT.format_messages(previous_output=previous_output, keys=describe_keys(schema))


__all__ = [
    "FEEDBACK_KEYS",
    "FEEDBACK_PROMPT",
    "REPAIR_PROMPT",
    "build_feedback_prompt",
    "build_repair_prompt",
    "describe_keys",
    "format_pairs",
]
