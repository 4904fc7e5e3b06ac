from __future__ import annotations  # Feedback pipeline data models

import math
from typing import Any, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QAItem(BaseModel):  # One question with the candidate's answer ("" when absent)
    question: str
    answer: str = ""

    @field_validator("question", "answer", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class Transcript(BaseModel):  # Ordered question/answer pairs for one interview
    items: List[QAItem] = Field(default_factory=list)

    @classmethod
    def from_lists(cls, questions: Sequence[Any], answers: Optional[Sequence[Any]] = None) -> "Transcript":
        answers = list(answers or [])
        items = [
            QAItem(question=question, answer=answers[index] if index < len(answers) else "")
            for index, question in enumerate(questions)
        ]
        return cls(items=items)

    @property
    def questions(self) -> List[str]:
        return [item.question for item in self.items]

    @property
    def answers(self) -> List[str]:
        return [item.answer for item in self.items]

    def __len__(self) -> int:
        return len(self.items)


class InterviewContext(BaseModel):  # Immutable interview settings for one feedback request
    model_config = ConfigDict(frozen=True)

    role: str
    interview_type: str = "Technical"
    duration: int = Field(default=0, ge=0)


class StructuredFeedback(BaseModel):
    """Feedback object the model is asked to emit.

    Field names follow the JSON contract given to the model. Every field is
    optional so partial replies survive validation and get backfilled later.
    """

    model_config = ConfigDict(extra="ignore")

    strengths: Optional[List[str]] = None
    improvements: Optional[List[str]] = None
    recommendations: Optional[List[str]] = None
    technicalKnowledge: Optional[float] = None
    problemSolving: Optional[float] = None
    communication: Optional[float] = None
    totalScore: Optional[float] = None
    detailedAnalysis: Optional[str] = None

    @field_validator("strengths", "improvements", "recommendations", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Optional[List[str]]:  # Accept a lone string or mixed items
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [item if isinstance(item, str) else str(item) for item in value if item is not None]
        return None

    @field_validator("technicalKnowledge", "problemSolving", "communication", "totalScore", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Optional[float]:  # Non-numeric scores become absent
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value.strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @field_validator("detailedAnalysis", mode="before")
    @classmethod
    def _coerce_analysis(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return " ".join(str(item) for item in value)
        return str(value)

    def is_empty(self) -> bool:
        return not self.model_fields_set


class HeuristicScores(BaseModel):  # Text-derived category scores before rounding
    technical_knowledge: float = Field(ge=0.0, le=10.0)
    problem_solving: float = Field(ge=0.0, le=10.0)
    communication: float = Field(ge=0.0, le=10.0)


class TranscriptFeatures(BaseModel):  # Intermediate features behind the heuristic scores
    relevance: List[float] = Field(default_factory=list)
    rel_avg: float = 0.0
    answered_ratio: float = 0.0
    answered_count: int = 0
    avg_length: float = 0.0
    has_technical_terms: bool = False
    has_behavioral_terms: bool = False


class FeedbackRecord(BaseModel):  # Final normalized feedback
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    technical_knowledge: int = Field(ge=0, le=10)
    problem_solving: int = Field(ge=0, le=10)
    communication: int = Field(ge=0, le=10)
    total_score: int = Field(ge=0, le=30)
    detailed_analysis: str = ""
    source: Literal["model", "heuristic"] = "model"

    @model_validator(mode="after")
    def _check_total(self) -> "FeedbackRecord":
        expected = self.technical_knowledge + self.problem_solving + self.communication
        if self.total_score != expected:
            raise ValueError(f"total_score {self.total_score} must equal category sum {expected}")
        return self

    def as_structured(self) -> StructuredFeedback:  # Re-enter the normalizer with this record
        return StructuredFeedback(
            strengths=list(self.strengths),
            improvements=list(self.improvements),
            recommendations=list(self.recommendations),
            technicalKnowledge=self.technical_knowledge,
            problemSolving=self.problem_solving,
            communication=self.communication,
            detailedAnalysis=self.detailed_analysis,
        )

    def scores(self) -> dict[str, int]:
        return {
            "technicalKnowledge": self.technical_knowledge,
            "problemSolving": self.problem_solving,
            "communication": self.communication,
        }


class ConversationTurn(BaseModel):  # Read-only transcript entry with answered flag
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    answered: bool


class PersistenceReceipt(BaseModel):  # Where a feedback result was stored, if anywhere
    file_path: Optional[str] = None
    record_id: Optional[int] = None


class FeedbackResult(BaseModel):  # Output of one feedback generation
    record: FeedbackRecord
    conversation: List[ConversationTurn] = Field(default_factory=list)
    reference: PersistenceReceipt = Field(default_factory=PersistenceReceipt)


def build_conversation(transcript: Transcript) -> List[ConversationTurn]:  # Derive the conversation view once
    return [
        ConversationTurn(question=item.question, answer=item.answer, answered=len(item.answer) > 0)
        for item in transcript.items
    ]


__all__ = [
    "QAItem",
    "Transcript",
    "InterviewContext",
    "StructuredFeedback",
    "HeuristicScores",
    "TranscriptFeatures",
    "FeedbackRecord",
    "ConversationTurn",
    "PersistenceReceipt",
    "FeedbackResult",
    "build_conversation",
]
