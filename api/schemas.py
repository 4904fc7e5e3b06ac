"""Pydantic schemas for the feedback HTTP API."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class InterviewForm(BaseModel):
    role: str
    interviewType: str = "Technical"
    duration: int = Field(default=0, ge=0)


class FeedbackReq(BaseModel):
    resumeSummary: Optional[str] = None
    interviewForm: InterviewForm
    questions: List[str] = Field(default_factory=list)
    userAnswers: List[Optional[str]] = Field(default_factory=list)
    userId: Optional[str] = None
    uid: Optional[str] = None

    @field_validator("userAnswers", mode="before")
    @classmethod
    def _answers_or_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def caller_id(self) -> Optional[str]:
        return self.userId or self.uid or None


class ConversationItem(BaseModel):
    question: str
    answer: str
    answered: bool


class FeedbackResp(BaseModel):
    aiFeedback: str
    detailedAnalysis: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    scores: Dict[str, int] = Field(default_factory=dict)
    totalScore: int = 0
    conversation: List[ConversationItem] = Field(default_factory=list)


class FeedbackErrorResp(BaseModel):
    error: str
    aiFeedback: str


class QuestionsReq(BaseModel):
    resumeSummary: Optional[str] = None
    role: str
    interviewType: str = "Technical"
    duration: int = Field(default=10, ge=0)


class QuestionsResp(BaseModel):
    questions: List[str]
