"""Persistence helpers for completed interviews."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class InterviewPayload(BaseModel):
    user_id: str = Field(min_length=1)
    role: str
    interview_type: str
    duration: int = Field(ge=0)
    resume_summary: str = ""
    questions: List[str] = Field(default_factory=list)
    answers: List[str] = Field(default_factory=list)
    conversation: List[Dict[str, Any]] = Field(default_factory=list)
    feedback: Dict[str, Any]
    technical_knowledge: int = Field(ge=0, le=10)
    problem_solving: int = Field(ge=0, le=10)
    communication: int = Field(ge=0, le=10)
    total_score: int = Field(ge=0, le=30)
    feedback_file: Optional[str] = None


def insert_interview(*, db_path: Optional[str] = None, **data: Any) -> int:
    """Insert a completed interview with its feedback and return the row id."""

    payload = InterviewPayload(**data)
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO interviews
               (timestamp, user_id, role, interview_type, duration, resume_summary, questions_json,
                answers_json, conversation_json, feedback_json, technical_knowledge, problem_solving,
                communication, total_score, feedback_file)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                timestamp,
                payload.user_id,
                payload.role,
                payload.interview_type,
                payload.duration,
                payload.resume_summary,
                json.dumps(payload.questions),
                json.dumps(payload.answers),
                json.dumps(payload.conversation),
                json.dumps(payload.feedback),
                payload.technical_knowledge,
                payload.problem_solving,
                payload.communication,
                payload.total_score,
                payload.feedback_file,
            ),
        )
        return int(cur.lastrowid)
