from __future__ import annotations  # Best-effort persistence of feedback results

import json
import logging
import re
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.settings import settings
from feedback.models import ConversationTurn, FeedbackRecord, InterviewContext, PersistenceReceipt, Transcript

from .interviews import insert_interview

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def feedback_payload(
    record: FeedbackRecord,
    context: InterviewContext,
    conversation: List[ConversationTurn],
    caller_id: Optional[str],
    resume_summary: str,
) -> Dict[str, Any]:  # Recovery copy written next to the primary store
    return {
        "userId": caller_id,
        "role": context.role,
        "interviewType": context.interview_type,
        "duration": context.duration,
        "resumeSummary": resume_summary,
        "conversation": [turn.model_dump() for turn in conversation],
        "feedback": record.model_dump(),
    }


class PersistenceGateway:  # Side-channel file plus primary store; failures are logged only
    def __init__(self, feedback_dir: Optional[Path] = None, *, db_path: Optional[str] = None) -> None:
        self._feedback_dir = feedback_dir
        self._db_path = db_path

    @property
    def feedback_dir(self) -> Path:
        return self._feedback_dir or Path(settings.FEEDBACK_DIR)

    def persist(
        self,
        record: FeedbackRecord,
        context: InterviewContext,
        transcript: Transcript,
        conversation: List[ConversationTurn],
        *,
        caller_id: Optional[str] = None,
        resume_summary: str = "",
    ) -> PersistenceReceipt:
        payload = feedback_payload(record, context, conversation, caller_id, resume_summary)
        file_path = self._write_side_channel(payload, caller_id)
        record_id = None
        if caller_id:
            record_id = self._write_primary(record, context, transcript, payload, caller_id, file_path)
        return PersistenceReceipt(file_path=str(file_path) if file_path else None, record_id=record_id)

    def _write_side_channel(self, payload: Dict[str, Any], caller_id: Optional[str]) -> Optional[Path]:
        name = _UNSAFE_NAME_RE.sub("_", caller_id or "anon") or "anon"
        path = self.feedback_dir / f"{name}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.json"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not write feedback file %s: %s", path, exc)
            return None
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected failure writing feedback file %s", path)
            return None
        return path

    def _write_primary(
        self,
        record: FeedbackRecord,
        context: InterviewContext,
        transcript: Transcript,
        payload: Dict[str, Any],
        caller_id: str,
        file_path: Optional[Path],
    ) -> Optional[int]:
        data = dict(
            user_id=caller_id,
            role=context.role,
            interview_type=context.interview_type,
            duration=context.duration,
            resume_summary=payload["resumeSummary"] or "",
            questions=transcript.questions,
            answers=transcript.answers,
            conversation=payload["conversation"],
            feedback=payload["feedback"],
            technical_knowledge=record.technical_knowledge,
            problem_solving=record.problem_solving,
            communication=record.communication,
            total_score=record.total_score,
            feedback_file=str(file_path) if file_path else None,
        )
        try:
            return insert_interview(db_path=self._db_path, **data)
        except (sqlite3.Error, ValidationError) as exc:
            logger.error("Error storing interview for caller=%s: %s", caller_id, exc)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected failure storing interview for caller=%s", caller_id)
        return None


__all__ = ["PersistenceGateway", "feedback_payload"]
