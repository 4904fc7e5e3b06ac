"""Tests for the SQLite migration and feedback persistence."""
from __future__ import annotations

import json
import os
import sqlite3

import pytest

from feedback.models import FeedbackRecord, InterviewContext, Transcript, build_conversation
from storage.gateway import PersistenceGateway, feedback_payload
from storage.interviews import insert_interview
from storage.migrate import migrate

CONTEXT = InterviewContext(role="Data Analyst", interview_type="HR", duration=10)
TRANSCRIPT = Transcript.from_lists(["Why this role?", "Strengths?"], ["I like data.", ""])
RECORD = FeedbackRecord(
    strengths=["Motivated"],
    improvements=["Answer every question"],
    technical_knowledge=4,
    problem_solving=3,
    communication=6,
    total_score=13,
    detailed_analysis="Short but relevant.",
)


def _row_count(db_path: str) -> int:
    with sqlite3.connect(db_path) as conn:
        return conn.execute("SELECT COUNT(*) FROM interviews").fetchone()[0]


def test_migrate_is_repeatable(tmp_path):
    db_path = str(tmp_path / "nested" / "store.db")
    migrate(db_path)
    migrate(db_path)
    assert os.path.exists(db_path)
    assert _row_count(db_path) == 0


def test_insert_interview_round_trips_json_columns(tmp_db):
    row_id = insert_interview(
        user_id="u1",
        role="Data Analyst",
        interview_type="HR",
        duration=10,
        questions=["Q1?"],
        answers=["A1"],
        conversation=[{"question": "Q1?", "answer": "A1", "answered": True}],
        feedback={"total_score": 13},
        technical_knowledge=4,
        problem_solving=3,
        communication=6,
        total_score=13,
    )
    assert row_id > 0

    with sqlite3.connect(tmp_db) as conn:
        row = conn.execute(
            "SELECT user_id, questions_json, feedback_json, timestamp FROM interviews WHERE id=?", (row_id,)
        ).fetchone()
    assert row[0] == "u1"
    assert json.loads(row[1]) == ["Q1?"]
    assert json.loads(row[2]) == {"total_score": 13}
    assert row[3].endswith("+00:00")


def test_invalid_payloads_raise(tmp_db):
    with pytest.raises(Exception):
        insert_interview(
            user_id="",
            role="r",
            interview_type="HR",
            duration=1,
            feedback={},
            technical_knowledge=1,
            problem_solving=1,
            communication=1,
            total_score=3,
        )

    with pytest.raises(Exception):
        insert_interview(  # type: ignore[arg-type]
            user_id="u1",
            role="r",
            interview_type="HR",
            duration=1,
            feedback={},
            technical_knowledge=11,
            problem_solving=1,
            communication=1,
            total_score=13,
        )


def test_feedback_payload_shape():
    payload = feedback_payload(RECORD, CONTEXT, build_conversation(TRANSCRIPT), None, "")
    assert payload["userId"] is None
    assert payload["interviewType"] == "HR"
    assert payload["conversation"][1] == {"question": "Strengths?", "answer": "", "answered": False}
    assert payload["feedback"]["total_score"] == 13


def test_anonymous_result_writes_file_only(tmp_path, tmp_db):
    gateway = PersistenceGateway(tmp_path / "fb")

    receipt = gateway.persist(RECORD, CONTEXT, TRANSCRIPT, build_conversation(TRANSCRIPT))

    assert receipt.record_id is None
    assert receipt.file_path is not None
    assert os.path.basename(receipt.file_path).startswith("anon-")
    assert _row_count(tmp_db) == 0


def test_known_caller_writes_file_and_row(tmp_path, tmp_db):
    gateway = PersistenceGateway(tmp_path / "fb")

    receipt = gateway.persist(
        RECORD, CONTEXT, TRANSCRIPT, build_conversation(TRANSCRIPT), caller_id="user/42", resume_summary="BSc"
    )

    assert os.path.basename(receipt.file_path).startswith("user_42-")
    with sqlite3.connect(tmp_db) as conn:
        row = conn.execute(
            "SELECT user_id, communication, total_score, feedback_file FROM interviews WHERE id=?",
            (receipt.record_id,),
        ).fetchone()
    assert row == ("user/42", 6, 13, receipt.file_path)


def test_same_millisecond_writes_keep_separate_files(tmp_path, tmp_db, monkeypatch):
    monkeypatch.setattr("storage.gateway.time.time", lambda: 1700000000.0)
    gateway = PersistenceGateway(tmp_path / "fb")
    conversation = build_conversation(TRANSCRIPT)

    first = gateway.persist(RECORD, CONTEXT, TRANSCRIPT, conversation, caller_id="user-7")
    second = gateway.persist(RECORD, CONTEXT, TRANSCRIPT, conversation, caller_id="user-7")

    assert first.file_path != second.file_path
    assert os.path.basename(first.file_path).startswith("user-7-1700000000000-")
    assert len(os.listdir(tmp_path / "fb")) == 2


def test_default_directory_comes_from_settings(tmp_db):
    from config.settings import settings

    receipt = PersistenceGateway().persist(RECORD, CONTEXT, TRANSCRIPT, build_conversation(TRANSCRIPT))
    assert receipt.file_path.startswith(settings.FEEDBACK_DIR)


def test_unwritable_directory_is_logged_not_raised(tmp_path, tmp_db, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    gateway = PersistenceGateway(blocker / "fb")

    receipt = gateway.persist(RECORD, CONTEXT, TRANSCRIPT, build_conversation(TRANSCRIPT), caller_id="u1")

    assert receipt.file_path is None
    assert receipt.record_id is not None
    assert "Could not write feedback file" in caplog.text


def test_store_failure_is_logged_not_raised(tmp_path, caplog):
    unmigrated = str(tmp_path / "fresh.db")
    gateway = PersistenceGateway(tmp_path / "fb", db_path=unmigrated)

    receipt = gateway.persist(RECORD, CONTEXT, TRANSCRIPT, build_conversation(TRANSCRIPT), caller_id="u1")

    assert receipt.record_id is None
    assert receipt.file_path is not None
    assert "Error storing interview" in caplog.text
