"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interviews (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  user_id TEXT NOT NULL,
  role TEXT NOT NULL,
  interview_type TEXT NOT NULL,
  duration INTEGER NOT NULL,
  resume_summary TEXT NOT NULL,
  questions_json TEXT NOT NULL,
  answers_json TEXT NOT NULL,
  conversation_json TEXT NOT NULL,
  feedback_json TEXT NOT NULL,
  technical_knowledge INTEGER NOT NULL,
  problem_solving INTEGER NOT NULL,
  communication INTEGER NOT NULL,
  total_score INTEGER NOT NULL,
  feedback_file TEXT
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interviews_user_ts ON interviews (user_id, timestamp);
""",
]


def migrate(db_path: str = "data/interviews.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
