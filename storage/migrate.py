"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS sessions (
  session_id TEXT PRIMARY KEY,
  respondent_id TEXT NOT NULL UNIQUE,
  email TEXT NOT NULL DEFAULT '',
  current_index INTEGER NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'active',
  version INTEGER NOT NULL DEFAULT 1,
  scoring_json TEXT,
  score REAL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS answers (
  session_id TEXT NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
  question_number INTEGER NOT NULL,
  value TEXT NOT NULL,
  timestamp TEXT NOT NULL,
  PRIMARY KEY (session_id, question_number)
);
""",
    """
CREATE TABLE IF NOT EXISTS evidence_submissions (
  submission_id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
  question_number INTEGER NOT NULL,
  requirement_index INTEGER NOT NULL,
  attempt INTEGER NOT NULL,
  kind TEXT NOT NULL,
  requirement TEXT NOT NULL,
  file_ref TEXT,
  filename TEXT,
  justification TEXT,
  feedback TEXT,
  ai_score INTEGER,
  review_outcome TEXT NOT NULL,
  review_error TEXT,
  superseded INTEGER NOT NULL DEFAULT 0,
  appeals_json TEXT NOT NULL DEFAULT '[]',
  auditor_file_ref TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE UNIQUE INDEX IF NOT EXISTS idx_evidence_attempt
  ON evidence_submissions (session_id, question_number, requirement_index, attempt);
""",
    """
CREATE TABLE IF NOT EXISTS auditor_corrections (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  session_id TEXT NOT NULL,
  respondent_id TEXT NOT NULL,
  question_number INTEGER NOT NULL,
  requirement_index INTEGER,
  auditor_id TEXT NOT NULL,
  comment TEXT NOT NULL,
  score INTEGER NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS profiles (
  profile_id TEXT PRIMARY KEY,
  email TEXT NOT NULL UNIQUE,
  company_name TEXT NOT NULL DEFAULT '',
  role TEXT NOT NULL DEFAULT 'supplier',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
]


def migrate(db_path: str = "data/vendoriq.db") -> None:
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
