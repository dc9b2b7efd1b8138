"""Persistence for interview sessions, answers and evidence submissions."""
from __future__ import annotations

import json
import sqlite3
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel

from interview_session.errors import ConcurrentUpdate, SessionNotFound
from interview_session.models import Answer, EvidenceSubmission, ScoringResult, Session, utcnow

from .sqlite import get_conn


class AnswerRow(BaseModel):  # Flattened answer row for the auditor view
    session_id: str
    respondent_id: str
    email: str
    company_name: str = ""
    status: str
    question_number: int
    value: str
    timestamp: str


class EscalationRow(BaseModel):  # Escalated requirement still waiting for an auditor score
    session_id: str
    respondent_id: str
    email: str
    submission_id: str
    question_number: int
    requirement_index: int
    requirement: str
    kind: str
    justification: Optional[str] = None
    feedback: Optional[str] = None
    ai_score: Optional[int] = None
    appeals: List[str] = []
    file_ref: Optional[str] = None
    auditor_file_ref: Optional[str] = None
    updated_at: str


class SessionStore:
    """SQLite-backed session repository.

    ``save`` replaces the whole session inside one transaction and bumps
    ``version``; a stale ``expected_version`` raises :class:`ConcurrentUpdate`
    and leaves the stored rows untouched.
    """

    def create_or_get(self, respondent_id: str, email: str = "") -> Session:
        now = utcnow()
        with get_conn() as conn:
            conn.execute(
                """INSERT OR IGNORE INTO sessions
                   (session_id, respondent_id, email, current_index, status, version, created_at, updated_at)
                   VALUES (?, ?, ?, 0, 'active', 1, ?, ?)""",
                (uuid4().hex, respondent_id, email, now, now),
            )
            if email:
                conn.execute(
                    "UPDATE sessions SET email = ? WHERE respondent_id = ? AND email = ''",
                    (email, respondent_id),
                )
            row = conn.execute("SELECT * FROM sessions WHERE respondent_id = ?", (respondent_id,)).fetchone()
            return self._hydrate(conn, row)

    def get(self, session_id: str) -> Optional[Session]:
        with get_conn() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE session_id = ?", (session_id,)).fetchone()
            if row is None:
                return None
            return self._hydrate(conn, row)

    def get_by_respondent(self, respondent_id: str) -> Optional[Session]:
        with get_conn() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE respondent_id = ?", (respondent_id,)).fetchone()
            if row is None:
                return None
            return self._hydrate(conn, row)

    def save(self, session: Session, *, expected_version: int) -> Session:
        """Persist ``session`` if the stored version still matches."""

        new_version = expected_version + 1
        scoring_json = session.scoring.model_dump_json() if session.scoring else None
        score = session.scoring.score if session.scoring else None
        with get_conn() as conn:
            cur = conn.execute(
                """UPDATE sessions
                   SET email = ?, current_index = ?, status = ?, version = ?, scoring_json = ?, score = ?,
                       updated_at = ?
                   WHERE session_id = ? AND version = ?""",
                (
                    session.email,
                    session.current_index,
                    session.status,
                    new_version,
                    scoring_json,
                    score,
                    session.updated_at,
                    session.session_id,
                    expected_version,
                ),
            )
            if cur.rowcount == 0:
                exists = conn.execute(
                    "SELECT 1 FROM sessions WHERE session_id = ?", (session.session_id,)
                ).fetchone()
                if exists is None:
                    raise SessionNotFound(f"Session '{session.session_id}' not found")
                raise ConcurrentUpdate(
                    f"Session '{session.session_id}' was modified concurrently; reload and retry"
                )
            conn.execute("DELETE FROM answers WHERE session_id = ?", (session.session_id,))
            conn.executemany(
                "INSERT INTO answers (session_id, question_number, value, timestamp) VALUES (?, ?, ?, ?)",
                [(session.session_id, a.question_number, a.value, a.timestamp) for a in session.answers],
            )
            conn.executemany(
                """INSERT OR REPLACE INTO evidence_submissions
                   (submission_id, session_id, question_number, requirement_index, attempt, kind, requirement,
                    file_ref, filename, justification, feedback, ai_score, review_outcome, review_error,
                    superseded, appeals_json, auditor_file_ref, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        e.submission_id,
                        session.session_id,
                        e.question_number,
                        e.requirement_index,
                        e.attempt,
                        e.kind,
                        e.requirement,
                        e.file_ref,
                        e.filename,
                        e.justification,
                        e.feedback,
                        e.ai_score,
                        e.review_outcome,
                        e.review_error,
                        1 if e.superseded else 0,
                        json.dumps(e.appeals),
                        e.auditor_file_ref,
                        e.created_at,
                        e.updated_at,
                    )
                    for e in session.evidence
                ],
            )
        return session.model_copy(update={"version": new_version})

    def list_answer_rows(self, search: Optional[str] = None) -> List[AnswerRow]:
        """Every recorded answer, optionally filtered by respondent id, email or company."""

        sql = """SELECT s.session_id, s.respondent_id, s.email, COALESCE(p.company_name, '') AS company_name,
                        s.status, a.question_number, a.value, a.timestamp
                 FROM answers a JOIN sessions s ON s.session_id = a.session_id
                 LEFT JOIN profiles p ON p.email = lower(s.email)"""
        params: tuple = ()
        if search and search.strip():
            needle = f"%{search.strip().lower()}%"
            sql += (
                " WHERE lower(s.respondent_id) LIKE ? OR lower(s.email) LIKE ?"
                " OR lower(COALESCE(p.company_name, '')) LIKE ?"
            )
            params = (needle, needle, needle)
        sql += " ORDER BY s.respondent_id, a.question_number"
        with get_conn() as conn:
            return [AnswerRow(**dict(row)) for row in conn.execute(sql, params).fetchall()]

    def pending_escalations(self) -> List[EscalationRow]:
        """Escalated, non-superseded requirements without an auditor correction."""

        sql = """SELECT s.session_id, s.respondent_id, s.email, e.submission_id, e.question_number,
                        e.requirement_index, e.requirement, e.kind, e.justification, e.feedback, e.ai_score,
                        e.appeals_json, e.file_ref, e.auditor_file_ref, e.updated_at
                 FROM evidence_submissions e JOIN sessions s ON s.session_id = e.session_id
                 WHERE e.review_outcome = 'escalated' AND e.superseded = 0
                   AND NOT EXISTS (
                     SELECT 1 FROM auditor_corrections c
                     WHERE c.session_id = e.session_id
                       AND c.question_number = e.question_number
                       AND (c.requirement_index IS NULL OR c.requirement_index = e.requirement_index)
                   )
                 ORDER BY e.updated_at"""
        with get_conn() as conn:
            rows = conn.execute(sql).fetchall()
        out: List[EscalationRow] = []
        for row in rows:
            data = dict(row)
            data["appeals"] = json.loads(data.pop("appeals_json") or "[]")
            out.append(EscalationRow(**data))
        return out

    def _hydrate(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Session:
        session_id = row["session_id"]
        answers = [
            Answer(question_number=r["question_number"], value=r["value"], timestamp=r["timestamp"])
            for r in conn.execute(
                "SELECT * FROM answers WHERE session_id = ? ORDER BY question_number", (session_id,)
            ).fetchall()
        ]
        evidence = []
        for r in conn.execute(
            """SELECT * FROM evidence_submissions WHERE session_id = ?
               ORDER BY question_number, requirement_index, attempt""",
            (session_id,),
        ).fetchall():
            data = dict(r)
            data.pop("session_id")
            data["superseded"] = bool(data["superseded"])
            data["appeals"] = json.loads(data.pop("appeals_json") or "[]")
            evidence.append(EvidenceSubmission(**data))
        scoring = ScoringResult.model_validate_json(row["scoring_json"]) if row["scoring_json"] else None
        return Session(
            session_id=session_id,
            respondent_id=row["respondent_id"],
            email=row["email"],
            current_index=row["current_index"],
            status=row["status"],
            answers=answers,
            evidence=evidence,
            scoring=scoring,
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


__all__ = ["AnswerRow", "EscalationRow", "SessionStore"]
