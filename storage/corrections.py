"""Append-only persistence for auditor corrections."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class CorrectionPayload(BaseModel):
    session_id: str
    respondent_id: str
    question_number: int
    requirement_index: Optional[int] = None
    auditor_id: str
    comment: str
    score: int = Field(ge=1, le=5)


class CorrectionRow(CorrectionPayload):
    id: int
    timestamp: str


def insert_correction(**data) -> int:
    """Insert a correction row; earlier rows are never updated."""

    payload = CorrectionPayload(**data)
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn() as conn:
        cur = conn.execute(
            """INSERT INTO auditor_corrections
               (timestamp, session_id, respondent_id, question_number, requirement_index, auditor_id, comment, score)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                timestamp,
                payload.session_id,
                payload.respondent_id,
                payload.question_number,
                payload.requirement_index,
                payload.auditor_id,
                payload.comment,
                payload.score,
            ),
        )
        return int(cur.lastrowid)


def list_corrections(session_id: Optional[str] = None, question_number: Optional[int] = None) -> List[CorrectionRow]:
    sql = "SELECT * FROM auditor_corrections"
    clauses = []
    params: list = []
    if session_id is not None:
        clauses.append("session_id = ?")
        params.append(session_id)
    if question_number is not None:
        clauses.append("question_number = ?")
        params.append(question_number)
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY id"
    with get_conn() as conn:
        return [CorrectionRow(**dict(row)) for row in conn.execute(sql, params).fetchall()]


__all__ = ["CorrectionPayload", "CorrectionRow", "insert_correction", "list_corrections"]
