"""Lightweight CLI for inspecting interview sessions, escalations and corrections."""
from __future__ import annotations

import argparse
import sqlite3
from typing import List, Optional

from config.settings import settings


def _rows(sql: str, params: tuple) -> List[tuple]:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        return conn.execute(sql, params).fetchall()
    finally:
        conn.close()


def tail_sessions(limit: int = 20) -> List[str]:
    lines = []
    for ts, session_id, respondent_id, status, index, score in _rows(
        """
        SELECT updated_at, session_id, respondent_id, status, current_index, score
        FROM sessions
        ORDER BY updated_at DESC
        LIMIT ?
        """,
        (limit,),
    ):
        shown = "-" if score is None else f"{score:.0f}"
        lines.append(f"[{ts}] {session_id} {respondent_id} status={status} index={index} score={shown}")
    return lines


def tail_escalations(limit: int = 20) -> List[str]:
    lines = []
    for ts, respondent_id, question, requirement, kind, appeals in _rows(
        """
        SELECT e.updated_at, s.respondent_id, e.question_number, e.requirement_index, e.kind, e.appeals_json
        FROM evidence_submissions e JOIN sessions s ON s.session_id = e.session_id
        WHERE e.review_outcome = 'escalated' AND e.superseded = 0
        ORDER BY e.updated_at DESC
        LIMIT ?
        """,
        (limit,),
    ):
        lines.append(f"[{ts}] {respondent_id} Q{question} req={requirement + 1} kind={kind} appeals={appeals}")
    return lines


def tail_corrections(limit: int = 20) -> List[str]:
    lines = []
    for ts, respondent_id, question, auditor_id, score, comment in _rows(
        """
        SELECT timestamp, respondent_id, question_number, auditor_id, score, comment
        FROM auditor_corrections
        ORDER BY id DESC
        LIMIT ?
        """,
        (limit,),
    ):
        lines.append(f"[{ts}] {respondent_id} Q{question} score={score} by={auditor_id} comment={comment}")
    return lines


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--tail-escalations", type=int, help="Show the latest escalated requirements")
    parser.add_argument("--tail-corrections", type=int, help="Show the latest auditor corrections")
    args = parser.parse_args(argv)

    if args.tail_sessions:
        print("\n".join(tail_sessions(args.tail_sessions)))
    if args.tail_escalations:
        print("\n".join(tail_escalations(args.tail_escalations)))
    if args.tail_corrections:
        print("\n".join(tail_corrections(args.tail_corrections)))


if __name__ == "__main__":
    main()
