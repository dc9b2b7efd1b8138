"""Auditor override ledger: additive corrections next to the live transcript."""
from __future__ import annotations

from typing import List, Optional

from config.settings import settings
from interview_session.errors import RecordNotFound, ValidationError
from observability import log_event
from storage.corrections import CorrectionRow, insert_correction, list_corrections
from storage.sessions import AnswerRow, EscalationRow, SessionStore


class AuditorLedger:
    """Records manual score overrides without touching recorded answers.

    Corrections are append-only; a later correction for the same
    question is read as the newest one, earlier rows stay as history.
    """

    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self._store = store or SessionStore()

    def record_correction(
        self,
        respondent_id: str,
        question_number: int,
        score: Optional[int],
        comment: Optional[str],
        auditor_id: str,
        *,
        requirement_index: Optional[int] = None,
    ) -> CorrectionRow:
        if not comment or not comment.strip():
            raise ValidationError("A correction needs a comment", code="missing_comment")
        if score is None:
            raise ValidationError("A correction needs a score", code="missing_score")
        if isinstance(score, bool) or not settings.AUDIT_SCORE_MIN <= int(score) <= settings.AUDIT_SCORE_MAX:
            raise ValidationError(
                f"Score must be between {settings.AUDIT_SCORE_MIN} and {settings.AUDIT_SCORE_MAX}",
                code="score_out_of_range",
            )
        if not auditor_id or not auditor_id.strip():
            raise ValidationError("A correction needs an auditor id", code="missing_auditor")
        session = self._store.get_by_respondent(respondent_id)
        if session is None:
            raise RecordNotFound(f"No session for respondent '{respondent_id}'", code="session_not_found")
        if session.answer_for(question_number) is None:
            raise ValidationError(
                f"Respondent has not answered question {question_number}", code="unknown_question"
            )
        row_id = insert_correction(
            session_id=session.session_id,
            respondent_id=respondent_id,
            question_number=question_number,
            requirement_index=requirement_index,
            auditor_id=auditor_id.strip(),
            comment=comment.strip(),
            score=int(score),
        )
        log_event(
            "auditor_correction",
            session.session_id,
            respondent_id=respondent_id,
            question=question_number,
            requirement=requirement_index,
            score=int(score),
        )
        stored = [row for row in list_corrections(session.session_id, question_number) if row.id == row_id]
        return stored[0]

    def list_answers(self, search: Optional[str] = None) -> List[AnswerRow]:
        return self._store.list_answer_rows(search)

    def pending_escalations(self) -> List[EscalationRow]:
        return self._store.pending_escalations()

    def corrections_for(self, respondent_id: str, question_number: Optional[int] = None) -> List[CorrectionRow]:
        session = self._store.get_by_respondent(respondent_id)
        if session is None:
            return []
        return list_corrections(session.session_id, question_number)


__all__ = ["AuditorLedger"]
