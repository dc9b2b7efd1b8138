from __future__ import annotations  # Assessment report domain models

from typing import List, Optional

from pydantic import BaseModel, Field

from catalog import QuestionCatalog
from interview_session.models import ScoringResult, Session, utcnow


class RequirementLine(BaseModel):  # Final state of one evidence requirement
    requirement: str
    kind: str
    outcome: str
    ai_score: Optional[int] = None
    feedback: str = ""


class ReportRow(BaseModel):  # Answered question with its evidence trail
    question_number: int
    question_text: str
    answer: str
    requirements: List[RequirementLine] = Field(default_factory=list)


class AssessmentReport(BaseModel):
    session_id: str
    respondent_id: str
    email: str
    company_name: str = ""
    status: str
    scoring: Optional[ScoringResult] = None
    rows: List[ReportRow] = Field(default_factory=list)
    generated_at: str = Field(default_factory=utcnow)


def build_report(session: Session, catalog: QuestionCatalog, *, company_name: str = "") -> AssessmentReport:
    rows: List[ReportRow] = []
    for question in catalog:
        answer = session.answer_for(question.number)
        if answer is None:
            continue
        lines = [
            RequirementLine(
                requirement=item.requirement,
                kind=item.kind,
                outcome=item.review_outcome,
                ai_score=item.ai_score,
                feedback=item.feedback or item.justification or "",
            )
            for item in session.submissions_for(question.number)
        ]
        rows.append(
            ReportRow(
                question_number=question.number,
                question_text=question.text,
                answer=answer.value,
                requirements=lines,
            )
        )
    return AssessmentReport(
        session_id=session.session_id,
        respondent_id=session.respondent_id,
        email=session.email,
        company_name=company_name,
        status=session.status,
        scoring=session.scoring,
        rows=rows,
    )


__all__ = ["AssessmentReport", "ReportRow", "RequirementLine", "build_report"]
