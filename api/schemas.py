"""Pydantic schemas for the compliance interview API."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from interview_session.models import Answer, EvidenceSubmission, ScoringResult, Session, SessionPhase


class AnswerReq(BaseModel):
    question_number: int
    value: str


class RequirementReq(BaseModel):
    question_number: int
    requirement_index: int = Field(ge=0)


class JustificationReq(RequirementReq):
    justification: str


class SkipReq(RequirementReq):
    comment: str


class ResolveReq(RequirementReq):
    decision: Literal["accept", "escalate"]


class DisagreeReq(RequirementReq):
    argument: str


class CorrectionReq(BaseModel):
    respondent_id: str
    question_number: int
    requirement_index: Optional[int] = None
    score: Optional[int] = None
    comment: Optional[str] = None


class ProfilePatchReq(BaseModel):
    company_name: Optional[str] = None
    role: Optional[str] = None


class SessionView(BaseModel):  # Session state returned to the respondent UI
    session_id: str
    respondent_id: str
    email: str
    status: str
    current_index: int
    version: int
    phase: SessionPhase
    answers: List[Answer] = Field(default_factory=list)
    evidence: List[EvidenceSubmission] = Field(default_factory=list)
    scoring: Optional[ScoringResult] = None

    @classmethod
    def build(cls, session: Session, phase: SessionPhase) -> "SessionView":
        return cls(
            session_id=session.session_id,
            respondent_id=session.respondent_id,
            email=session.email,
            status=session.status,
            current_index=session.current_index,
            version=session.version,
            phase=phase,
            answers=session.answers,
            evidence=[item for item in session.evidence if not item.superseded],
            scoring=session.scoring,
        )


class ErrorResp(BaseModel):
    error: str
    detail: str
