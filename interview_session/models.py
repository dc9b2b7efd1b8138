from __future__ import annotations  # Interview session domain models

from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

SessionStatus = Literal["active", "disqualified", "completed"]
ReviewOutcome = Literal["pending", "ai-feedback-received", "accepted", "escalated"]
EvidenceKind = Literal["file", "justification", "skip"]
Decision = Literal["accept", "escalate"]
PhaseState = Literal[
    "not_started",
    "asking_question",
    "awaiting_upload",
    "disqualified",
    "ready_for_scoring",
    "completed",
]
UploadSubState = Literal[
    "awaiting_submission",
    "review_failed",
    "awaiting_decision",
    "accepted",
    "pending_auditor_upload",
    "escalated",
]

TERMINAL_OUTCOMES = frozenset({"accepted", "escalated"})


def utcnow() -> str:  # ISO timestamp used for every persisted row
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Answer(BaseModel):
    question_number: int
    value: str
    timestamp: str = Field(default_factory=utcnow)


class EvidenceSubmission(BaseModel):  # One attempt at satisfying a requirement
    submission_id: str = Field(default_factory=lambda: uuid4().hex)
    question_number: int
    requirement_index: int = Field(ge=0)
    attempt: int = Field(default=1, ge=1)
    kind: EvidenceKind
    requirement: str = ""
    file_ref: Optional[str] = None
    filename: Optional[str] = None
    justification: Optional[str] = None
    feedback: Optional[str] = None
    ai_score: Optional[int] = Field(default=None, ge=1, le=5)
    review_outcome: ReviewOutcome = "pending"
    review_error: Optional[str] = None
    superseded: bool = False
    appeals: List[str] = Field(default_factory=list)
    auditor_file_ref: Optional[str] = None
    created_at: str = Field(default_factory=utcnow)
    updated_at: str = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.review_outcome in TERMINAL_OUTCOMES

    @property
    def sub_state(self) -> UploadSubState:
        if self.review_outcome == "accepted":
            return "accepted"
        if self.review_outcome == "escalated":
            return "escalated" if self.auditor_file_ref else "pending_auditor_upload"
        if self.review_outcome == "ai-feedback-received":
            return "awaiting_decision"
        if self.review_error:
            return "review_failed"
        return "awaiting_submission"


class ScoringResult(BaseModel):  # Interpreted summary returned by the scoring service
    summary: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    structured: bool = False
    degraded_reason: Optional[str] = None
    evidence_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    generated_at: str = Field(default_factory=utcnow)


class Session(BaseModel):
    """Persisted progress of one respondent through the catalog.

    ``current_index`` points into catalog order. It only moves forward,
    except on an explicit answer revision, and never passes a question
    whose requested evidence is not in a terminal review state.
    """

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    respondent_id: str
    email: str = ""
    current_index: int = Field(default=0, ge=0)
    status: SessionStatus = "active"
    answers: List[Answer] = Field(default_factory=list)
    evidence: List[EvidenceSubmission] = Field(default_factory=list)
    scoring: Optional[ScoringResult] = None
    version: int = Field(default=0, ge=0)
    created_at: str = Field(default_factory=utcnow)
    updated_at: str = Field(default_factory=utcnow)

    def answer_for(self, question_number: int) -> Optional[Answer]:
        for answer in self.answers:
            if answer.question_number == question_number:
                return answer
        return None

    def active_submission(self, question_number: int, requirement_index: int) -> Optional[EvidenceSubmission]:
        latest: Optional[EvidenceSubmission] = None
        for item in self.evidence:
            if item.superseded:
                continue
            if item.question_number == question_number and item.requirement_index == requirement_index:
                if latest is None or item.attempt > latest.attempt:
                    latest = item
        return latest

    def submissions_for(self, question_number: int) -> List[EvidenceSubmission]:
        return [item for item in self.evidence if item.question_number == question_number and not item.superseded]

    def find_submission(self, submission_id: str) -> Optional[EvidenceSubmission]:
        for item in self.evidence:
            if item.submission_id == submission_id:
                return item
        return None


class SessionPhase(BaseModel):  # Derived position in the interview state machine
    state: PhaseState
    question_index: Optional[int] = None
    question_number: Optional[int] = None
    question_text: Optional[str] = None
    requirement_index: Optional[int] = None
    requirement: Optional[str] = None
    upload_state: Optional[UploadSubState] = None
    message: Optional[str] = None


class ReviewItem(BaseModel):  # Answer overview row offered before scoring
    question_number: int
    question_text: str
    answer: Optional[str] = None
    evidence: List[EvidenceSubmission] = Field(default_factory=list)


__all__ = [
    "Answer",
    "Decision",
    "EvidenceKind",
    "EvidenceSubmission",
    "PhaseState",
    "ReviewItem",
    "ReviewOutcome",
    "ScoringResult",
    "Session",
    "SessionPhase",
    "SessionStatus",
    "TERMINAL_OUTCOMES",
    "UploadSubState",
    "utcnow",
]
