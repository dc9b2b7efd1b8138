from __future__ import annotations  # Upload sub-flow controller for a single requirement

import logging
import os
import re
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel, Field

from catalog import QuestionCatalog

from .errors import PersistenceError, UpstreamServiceError, ValidationError
from .models import EvidenceSubmission, Session

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ReviewFeedback(BaseModel):  # Automated reviewer verdict
    feedback: str
    score: Optional[int] = Field(default=None, ge=1, le=5)


class DocumentReviewRequest(BaseModel):
    file_ref: str
    filename: str
    requirement: str
    question_number: int
    question_text: str
    scoring_guide: str = ""
    respondent_email: str = ""
    company_name: str = ""


class ReasonReviewRequest(BaseModel):
    justification: str
    requirement: str
    question_number: int
    question_text: str
    respondent_email: str = ""


class DocumentReviewer(Protocol):  # Reviews a stored artifact against a requirement
    def review_document(self, request: DocumentReviewRequest) -> ReviewFeedback: ...


class ReasonEvaluator(Protocol):  # Judges a "document is missing" justification
    def evaluate_reason(self, request: ReasonReviewRequest) -> ReviewFeedback: ...


class CompanyDirectory(Protocol):  # Supplier company registered for a respondent email
    def company_for(self, email: str) -> str: ...


class BlobStorage(Protocol):  # Durable file storage keyed by relative path
    def put(self, path: str, data: bytes) -> str: ...

    def read(self, ref: str) -> bytes: ...


def safe_filename(filename: str) -> str:  # Strip directories and unsafe characters
    base = os.path.basename((filename or "").replace("\\", "/")).strip()
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "upload"


def evidence_path(session: Session, question_number: int, requirement_index: int, filename: str) -> str:
    return (
        f"uploads/{session.session_id}_{safe_filename(session.respondent_id)}/"
        f"question-{question_number}/requirement-{requirement_index + 1}-{safe_filename(filename)}"
    )


def auditor_path(session: Session, question_number: int, requirement_index: int, filename: str) -> str:
    return (
        f"auditor/{session.session_id}_{safe_filename(session.respondent_id)}/"
        f"question-{question_number}/requirement-{requirement_index + 1}-{safe_filename(filename)}"
    )


class UploadController:
    """Walks one requirement through submit, automated review and decision.

    Files are written to blob storage before any review is dispatched,
    so the reviewer always works from the stored reference. Reviewer
    failures are folded into the submission as ``review_error`` rather
    than raised, leaving the requirement open for a retry.
    """

    def __init__(
        self,
        *,
        blobs: BlobStorage,
        reviewer: DocumentReviewer,
        evaluator: ReasonEvaluator,
        allowed_extensions: Iterable[str],
        max_upload_bytes: int,
        companies: Optional[CompanyDirectory] = None,
    ) -> None:
        self._blobs = blobs
        self._reviewer = reviewer
        self._evaluator = evaluator
        self._allowed = {ext.lower() for ext in allowed_extensions}
        self._max_bytes = max_upload_bytes
        self._companies = companies

    @property
    def max_upload_bytes(self) -> int:
        return self._max_bytes

    def validate_file(self, filename: str, data: bytes) -> None:
        ext = os.path.splitext(filename or "")[1].lower()
        if not filename or ext not in self._allowed:
            raise ValidationError(f"Unsupported file type '{ext or filename}'", code="unsupported_file_type")
        if not data:
            raise ValidationError("Uploaded file is empty", code="empty_file")
        if len(data) > self._max_bytes:
            raise ValidationError(
                f"File too large (max {self._max_bytes // (1024 * 1024)}MB)",
                code="file_too_large",
            )

    def prepare_file(
        self,
        session: Session,
        question_number: int,
        requirement_index: int,
        filename: str,
        data: bytes,
    ) -> EvidenceSubmission:  # Store the artifact and build a pending submission
        self.validate_file(filename, data)
        ref = self._store(evidence_path(session, question_number, requirement_index, filename), data)
        return EvidenceSubmission(
            question_number=question_number,
            requirement_index=requirement_index,
            kind="file",
            file_ref=ref,
            filename=safe_filename(filename),
        )

    def prepare_justification(self, question_number: int, requirement_index: int, text: str) -> EvidenceSubmission:
        if not text or not text.strip():
            raise ValidationError("A justification is required", code="missing_justification")
        return EvidenceSubmission(
            question_number=question_number,
            requirement_index=requirement_index,
            kind="justification",
            justification=text.strip(),
        )

    def prepare_skip(self, question_number: int, requirement_index: int, comment: str) -> EvidenceSubmission:
        if not comment or not comment.strip():
            raise ValidationError("Skipping a requirement needs a comment", code="missing_comment")
        return EvidenceSubmission(
            question_number=question_number,
            requirement_index=requirement_index,
            kind="skip",
            justification=comment.strip(),
            review_outcome="escalated",
        )

    def store_auditor_file(
        self,
        session: Session,
        question_number: int,
        requirement_index: int,
        filename: str,
        data: bytes,
    ) -> str:
        self.validate_file(filename, data)
        return self._store(auditor_path(session, question_number, requirement_index, filename), data)

    def review(self, session: Session, catalog: QuestionCatalog, submission: EvidenceSubmission) -> EvidenceSubmission:
        """Dispatch ``submission`` to the matching reviewer and fold in the verdict."""

        if submission.kind == "skip":
            return submission
        question = catalog.get(submission.question_number)
        requirement = question.requirements[submission.requirement_index]
        try:
            if submission.kind == "file":
                verdict = self._reviewer.review_document(
                    DocumentReviewRequest(
                        file_ref=submission.file_ref or "",
                        filename=submission.filename or "",
                        requirement=requirement,
                        question_number=question.number,
                        question_text=question.text,
                        scoring_guide=question.scoring.render(),
                        respondent_email=session.email,
                        company_name=self._company_of(session),
                    )
                )
            else:
                verdict = self._evaluator.evaluate_reason(
                    ReasonReviewRequest(
                        justification=submission.justification or "",
                        requirement=requirement,
                        question_number=question.number,
                        question_text=question.text,
                        respondent_email=session.email,
                    )
                )
        except UpstreamServiceError as exc:
            logger.warning(
                "Automated review failed session=%s question=%s requirement=%s: %s",
                session.session_id,
                submission.question_number,
                submission.requirement_index,
                exc,
            )
            return submission.model_copy(update={"review_outcome": "pending", "review_error": exc.detail})
        return submission.model_copy(
            update={
                "feedback": verdict.feedback,
                "ai_score": verdict.score,
                "review_outcome": "ai-feedback-received",
                "review_error": None,
            }
        )

    def _company_of(self, session: Session) -> str:
        if self._companies is None or not session.email:
            return ""
        return self._companies.company_for(session.email)

    def _store(self, path: str, data: bytes) -> str:
        try:
            return self._blobs.put(path, data)
        except OSError as exc:
            raise PersistenceError(f"Could not store upload: {exc}") from exc


__all__ = [
    "BlobStorage",
    "CompanyDirectory",
    "DocumentReviewRequest",
    "DocumentReviewer",
    "ReasonEvaluator",
    "ReasonReviewRequest",
    "ReviewFeedback",
    "UploadController",
    "auditor_path",
    "evidence_path",
    "safe_filename",
]
