from __future__ import annotations  # Interview session facade wiring machine, uploads and scoring

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol

from pydantic import BaseModel

from catalog import QuestionCatalog
from observability import log_event

from . import machine
from .errors import InvalidTransition, SessionNotFound, UpstreamServiceError, ValidationError
from .models import (
    Decision,
    EvidenceSubmission,
    ReviewItem,
    ScoringResult,
    Session,
    SessionPhase,
)
from .uploads import UploadController

logger = logging.getLogger(__name__)


class FileUpload(BaseModel):  # Raw file handed over by the outer layer
    filename: str
    data: bytes


class SessionRepository(Protocol):  # Persistent store contract for session state
    def create_or_get(self, respondent_id: str, email: str) -> Session: ...

    def get(self, session_id: str) -> Optional[Session]: ...

    def save(self, session: Session, *, expected_version: int) -> Session: ...


class Scorer(Protocol):  # Builds and interprets the scoring request; never raises for bad payloads
    def score(self, session: Session, catalog: QuestionCatalog) -> ScoringResult: ...


class _LockEntry:  # Per-session lock with a count of callers using it
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class InterviewService:
    """Entry point for every respondent-facing interview operation.

    Transitions for one session run under a per-session lock and are
    saved with an optimistic version check, so two tabs of the same
    respondent cannot overwrite each other. Automated review and scoring
    calls happen outside the lock; their results are folded back in a
    second short transaction.
    """

    def __init__(
        self,
        *,
        catalog: QuestionCatalog,
        store: SessionRepository,
        uploads: UploadController,
        scorer: Scorer,
        max_appeals: int = 2,
    ) -> None:
        self.catalog = catalog
        self._store = store
        self._uploads = uploads
        self._scorer = scorer
        self._max_appeals = max(1, max_appeals)
        self._locks: Dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def create_or_resume_session(self, respondent_id: str, email: str = "") -> Session:
        if not respondent_id or not respondent_id.strip():
            raise ValidationError("respondent_id is required", code="missing_respondent")
        session = self._store.create_or_get(respondent_id.strip(), email.strip())
        phase = machine.current_phase(session, self.catalog)
        kind = "session_started" if session.version <= 1 and not session.answers else "session_resumed"
        log_event(
            kind,
            session.session_id,
            respondent_id=session.respondent_id,
            status=session.status,
            question=phase.question_number,
        )
        return session

    def get_session(self, session_id: str) -> Session:
        session = self._store.get(session_id)
        if session is None:
            raise SessionNotFound(f"Session '{session_id}' not found")
        return session

    def phase(self, session_id: str) -> SessionPhase:
        return machine.current_phase(self.get_session(session_id), self.catalog)

    def review_summary(self, session_id: str) -> List[ReviewItem]:
        return machine.review_items(self.get_session(session_id), self.catalog)

    @property
    def max_upload_bytes(self) -> int:
        return self._uploads.max_upload_bytes

    # ------------------------------------------------------------------
    # Question progression
    # ------------------------------------------------------------------
    def submit_answer(self, session_id: str, question_number: int, value: str) -> Session:
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            updated, kind = machine.apply_answer(session, self.catalog, question_number, value)
            saved = self._save(updated, session)
        phase = machine.current_phase(saved, self.catalog)
        log_event(
            kind,
            saved.session_id,
            respondent_id=saved.respondent_id,
            question=question_number,
            value=value,
            status=saved.status,
        )
        if phase.state == "ready_for_scoring":
            log_event("ready_for_scoring", saved.session_id, respondent_id=saved.respondent_id)
        return saved

    # ------------------------------------------------------------------
    # Upload sub-flow
    # ------------------------------------------------------------------
    def submit_evidence(
        self,
        session_id: str,
        question_number: int,
        requirement_index: int,
        *,
        upload: Optional[FileUpload] = None,
        justification: Optional[str] = None,
    ) -> EvidenceSubmission:
        """Store a file or justification, then run the automated review.

        A reviewer failure is returned on the submission as
        ``review_error``; the requirement stays open and
        :meth:`retry_review` re-dispatches the stored input.
        """

        if (upload is None) == (justification is None):
            raise ValidationError("Provide either a file or a justification", code="invalid_evidence")
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            machine.require_open_requirement(session, self.catalog, question_number, requirement_index)
            if upload is not None:
                pending = self._uploads.prepare_file(
                    session, question_number, requirement_index, upload.filename, upload.data
                )
            else:
                pending = self._uploads.prepare_justification(question_number, requirement_index, justification or "")
            updated, stored = machine.record_submission(session, self.catalog, pending)
            self._save(updated, session)
        log_event(
            "evidence_submitted",
            session_id,
            respondent_id=session.respondent_id,
            question=question_number,
            requirement=requirement_index,
            outcome=stored.kind,
        )
        return self._run_review(session_id, stored.submission_id)

    def retry_review(self, session_id: str, question_number: int, requirement_index: int) -> EvidenceSubmission:
        session = self.get_session(session_id)
        machine.require_open_requirement(session, self.catalog, question_number, requirement_index)
        active = session.active_submission(question_number, requirement_index)
        if active is None or active.review_outcome != "pending" or active.kind == "skip":
            raise InvalidTransition("There is no failed review to retry", code="nothing_to_retry")
        return self._run_review(session_id, active.submission_id)

    def skip_requirement(self, session_id: str, question_number: int, requirement_index: int, comment: str) -> Session:
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            machine.require_open_requirement(session, self.catalog, question_number, requirement_index)
            pending = self._uploads.prepare_skip(question_number, requirement_index, comment)
            updated, _ = machine.record_submission(session, self.catalog, pending)
            updated = machine.advance_if_complete(updated, self.catalog)
            saved = self._save(updated, session)
        log_event(
            "evidence_resolved",
            session_id,
            respondent_id=saved.respondent_id,
            question=question_number,
            requirement=requirement_index,
            decision="skip",
        )
        return saved

    def resolve_evidence(
        self,
        session_id: str,
        question_number: int,
        requirement_index: int,
        decision: Decision,
    ) -> Session:
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            updated = machine.resolve_requirement(session, self.catalog, question_number, requirement_index, decision)
            saved = self._save(updated, session)
        log_event(
            "evidence_resolved",
            session_id,
            respondent_id=saved.respondent_id,
            question=question_number,
            requirement=requirement_index,
            decision=decision,
        )
        return saved

    def disagree_with_feedback(
        self,
        session_id: str,
        question_number: int,
        requirement_index: int,
        argument: str,
    ) -> Session:
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            updated, escalated = machine.register_appeal(
                session,
                self.catalog,
                question_number,
                requirement_index,
                argument,
                max_appeals=self._max_appeals,
            )
            saved = self._save(updated, session)
        log_event(
            "evidence_resolved" if escalated else "evidence_disputed",
            session_id,
            respondent_id=saved.respondent_id,
            question=question_number,
            requirement=requirement_index,
            decision="escalate" if escalated else "appeal",
        )
        return saved

    def attach_auditor_file(
        self,
        session_id: str,
        question_number: int,
        requirement_index: int,
        upload: FileUpload,
    ) -> EvidenceSubmission:
        with self._session_lock(session_id):
            session = self.get_session(session_id)
            active = session.active_submission(question_number, requirement_index)
            if active is None or active.review_outcome != "escalated":
                raise InvalidTransition("Requirement has not been escalated", code="not_escalated")
            ref = self._uploads.store_auditor_file(
                session, question_number, requirement_index, upload.filename, upload.data
            )
            updated = machine.attach_auditor_file(session, question_number, requirement_index, ref)
            saved = self._save(updated, session)
        log_event(
            "auditor_upload",
            session_id,
            respondent_id=saved.respondent_id,
            question=question_number,
            requirement=requirement_index,
        )
        result = saved.active_submission(question_number, requirement_index)
        if result is None:
            raise InvalidTransition("Requirement has no active submission", code="unknown_submission")
        return result

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def finalize_and_score(self, session_id: str) -> ScoringResult:
        """Score the transcript and close the session.

        An unreachable scorer raises :class:`UpstreamServiceError` and
        leaves the session ready for scoring; a reply that cannot be
        parsed still completes the session with an unscored summary.
        Scoring again later replaces the stored result. If the session
        changed while the scorer was running, :class:`ConcurrentUpdate`
        is raised and nothing is stored.
        """

        session = self.get_session(session_id)
        self._ensure_scorable(session)
        try:
            result = self._scorer.score(session, self.catalog)
        except UpstreamServiceError as exc:
            logger.warning("Scoring failed for session %s: %s", session_id, exc)
            raise
        with self._session_lock(session_id):
            # The result only stands for the transcript that was scored
            closed = machine.mark_completed(session, self.catalog)
            saved = self._save(closed.model_copy(update={"scoring": result}), session)
        log_event(
            "scoring_completed",
            session_id,
            respondent_id=saved.respondent_id,
            status=saved.status,
            score=result.score,
            outcome="structured" if result.structured else "opaque",
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _run_review(self, session_id: str, submission_id: str) -> EvidenceSubmission:
        session = self.get_session(session_id)
        pending = session.find_submission(submission_id)
        if pending is None:
            raise InvalidTransition("Submission no longer exists", code="unknown_submission")
        reviewed = self._uploads.review(session, self.catalog, pending)
        with self._session_lock(session_id):
            current = self.get_session(session_id)
            stored = current.find_submission(submission_id)
            if stored is None or stored.superseded or stored.review_outcome != "pending":
                # Revised or resubmitted while the reviewer was busy
                return stored or reviewed
            self._save(machine.update_submission(current, reviewed), current)
        if reviewed.review_error:
            log_event(
                "evidence_review_failed",
                session_id,
                respondent_id=current.respondent_id,
                question=reviewed.question_number,
                requirement=reviewed.requirement_index,
                error=reviewed.review_error,
            )
        else:
            log_event(
                "evidence_reviewed",
                session_id,
                respondent_id=current.respondent_id,
                question=reviewed.question_number,
                requirement=reviewed.requirement_index,
                score=reviewed.ai_score,
            )
        return reviewed

    def _ensure_scorable(self, session: Session) -> None:
        if session.status != "active":
            return
        phase = machine.current_phase(session, self.catalog)
        if phase.state != "ready_for_scoring":
            raise InvalidTransition("The interview still has open questions", code="interview_incomplete")

    def _save(self, updated: Session, loaded: Session) -> Session:
        return self._store.save(updated, expected_version=loaded.version)

    @contextmanager
    def _session_lock(self, session_id: str) -> Iterator[None]:
        # Entries live only while some caller holds or waits on the lock
        with self._locks_guard:
            entry = self._locks.setdefault(session_id, _LockEntry())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[session_id]


__all__ = ["FileUpload", "InterviewService", "Scorer", "SessionRepository"]
