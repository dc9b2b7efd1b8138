"""Pure transition functions for the interview session state machine.

Every function takes a :class:`Session` and returns a new one; nothing
here touches storage or the network, so the service layer can persist
the result of a transition as a single unit.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from catalog import ANSWER_VALUES, Question, QuestionCatalog

from .errors import InvalidTransition, ValidationError
from .models import (
    Answer,
    Decision,
    EvidenceSubmission,
    ReviewItem,
    Session,
    SessionPhase,
    utcnow,
)


def current_phase(session: Session, catalog: QuestionCatalog) -> SessionPhase:
    """Derive the state-machine position from persisted session data."""

    if session.status == "completed":
        return SessionPhase(state="completed", message="The assessment is complete.")
    if session.status == "disqualified":
        question = _question_at(catalog, session.current_index)
        return SessionPhase(
            state="disqualified",
            question_index=session.current_index,
            question_number=question.number if question else None,
            message=(question.consequence if question and question.consequence else None)
            or "The supplier has been disqualified.",
        )
    if session.version == 0:
        return SessionPhase(state="not_started")
    index = session.current_index
    if index >= len(catalog):
        return SessionPhase(state="ready_for_scoring", question_index=index)
    question = catalog.at(index)
    answer = session.answer_for(question.number)
    if answer is not None and question.requires_evidence(answer.value):
        open_idx = _open_requirement(session, question)
        if open_idx is not None:
            active = session.active_submission(question.number, open_idx)
            return SessionPhase(
                state="awaiting_upload",
                question_index=index,
                question_number=question.number,
                question_text=question.text,
                requirement_index=open_idx,
                requirement=question.requirements[open_idx],
                upload_state=active.sub_state if active else "awaiting_submission",
            )
    return SessionPhase(
        state="asking_question",
        question_index=index,
        question_number=question.number,
        question_text=question.text,
    )


def apply_answer(
    session: Session,
    catalog: QuestionCatalog,
    question_number: int,
    value: str,
) -> Tuple[Session, str]:
    """Record an answer, or revise an earlier one, and advance.

    Returns the new session and the event kind (``answer_recorded``,
    ``answer_revised`` or ``disqualified``).
    """

    _ensure_open(session)
    if value not in ANSWER_VALUES:
        raise ValidationError(f"Answer must be one of {list(ANSWER_VALUES)}", code="invalid_answer")
    if not catalog.has(question_number):
        raise ValidationError(f"Unknown question {question_number}", code="unknown_question")
    index = catalog.index_of(question_number)
    phase = current_phase(session, catalog)
    revising = False
    if index == session.current_index and phase.state == "asking_question":
        working = session
    elif index <= session.current_index and session.answer_for(question_number) is not None:
        working = _discard_from(session, catalog, index)
        revising = True
    else:
        raise InvalidTransition(
            f"Question {question_number} is not the current question",
            code="not_current_question",
        )

    question = catalog.at(index)
    answers = [item for item in working.answers if item.question_number != question_number]
    answers.append(Answer(question_number=question_number, value=value))
    answers.sort(key=lambda item: catalog.index_of(item.question_number))
    update = {"answers": answers, "current_index": index, "updated_at": utcnow()}

    if question.disqualifies(value):
        update["status"] = "disqualified"
        return working.model_copy(update=update), "disqualified"
    if not question.requires_evidence(value):
        update["current_index"] = index + 1
    return working.model_copy(update=update), ("answer_revised" if revising else "answer_recorded")


def record_submission(
    session: Session,
    catalog: QuestionCatalog,
    submission: EvidenceSubmission,
) -> Tuple[Session, EvidenceSubmission]:
    """Attach a new evidence attempt to the open requirement.

    A previous non-terminal attempt for the same requirement is
    superseded (re-upload); a terminal one blocks the submission.
    """

    _ensure_open(session)
    require_open_requirement(session, catalog, submission.question_number, submission.requirement_index)
    active = session.active_submission(submission.question_number, submission.requirement_index)
    evidence = list(session.evidence)
    # Attempts keep counting across revisions so history rows stay unique
    attempt = 1 + max(
        (
            item.attempt
            for item in session.evidence
            if item.question_number == submission.question_number
            and item.requirement_index == submission.requirement_index
        ),
        default=0,
    )
    if active is not None:
        evidence = [
            item.model_copy(update={"superseded": True, "updated_at": utcnow()})
            if item.submission_id == active.submission_id
            else item
            for item in evidence
        ]
    question = catalog.get(submission.question_number)
    stored = submission.model_copy(
        update={
            "attempt": attempt,
            "requirement": question.requirements[submission.requirement_index],
        }
    )
    evidence.append(stored)
    return session.model_copy(update={"evidence": evidence, "updated_at": utcnow()}), stored


def update_submission(session: Session, submission: EvidenceSubmission) -> Session:
    """Replace a stored submission by id, bumping its ``updated_at``."""

    if session.find_submission(submission.submission_id) is None:
        raise InvalidTransition("Submission no longer exists", code="unknown_submission")
    refreshed = submission.model_copy(update={"updated_at": utcnow()})
    evidence = [refreshed if item.submission_id == submission.submission_id else item for item in session.evidence]
    return session.model_copy(update={"evidence": evidence, "updated_at": utcnow()})


def resolve_requirement(
    session: Session,
    catalog: QuestionCatalog,
    question_number: int,
    requirement_index: int,
    decision: Decision,
) -> Session:
    """Accept the automated feedback or escalate to a human auditor."""

    _ensure_open(session)
    require_open_requirement(session, catalog, question_number, requirement_index)
    active = session.active_submission(question_number, requirement_index)
    if active is None:
        raise InvalidTransition("Nothing has been submitted for this requirement", code="no_submission")
    if decision == "accept":
        if active.review_outcome != "ai-feedback-received":
            raise InvalidTransition("No automated feedback to accept yet", code="feedback_pending")
        outcome = "accepted"
    elif decision == "escalate":
        outcome = "escalated"
    else:
        raise ValidationError(f"Unknown decision '{decision}'", code="invalid_decision")
    resolved = active.model_copy(update={"review_outcome": outcome})
    return advance_if_complete(update_submission(session, resolved), catalog)


def register_appeal(
    session: Session,
    catalog: QuestionCatalog,
    question_number: int,
    requirement_index: int,
    argument: str,
    *,
    max_appeals: int,
) -> Tuple[Session, bool]:
    """Log a disagreement with the feedback; escalate once appeals run out."""

    _ensure_open(session)
    if not argument or not argument.strip():
        raise ValidationError("A disagreement needs an argument", code="missing_argument")
    require_open_requirement(session, catalog, question_number, requirement_index)
    active = session.active_submission(question_number, requirement_index)
    if active is None or active.review_outcome != "ai-feedback-received":
        raise InvalidTransition("There is no feedback to disagree with", code="feedback_pending")
    appeals = list(active.appeals) + [argument.strip()]
    escalated = len(appeals) >= max_appeals
    update = {"appeals": appeals}
    if escalated:
        update["review_outcome"] = "escalated"
    updated = update_submission(session, active.model_copy(update=update))
    if escalated:
        updated = advance_if_complete(updated, catalog)
    return updated, escalated


def attach_auditor_file(
    session: Session,
    question_number: int,
    requirement_index: int,
    file_ref: str,
) -> Session:
    """Attach a supplementary file for the auditor to an escalated requirement."""

    if session.status == "disqualified":
        raise InvalidTransition("The session is disqualified", code="session_disqualified")
    active = session.active_submission(question_number, requirement_index)
    if active is None or active.review_outcome != "escalated":
        raise InvalidTransition("Requirement has not been escalated", code="not_escalated")
    return update_submission(session, active.model_copy(update={"auditor_file_ref": file_ref}))


def advance_if_complete(session: Session, catalog: QuestionCatalog) -> Session:
    """Move past the current question once every requirement is terminal."""

    index = session.current_index
    if session.status != "active" or index >= len(catalog):
        return session
    question = catalog.at(index)
    answer = session.answer_for(question.number)
    if answer is None or not question.requires_evidence(answer.value):
        return session
    if _open_requirement(session, question) is not None:
        return session
    return session.model_copy(update={"current_index": index + 1, "updated_at": utcnow()})


def mark_completed(session: Session, catalog: QuestionCatalog) -> Session:
    """Close a session that reached the end of the catalog."""

    if session.status == "disqualified":
        return session
    phase = current_phase(session, catalog)
    if phase.state not in ("ready_for_scoring", "completed"):
        raise InvalidTransition("The interview still has open questions", code="interview_incomplete")
    return session.model_copy(update={"status": "completed", "updated_at": utcnow()})


def review_items(session: Session, catalog: QuestionCatalog) -> List[ReviewItem]:
    """List every catalog question with its current answer and evidence."""

    return [
        ReviewItem(
            question_number=question.number,
            question_text=question.text,
            answer=(session.answer_for(question.number).value if session.answer_for(question.number) else None),
            evidence=session.submissions_for(question.number),
        )
        for question in catalog
    ]


def transcript(session: Session, catalog: QuestionCatalog) -> List[Tuple[Question, Answer]]:
    """Answered questions in catalog order."""

    pairs: List[Tuple[Question, Answer]] = []
    for question in catalog:
        answer = session.answer_for(question.number)
        if answer is not None:
            pairs.append((question, answer))
    return pairs


def _ensure_open(session: Session) -> None:
    if session.status == "disqualified":
        raise InvalidTransition("The session is disqualified", code="session_disqualified")
    if session.status == "completed":
        raise InvalidTransition("The session is already completed", code="session_completed")


def require_open_requirement(
    session: Session,
    catalog: QuestionCatalog,
    question_number: int,
    requirement_index: int,
) -> None:
    _ensure_open(session)
    phase = current_phase(session, catalog)
    if (
        phase.state != "awaiting_upload"
        or phase.question_number != question_number
        or phase.requirement_index != requirement_index
    ):
        raise InvalidTransition(
            f"Requirement {requirement_index} of question {question_number} is not awaiting evidence",
            code="not_current_requirement",
        )


def _open_requirement(session: Session, question: Question) -> Optional[int]:
    for idx in range(len(question.requirements)):
        active = session.active_submission(question.number, idx)
        if active is None or not active.is_terminal:
            return idx
    return None


def _discard_from(session: Session, catalog: QuestionCatalog, index: int) -> Session:
    """Drop answers and evidence progress for ``index`` and everything after it."""

    invalidated = {question.number for question in catalog if catalog.index_of(question.number) >= index}
    answers = [item for item in session.answers if item.question_number not in invalidated]
    now = utcnow()
    evidence = [
        item.model_copy(update={"superseded": True, "updated_at": now})
        if item.question_number in invalidated and not item.superseded
        else item
        for item in session.evidence
    ]
    return session.model_copy(update={"answers": answers, "evidence": evidence, "current_index": index})


def _question_at(catalog: QuestionCatalog, index: int) -> Optional[Question]:
    if 0 <= index < len(catalog):
        return catalog.at(index)
    return None


__all__ = [
    "advance_if_complete",
    "apply_answer",
    "attach_auditor_file",
    "current_phase",
    "mark_completed",
    "record_submission",
    "register_appeal",
    "require_open_requirement",
    "resolve_requirement",
    "review_items",
    "transcript",
    "update_submission",
]
