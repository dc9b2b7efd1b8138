import pytest

from interview_session import (
    EvidenceSubmission,
    InvalidTransition,
    Session,
    ValidationError,
)
from interview_session import machine


def _started() -> Session:
    return Session(respondent_id="r1", version=1)


def _file(question_number: int, requirement_index: int) -> EvidenceSubmission:
    return EvidenceSubmission(
        question_number=question_number,
        requirement_index=requirement_index,
        kind="file",
        file_ref="uploads/x/policy.pdf",
        filename="policy.pdf",
    )


def _with_feedback(session: Session, question_number: int, requirement_index: int) -> Session:
    active = session.active_submission(question_number, requirement_index)
    reviewed = active.model_copy(
        update={"feedback": "Score: Robust (3/5)", "ai_score": 3, "review_outcome": "ai-feedback-received"}
    )
    return machine.update_submission(session, reviewed)


def _submit_and_accept(session: Session, catalog, question_number: int, requirement_index: int) -> Session:
    session, _ = machine.record_submission(session, catalog, _file(question_number, requirement_index))
    session = _with_feedback(session, question_number, requirement_index)
    return machine.resolve_requirement(session, catalog, question_number, requirement_index, "accept")


def test_unsaved_session_is_not_started(scenario_catalog):
    phase = machine.current_phase(Session(respondent_id="r1"), scenario_catalog)
    assert phase.state == "not_started"


def test_first_phase_asks_first_question(scenario_catalog):
    phase = machine.current_phase(_started(), scenario_catalog)
    assert phase.state == "asking_question"
    assert phase.question_number == 1


def test_yes_with_requirements_opens_upload_flow(scenario_catalog):
    session, kind = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")

    assert kind == "answer_recorded"
    assert session.current_index == 0
    phase = machine.current_phase(session, scenario_catalog)
    assert phase.state == "awaiting_upload"
    assert phase.requirement_index == 0
    assert phase.requirement == "OHS Policy Document"
    assert phase.upload_state == "awaiting_submission"


def test_no_on_disqualifying_question_ends_session(scenario_catalog):
    session, kind = machine.apply_answer(_started(), scenario_catalog, 1, "No")

    assert kind == "disqualified"
    assert session.status == "disqualified"
    phase = machine.current_phase(session, scenario_catalog)
    assert phase.state == "disqualified"
    assert "ISO 45001" in phase.message

    with pytest.raises(InvalidTransition) as exc:
        machine.apply_answer(session, scenario_catalog, 2, "Yes")
    assert exc.value.code == "session_disqualified"


def test_question_without_requirements_advances(scenario_catalog):
    session = _submit_and_accept(machine.apply_answer(_started(), scenario_catalog, 1, "Yes")[0], scenario_catalog, 1, 0)
    session = _submit_and_accept(session, scenario_catalog, 1, 1)
    assert session.current_index == 1

    session, _ = machine.apply_answer(session, scenario_catalog, 2, "Yes")
    assert session.current_index == 2
    assert machine.current_phase(session, scenario_catalog).question_number == 3


def test_rejects_bad_answers(scenario_catalog):
    with pytest.raises(ValidationError) as exc:
        machine.apply_answer(_started(), scenario_catalog, 1, "Maybe")
    assert exc.value.code == "invalid_answer"

    with pytest.raises(ValidationError) as exc:
        machine.apply_answer(_started(), scenario_catalog, 42, "Yes")
    assert exc.value.code == "unknown_question"

    with pytest.raises(InvalidTransition) as exc:
        machine.apply_answer(_started(), scenario_catalog, 3, "Yes")
    assert exc.value.code == "not_current_question"


def test_accept_needs_feedback_but_escalate_does_not(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session, _ = machine.record_submission(session, scenario_catalog, _file(1, 0))

    with pytest.raises(InvalidTransition) as exc:
        machine.resolve_requirement(session, scenario_catalog, 1, 0, "accept")
    assert exc.value.code == "feedback_pending"

    escalated = machine.resolve_requirement(session, scenario_catalog, 1, 0, "escalate")
    assert escalated.active_submission(1, 0).review_outcome == "escalated"
    assert machine.current_phase(escalated, scenario_catalog).requirement_index == 1


def test_requirements_must_be_handled_in_order(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")

    with pytest.raises(InvalidTransition) as exc:
        machine.record_submission(session, scenario_catalog, _file(1, 1))
    assert exc.value.code == "not_current_requirement"


def test_index_waits_for_every_requirement(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session = _submit_and_accept(session, scenario_catalog, 1, 0)
    assert session.current_index == 0

    session = _submit_and_accept(session, scenario_catalog, 1, 1)
    assert session.current_index == 1
    assert machine.current_phase(session, scenario_catalog).state == "asking_question"


def test_resubmission_supersedes_previous_attempt(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session, first = machine.record_submission(session, scenario_catalog, _file(1, 0))
    session, second = machine.record_submission(session, scenario_catalog, _file(1, 0))

    assert (first.attempt, second.attempt) == (1, 2)
    assert session.active_submission(1, 0).submission_id == second.submission_id
    assert session.find_submission(first.submission_id).superseded is True


def test_terminal_requirement_blocks_new_submission(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session = _submit_and_accept(session, scenario_catalog, 1, 0)

    with pytest.raises(InvalidTransition):
        machine.record_submission(session, scenario_catalog, _file(1, 0))


def test_revision_discards_later_progress(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session = _submit_and_accept(session, scenario_catalog, 1, 0)
    session = _submit_and_accept(session, scenario_catalog, 1, 1)
    session, _ = machine.apply_answer(session, scenario_catalog, 2, "No")
    assert session.current_index == 2

    revised, kind = machine.apply_answer(session, scenario_catalog, 1, "Yes")

    assert kind == "answer_revised"
    assert revised.current_index == 0
    assert [a.question_number for a in revised.answers] == [1]
    assert all(item.superseded for item in revised.evidence)
    assert machine.current_phase(revised, scenario_catalog).requirement_index == 0

    # History rows keep counting so attempts stay unique
    revised, again = machine.record_submission(revised, scenario_catalog, _file(1, 0))
    assert again.attempt == 2


def test_revision_to_no_disqualifies(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session = _submit_and_accept(session, scenario_catalog, 1, 0)

    revised, kind = machine.apply_answer(session, scenario_catalog, 1, "No")
    assert kind == "disqualified"
    assert revised.status == "disqualified"


def test_index_only_moves_forward_without_revision(scenario_catalog):
    session = _started()
    seen = [session.current_index]
    session, _ = machine.apply_answer(session, scenario_catalog, 1, "Yes")
    seen.append(session.current_index)
    for idx in range(2):
        session = _submit_and_accept(session, scenario_catalog, 1, idx)
        seen.append(session.current_index)
    for number in (2, 3):
        session, _ = machine.apply_answer(session, scenario_catalog, number, "Yes")
        seen.append(session.current_index)

    assert seen == sorted(seen)
    assert machine.current_phase(session, scenario_catalog).state == "ready_for_scoring"


def test_appeals_escalate_after_limit(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session, _ = machine.record_submission(session, scenario_catalog, _file(1, 0))
    session = _with_feedback(session, 1, 0)

    session, escalated = machine.register_appeal(session, scenario_catalog, 1, 0, "The policy is signed", max_appeals=2)
    assert escalated is False
    assert session.active_submission(1, 0).appeals == ["The policy is signed"]

    session, escalated = machine.register_appeal(session, scenario_catalog, 1, 0, "Page 2 shows it", max_appeals=2)
    assert escalated is True
    assert session.active_submission(1, 0).review_outcome == "escalated"
    assert machine.current_phase(session, scenario_catalog).requirement_index == 1

    with pytest.raises(ValidationError):
        machine.register_appeal(session, scenario_catalog, 1, 1, "  ", max_appeals=2)


def test_mark_completed_needs_finished_catalog(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    with pytest.raises(InvalidTransition) as exc:
        machine.mark_completed(session, scenario_catalog)
    assert exc.value.code == "interview_incomplete"

    disqualified, _ = machine.apply_answer(_started(), scenario_catalog, 1, "No")
    assert machine.mark_completed(disqualified, scenario_catalog).status == "disqualified"


def test_review_items_and_transcript(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session = _submit_and_accept(session, scenario_catalog, 1, 0)

    items = machine.review_items(session, scenario_catalog)
    assert [item.question_number for item in items] == [1, 2, 3]
    assert items[0].answer == "Yes"
    assert len(items[0].evidence) == 1
    assert items[1].answer is None

    pairs = machine.transcript(session, scenario_catalog)
    assert [(q.number, a.value) for q, a in pairs] == [(1, "Yes")]


def test_auditor_file_only_for_escalated(scenario_catalog):
    session, _ = machine.apply_answer(_started(), scenario_catalog, 1, "Yes")
    session, _ = machine.record_submission(session, scenario_catalog, _file(1, 0))

    with pytest.raises(InvalidTransition) as exc:
        machine.attach_auditor_file(session, 1, 0, "auditor/x.pdf")
    assert exc.value.code == "not_escalated"

    session = machine.resolve_requirement(session, scenario_catalog, 1, 0, "escalate")
    assert session.active_submission(1, 0).sub_state == "pending_auditor_upload"
    session = machine.attach_auditor_file(session, 1, 0, "auditor/x.pdf")
    assert session.active_submission(1, 0).sub_state == "escalated"
