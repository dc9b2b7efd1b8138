from interview_session import Answer, EvidenceSubmission, ScoringResult, Session
from session_reports import build_report, generate_assessment_pdf, render_text_report


def _session(scoring=None) -> Session:
    return Session(
        session_id="s1",
        respondent_id="r1",
        email="ops@acme.test",
        status="completed",
        version=5,
        answers=[Answer(question_number=1, value="Yes"), Answer(question_number=2, value="No")],
        evidence=[
            EvidenceSubmission(
                question_number=1,
                requirement_index=0,
                kind="file",
                requirement="OHS Policy Document",
                feedback="Score: Commitment (4/5)",
                ai_score=4,
                review_outcome="accepted",
            ),
            EvidenceSubmission(
                question_number=1,
                requirement_index=1,
                kind="skip",
                requirement="Evidence of communication",
                justification="Lost during the office move (déménagement)",
                review_outcome="escalated",
            ),
        ],
        scoring=scoring,
    )


def test_build_report_rows(scenario_catalog):
    report = build_report(_session(), scenario_catalog, company_name="Acme")

    assert report.company_name == "Acme"
    assert [row.question_number for row in report.rows] == [1, 2]
    assert [line.outcome for line in report.rows[0].requirements] == ["accepted", "escalated"]
    assert report.rows[0].requirements[1].feedback.startswith("Lost")


def test_text_report_for_unscored_reply(scenario_catalog):
    scoring = ScoringResult(summary="Looks broadly compliant.", evidence_percentage=80)
    text = render_text_report(build_report(_session(scoring), scenario_catalog))

    assert "AI score: Not scored" in text
    assert "Evidence score: 80%" in text
    assert "Looks broadly compliant." in text
    assert "   - OHS Policy Document: accepted (4/5)" in text


def test_pdf_renders_structured_and_unscored(scenario_catalog):
    structured = ScoringResult(
        summary="Strengths:\n- Policy",
        strengths=["Policy"],
        weaknesses=["No drills"],
        score=72.0,
        structured=True,
    )
    for scoring in (structured, None):
        payload = generate_assessment_pdf(build_report(_session(scoring), scenario_catalog, company_name="Acme"))
        assert payload.startswith(b"%PDF")
        assert len(payload) > 500
