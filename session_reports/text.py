from __future__ import annotations  # Plain-text rendering of an assessment report

from typing import List

from .models import AssessmentReport


def _score_label(report: AssessmentReport) -> str:
    scoring = report.scoring
    if scoring is None or scoring.score is None:
        return "Not scored"
    return f"{scoring.score:.0f}/100"


def render_text_report(report: AssessmentReport) -> str:
    """Render the report as plain text, e.g. for an email body."""

    lines: List[str] = [
        "OHS Supplier Compliance Assessment",
        "",
        f"Respondent: {report.respondent_id}",
        f"Email: {report.email or '-'}",
    ]
    if report.company_name:
        lines.append(f"Company: {report.company_name}")
    lines += [f"Status: {report.status}", f"AI score: {_score_label(report)}"]
    if report.scoring and report.scoring.evidence_percentage is not None:
        lines.append(f"Evidence score: {report.scoring.evidence_percentage}%")
    lines += ["", "Summary", "-------", report.scoring.summary if report.scoring else "No summary available.", ""]
    lines += ["Answers", "-------"]
    for row in report.rows:
        lines.append(f"Q{row.question_number}. {row.question_text}")
        lines.append(f"   Answer: {row.answer}")
        for item in row.requirements:
            score = f" ({item.ai_score}/5)" if item.ai_score else ""
            lines.append(f"   - {item.requirement}: {item.outcome}{score}")
    return "\n".join(lines).rstrip() + "\n"


__all__ = ["render_text_report"]
