from __future__ import annotations  # PDF rendering for assessment reports

import os
from datetime import datetime
from typing import Any, List, Optional, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .models import AssessmentReport, ReportRow


Color = Tuple[int, int, int]

FONT_DIR = "/usr/share/fonts/truetype/dejavu"
BRAND: Color = (20, 120, 90)
INK: Color = (34, 34, 34)
GREY: Color = (110, 110, 110)
HAIRLINE: Color = (225, 225, 225)
TINT: Color = (240, 249, 245)

OUTCOME_LABELS = {
    "accepted": "Accepted",
    "escalated": "Escalated to auditor",
    "ai-feedback-received": "Awaiting decision",
    "pending": "Pending review",
}


def _stamp(value: Optional[str]) -> str:  # ISO timestamp as "18 Oct 2026, 09:30 UTC"
    if not value:
        return "-"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return moment.strftime("%d %b %Y, %H:%M UTC")


class AssessmentPDF(FPDF):
    def __init__(self, title: str) -> None:
        super().__init__()
        self.title_line = title
        self.face = "Helvetica"
        self.has_unicode_font = False
        regular = os.path.join(FONT_DIR, "DejaVuSans.ttf")
        bold = os.path.join(FONT_DIR, "DejaVuSans-Bold.ttf")
        if os.path.exists(regular) and os.path.exists(bold):
            self.add_font("DejaVu", "", regular)
            self.add_font("DejaVu", "B", bold)
            self.face, self.has_unicode_font = "DejaVu", True
        self.set_margins(15, 26, 15)
        self.set_auto_page_break(auto=True, margin=15)
        self.alias_nb_pages()

    def clean(self, text: Any) -> str:  # Helvetica is latin-1 only
        value = "" if text is None else str(text)
        return value if self.has_unicode_font else value.encode("latin-1", "replace").decode("latin-1")

    def pen(self, size: float, *, bold: bool = False, color: Color = INK) -> None:
        self.set_font(self.face, "B" if bold else "", size)
        self.set_text_color(*color)

    def rule(self, color: Color = HAIRLINE, weight: float = 0.2) -> None:
        y = self.get_y()
        self.set_draw_color(*color)
        self.set_line_width(weight)
        self.line(self.l_margin, y, self.l_margin + self.epw, y)

    def header(self) -> None:
        if self.page_no() == 1:
            self.set_fill_color(*BRAND)
            self.rect(0, 0, self.w, 20, style="F")
            self.set_xy(self.l_margin, 6)
            self.pen(16, bold=True, color=(255, 255, 255))
            self.multi_cell(self.epw, 8, self.clean(self.title_line))
        else:
            self.set_xy(self.l_margin, 8)
            self.pen(11, bold=True, color=GREY)
            self.multi_cell(self.epw, 6, self.clean(self.title_line))
            self.rule(BRAND, 0.4)
        self.ln(5)

    def footer(self) -> None:
        self.set_y(-12)
        self.rule()
        self.pen(9, color=GREY)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")

    def heading(self, text: str) -> None:
        self.set_x(self.l_margin)
        self.pen(13, bold=True)
        self.cell(0, 9, self.clean(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.rule()
        self.ln(2)

    def para(self, text: str, *, size: float = 11, color: Color = INK, bold: bool = False) -> None:
        self.set_x(self.l_margin)
        self.pen(size, bold=bold, color=color)
        self.multi_cell(self.epw, 6, self.clean(text))

    def facts(self, pairs: List[Tuple[str, str]]) -> None:  # Label/value lines
        for label, value in pairs:
            self.set_x(self.l_margin)
            self.pen(10, color=GREY)
            self.cell(40, 6, self.clean(label))
            self.pen(11, bold=True)
            self.cell(0, 6, self.clean(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

    def score_strip(self, label: str, value: str) -> None:
        top = self.get_y()
        self.set_fill_color(*TINT)
        self.rect(self.l_margin, top, self.epw, 14, style="F")
        self.set_xy(self.l_margin + 6, top + 4)
        self.pen(10, color=GREY)
        self.cell(self.epw / 2, 6, self.clean(label))
        self.pen(14, bold=True, color=BRAND)
        self.cell(self.epw / 2 - 12, 6, self.clean(value), align="R")
        self.set_y(top + 17)

    def bullet_list(self, title: str, items: List[str]) -> None:
        mark = "•" if self.has_unicode_font else "-"
        self.para(title, bold=True)
        if not items:
            self.para("None reported.", size=10, color=GREY)
        for item in items:
            self.para(f"{mark} {item}", size=10)
        self.ln(1)


def _question(pdf: AssessmentPDF, row: ReportRow) -> None:
    pdf.para(f"Q{row.question_number}. {row.question_text}", size=10, bold=True, color=BRAND)
    pdf.para(f"Answer: {row.answer}", size=10)
    for item in row.requirements:
        outcome = OUTCOME_LABELS.get(item.outcome, item.outcome)
        score = f" - {item.ai_score}/5" if item.ai_score else ""
        pdf.para(f"{item.requirement}: {outcome}{score}", size=9, color=GREY)
    pdf.ln(1)
    pdf.rule()
    pdf.ln(3)


def generate_assessment_pdf(report: AssessmentReport) -> bytes:
    """Render ``report`` as a PDF document and return its bytes."""

    subject = report.company_name or report.email or report.respondent_id
    pdf = AssessmentPDF(f"{subject} - OHS Compliance Assessment")
    pdf.add_page()

    pdf.heading("Overview")
    pdf.facts(
        [
            ("Respondent", report.respondent_id),
            ("Email", report.email or "-"),
            ("Status", report.status.title()),
            ("Generated", _stamp(report.generated_at)),
        ]
    )

    pdf.heading("Summary")
    scoring = report.scoring
    if scoring is None:
        pdf.para("This session has not been scored yet.", color=GREY)
    else:
        pdf.score_strip("AI score", "Not scored" if scoring.score is None else f"{scoring.score:.0f}/100")
        if scoring.evidence_percentage is not None:
            pdf.score_strip("Evidence score", f"{scoring.evidence_percentage}%")
        if scoring.structured:
            pdf.bullet_list("Strengths", scoring.strengths)
            pdf.bullet_list("Weaknesses", scoring.weaknesses)
            pdf.bullet_list("Recommendations", scoring.recommendations)
        else:
            pdf.para(scoring.summary)
    pdf.ln(2)

    pdf.heading("Answers and Evidence")
    if not report.rows:
        pdf.para("No answers recorded for this session.", size=10, color=GREY)
    for row in report.rows:
        _question(pdf, row)

    return bytes(pdf.output())


__all__ = ["AssessmentPDF", "generate_assessment_pdf"]
