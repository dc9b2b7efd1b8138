from __future__ import annotations  # Assessment report package exports

from .models import AssessmentReport, ReportRow, RequirementLine, build_report
from .pdf import generate_assessment_pdf
from .text import render_text_report

__all__ = [
    "AssessmentReport",
    "ReportRow",
    "RequirementLine",
    "build_report",
    "generate_assessment_pdf",
    "render_text_report",
]
