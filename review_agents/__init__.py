"""Automated reviewers for evidence documents and missing-document justifications."""
from .bands import evidence_percentage, extract_band_scores, first_band_score
from .document_reviewer import NO_CONTENT_FEEDBACK, LlmDocumentReviewer
from .extraction import extract_text
from .reason_evaluator import LlmReasonEvaluator

__all__ = [
    "LlmDocumentReviewer",
    "LlmReasonEvaluator",
    "NO_CONTENT_FEEDBACK",
    "evidence_percentage",
    "extract_band_scores",
    "extract_text",
    "first_band_score",
]
