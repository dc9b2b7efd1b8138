"""Scoring request builder and reply interpreter for finished interviews."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from catalog import QuestionCatalog
from config import LlmRoute
from interview_session.errors import UpstreamServiceError
from interview_session.machine import transcript
from interview_session.models import ScoringResult, Session
from llm_gateway import HttpClient, LlmGatewayError, strip_code_fences
from llm_gateway import runnable as llm_runnable
from review_agents.bands import evidence_percentage

logger = logging.getLogger(__name__)

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")
NO_SUMMARY = "No summary available."
SCORER_GUIDANCE = "You are a supplier compliance auditor. Reply with JSON only."


class TranscriptEntry(BaseModel):  # One answered question as sent to the scorer
    question_number: int
    question_text: str
    answer: str
    document_reviews: List[str] = Field(default_factory=list)
    skip_reasons: List[str] = Field(default_factory=list)


def build_transcript(session: Session, catalog: QuestionCatalog) -> List[TranscriptEntry]:
    """Answered questions in catalog order with their live evidence feedback.

    A disqualified session only carries the answers collected before
    disqualification, since nothing later was ever recorded.
    """

    entries: List[TranscriptEntry] = []
    for question, answer in transcript(session, catalog):
        reviews: List[str] = []
        skips: List[str] = []
        for item in session.submissions_for(question.number):
            if item.kind == "skip" and item.justification:
                skips.append(item.justification)
            elif item.feedback:
                reviews.append(item.feedback)
        entries.append(
            TranscriptEntry(
                question_number=question.number,
                question_text=question.text,
                answer=answer.value,
                document_reviews=reviews,
                skip_reasons=skips,
            )
        )
    return entries


def build_prompt(entries: List[TranscriptEntry]) -> str:
    lines = ["You are a supplier compliance auditor. Here is a supplier's interview session:", ""]
    for entry in entries:
        lines.append(f"Question {entry.question_number}: {entry.question_text}")
        lines.append(f"Answer: {entry.answer}")
        for review in entry.document_reviews:
            lines.append(f"Document Review: {review}")
        for reason in entry.skip_reasons:
            lines.append(f"Skipped/Reason: {reason}")
        lines.append("")
    lines.append(
        """Summarize this supplier's OHS compliance in under 10 sentences.

- List "strengths" (>=1 or "None").
- List "weaknesses" (>=1 or "None").
- List "recommendations" (>=1 or "None").
- Give a score (0-100).

Return JSON:
{
  "feedback": {
    "strengths": [ ... ],
    "weaknesses": [ ... ],
    "recommendations": [ ... ]
  },
  "score": <number>
}"""
    )
    return "\n".join(lines)


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


def _first_list(*candidates: Any) -> List[str]:
    for candidate in candidates:
        items = _string_list(candidate)
        if items:
            return items
    return []


def _coerce_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(min(100.0, max(0.0, value)))


def _render_summary(strengths: List[str], weaknesses: List[str], recommendations: List[str]) -> str:
    def section(title: str, items: List[str]) -> str:
        body = "\n".join(f"- {item}" for item in items) if items else "No data provided."
        return f"{title}:\n{body}"

    return "\n\n".join(
        [
            section("Strengths", strengths),
            section("Weaknesses", weaknesses),
            section("Recommendations", recommendations),
        ]
    )


def interpret(raw: Optional[str], *, evidence_pct: Optional[int] = None) -> ScoringResult:
    """Turn a scorer reply into a :class:`ScoringResult`; never raises.

    Structured replies may nest the lists under ``feedback`` or put them
    at the top level, and ``suggestions`` is accepted for
    ``recommendations``. Anything else becomes an opaque summary with no
    numeric score.
    """

    text = strip_code_fences(raw or "")
    data: Any = None
    match = _JSON_BLOCK_RE.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except ValueError:
            data = None
    if isinstance(data, dict):
        feedback = data.get("feedback") if isinstance(data.get("feedback"), dict) else {}
        strengths = _first_list(feedback.get("strengths"), data.get("strengths"))
        weaknesses = _first_list(feedback.get("weaknesses"), data.get("weaknesses"))
        recommendations = _first_list(
            feedback.get("recommendations"),
            feedback.get("suggestions"),
            data.get("recommendations"),
            data.get("suggestions"),
        )
        score = _coerce_score(data.get("score"))
        if strengths or weaknesses or recommendations or score is not None:
            return ScoringResult(
                summary=_render_summary(strengths, weaknesses, recommendations),
                strengths=strengths,
                weaknesses=weaknesses,
                recommendations=recommendations,
                score=score,
                structured=True,
                evidence_percentage=evidence_pct,
            )
    logger.info("Scorer reply was not structured; keeping it as an opaque summary")
    return ScoringResult(
        summary=text.strip() or NO_SUMMARY,
        structured=False,
        degraded_reason="unstructured_reply",
        evidence_percentage=evidence_pct,
    )


def session_evidence_percentage(session: Session) -> Optional[int]:
    return evidence_percentage(item.feedback for item in session.evidence if not item.superseded)


class LlmScorer:
    """Scores a finished session through the summarization model."""

    def __init__(self, *, route: LlmRoute, client: Optional[HttpClient] = None) -> None:
        prompt = ChatPromptTemplate.from_messages([("system", SCORER_GUIDANCE), ("human", "{transcript}")])
        self._chain = prompt | llm_runnable(route, client=client)

    def score(self, session: Session, catalog: QuestionCatalog) -> ScoringResult:
        transcript_text = build_prompt(build_transcript(session, catalog))
        try:
            reply = self._chain.invoke({"transcript": transcript_text})
        except LlmGatewayError as exc:
            raise UpstreamServiceError(f"Scoring service unavailable: {exc}") from exc
        return interpret(reply, evidence_pct=session_evidence_percentage(session))


__all__ = [
    "LlmScorer",
    "TranscriptEntry",
    "build_prompt",
    "build_transcript",
    "interpret",
    "session_evidence_percentage",
]
