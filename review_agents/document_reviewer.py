"""LLM-backed review of uploaded evidence documents."""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import Dict, Optional

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from interview_session.errors import PersistenceError, UpstreamServiceError
from interview_session.uploads import BlobStorage, DocumentReviewRequest, ReviewFeedback
from llm_gateway import HttpClient, LlmGatewayError
from llm_gateway import runnable as llm_runnable

from .bands import first_band_score
from .extraction import extract_text

logger = logging.getLogger(__name__)

NO_CONTENT_FEEDBACK = (
    "No readable content found in uploaded files. "
    "Please upload a clear PDF/IMG/TXT/DOCX with relevant content.\n"
    "Score: Offtrack (1/5)"
)
MAX_DOCUMENT_CHARS = 12000

REVIEWER_GUIDANCE = "You are an OHS compliance auditor."

REVIEW_TEMPLATE = dedent(
    """
    SUPPLIER:
    {company}

    QUESTION:
    {question}

    REQUIREMENT:
    {requirement}

    SCORING GUIDE:
    {guide}

    DOCUMENT TEXT ({filename}):
    {text}

    Return this format:
    Summary: ...
    Missing: ...
    Score: [Stretch (5/5) | Commitment (4/5) | Robust (3/5) | Warning (2/5) | Offtrack (1/5)]
    Recommendation: ...
    """
).strip()


class LlmDocumentReviewer:
    """Reads the stored file, extracts its text and asks the model for a banded verdict."""

    def __init__(
        self,
        *,
        route: LlmRoute,
        blobs: BlobStorage,
        client: Optional[HttpClient] = None,
        max_chars: int = MAX_DOCUMENT_CHARS,
    ) -> None:
        self._route = route
        self._blobs = blobs
        self._max_chars = max_chars
        self._prompt = ChatPromptTemplate.from_messages([("system", REVIEWER_GUIDANCE), ("human", REVIEW_TEMPLATE)])
        self._chain = self._prompt | llm_runnable(route, client=client)

    def prompt_inputs(self, request: DocumentReviewRequest, text: str) -> Dict[str, str]:
        return {
            "company": request.company_name or "(no company profile)",
            "question": request.question_text,
            "requirement": request.requirement,
            "guide": request.scoring_guide or "(no scoring guide)",
            "filename": request.filename,
            "text": text[: self._max_chars],
        }

    def review_document(self, request: DocumentReviewRequest) -> ReviewFeedback:
        try:
            data = self._blobs.read(request.file_ref)
        except OSError as exc:
            raise PersistenceError(f"Stored upload could not be read: {exc}") from exc
        text = extract_text(request.filename, data)
        if not text:
            logger.info("No readable text in %s; skipping model call", request.filename)
            return ReviewFeedback(feedback=NO_CONTENT_FEEDBACK, score=1)
        try:
            reply = self._chain.invoke(self.prompt_inputs(request, text))
        except LlmGatewayError as exc:
            raise UpstreamServiceError(f"Document review unavailable: {exc}") from exc
        return ReviewFeedback(feedback=reply.strip(), score=first_band_score(reply))


__all__ = ["LlmDocumentReviewer", "NO_CONTENT_FEEDBACK"]
