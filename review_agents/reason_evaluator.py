"""LLM-backed evaluation of "document is missing" justifications."""
from __future__ import annotations

from textwrap import dedent
from typing import Optional

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from interview_session.errors import UpstreamServiceError
from interview_session.uploads import ReasonReviewRequest, ReviewFeedback
from llm_gateway import HttpClient, LlmGatewayError
from llm_gateway import runnable as llm_runnable

from .bands import first_band_score

EVALUATOR_GUIDANCE = "You are an AI compliance evaluator for supplier OHS vetting."

REASON_TEMPLATE = dedent(
    """
    A supplier was asked to submit the following requirement:
    "{requirement}"

    However, they responded that they don't have it. Their reason was:
    "{reason}"

    You must:
    1. Decide if the reason reasonably justifies the absence of the document.
    2. Provide a temporary compliance score using ONLY: Fully Compliant (5/5), Strong (4/5), Moderate (3/5), Weak (2/5), Not Compliant (1/5)
    3. Give a short recommendation to improve.

    Format:
    Score: [exactly one of the allowed scores]
    Justification: [your decision]
    Suggestion: [1-2 sentence recommendation]
    """
).strip()


class LlmReasonEvaluator:
    def __init__(self, *, route: LlmRoute, client: Optional[HttpClient] = None) -> None:
        prompt = ChatPromptTemplate.from_messages([("system", EVALUATOR_GUIDANCE), ("human", REASON_TEMPLATE)])
        self._chain = prompt | llm_runnable(route, client=client)

    def evaluate_reason(self, request: ReasonReviewRequest) -> ReviewFeedback:
        try:
            reply = self._chain.invoke({"requirement": request.requirement, "reason": request.justification})
        except LlmGatewayError as exc:
            raise UpstreamServiceError(f"Justification review unavailable: {exc}") from exc
        return ReviewFeedback(feedback=reply.strip(), score=first_band_score(reply, lenient=True))


__all__ = ["LlmReasonEvaluator"]
