import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalog import Question, QuestionCatalog, ScoringGuide
from config.settings import settings
from interview_session import (
    DocumentReviewRequest,
    ReasonReviewRequest,
    ReviewFeedback,
    ScoringResult,
    Session,
    UpstreamServiceError,
)
from services.scoring import interpret
from services.sessions import build_interview_service
from storage.blobs import LocalBlobStorage
from storage.migrate import migrate


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "BLOB_DIR", os.path.join(td.name, "blobs"), raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


class FakeReviewer:
    def __init__(self, feedback: str = "Summary: looks fine\nScore: Robust (3/5)", score: Optional[int] = 3) -> None:
        self.feedback = feedback
        self.score = score
        self.fail = False
        self.requests: List[DocumentReviewRequest] = []

    def review_document(self, request: DocumentReviewRequest) -> ReviewFeedback:
        self.requests.append(request)
        if self.fail:
            raise UpstreamServiceError("reviewer offline")
        return ReviewFeedback(feedback=self.feedback, score=self.score)


class FakeEvaluator:
    def __init__(self) -> None:
        self.requests: List[ReasonReviewRequest] = []

    def evaluate_reason(self, request: ReasonReviewRequest) -> ReviewFeedback:
        self.requests.append(request)
        return ReviewFeedback(feedback="Score: Moderate (3/5)\nJustification: plausible", score=3)


class FakeScorer:
    """Feeds a canned reply through the real interpreter."""

    def __init__(self, reply: str = '{"feedback": {"strengths": ["Policy"], "weaknesses": ["Training"]}, "score": 72}'):
        self.reply = reply
        self.fail = False
        self.calls: List[Session] = []

    def score(self, session: Session, catalog: QuestionCatalog) -> ScoringResult:
        self.calls.append(session)
        if self.fail:
            raise UpstreamServiceError("scorer offline")
        return interpret(self.reply)


class _LlmResponse:
    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self) -> dict:
        return self._payload


class FakeLlmClient:
    """HTTP client stand-in; an int reply is returned as that status code."""

    def __init__(self, *replies: Union[str, int]) -> None:
        self.replies = list(replies)
        self.payloads: List[dict] = []

    def post(self, url: str, *, json: dict, headers: dict, timeout: float) -> _LlmResponse:
        self.payloads.append(json)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, int):
            return _LlmResponse(reply, {"error": "scripted"})
        return _LlmResponse(200, {"choices": [{"message": {"role": "assistant", "content": reply}}]})

    def prompt(self, index: int = -1) -> str:
        return "\n".join(message["content"] for message in self.payloads[index]["messages"])


@pytest.fixture
def scenario_catalog() -> QuestionCatalog:
    return QuestionCatalog(
        [
            Question(
                number=1,
                text="Do you have a written OHS policy?",
                disqualifies_if_no=True,
                requirements=("OHS Policy Document", "Evidence of communication"),
                scoring=ScoringGuide(robust="Policy exists", offtrack="No policy"),
                consequence="Consider obtaining ISO 45001 certification.",
            ),
            Question(number=2, text="Any OHS infringements in the last three years?"),
            Question(number=3, text="Do you track incidents?"),
        ],
        name="scenario",
    )


@pytest.fixture
def reviewer() -> FakeReviewer:
    return FakeReviewer()


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()


@pytest.fixture
def scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture
def blobs() -> LocalBlobStorage:
    return LocalBlobStorage(settings.BLOB_DIR)


@pytest.fixture
def service(scenario_catalog, reviewer, evaluator, scorer, blobs):
    return build_interview_service(
        settings,
        catalog=scenario_catalog,
        blobs=blobs,
        reviewer=reviewer,
        evaluator=evaluator,
        scorer=scorer,
    )


@pytest.fixture
def make_llm():
    return FakeLlmClient
