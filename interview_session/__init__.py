"""Compliance interview session state machine and service facade."""
from .errors import (
    ConcurrentUpdate,
    InterviewError,
    InvalidTransition,
    PersistenceError,
    RecordNotFound,
    SessionNotFound,
    UpstreamServiceError,
    ValidationError,
)
from .models import (
    Answer,
    EvidenceSubmission,
    ReviewItem,
    ScoringResult,
    Session,
    SessionPhase,
)
from .uploads import (
    BlobStorage,
    CompanyDirectory,
    DocumentReviewer,
    DocumentReviewRequest,
    ReasonEvaluator,
    ReasonReviewRequest,
    ReviewFeedback,
    UploadController,
)
from .service import FileUpload, InterviewService, Scorer, SessionRepository

__all__ = [
    "Answer",
    "BlobStorage",
    "CompanyDirectory",
    "ConcurrentUpdate",
    "DocumentReviewRequest",
    "DocumentReviewer",
    "EvidenceSubmission",
    "FileUpload",
    "InterviewError",
    "InterviewService",
    "InvalidTransition",
    "PersistenceError",
    "RecordNotFound",
    "ReasonEvaluator",
    "ReasonReviewRequest",
    "ReviewFeedback",
    "ReviewItem",
    "Scorer",
    "ScoringResult",
    "Session",
    "SessionNotFound",
    "SessionPhase",
    "SessionRepository",
    "UploadController",
    "UpstreamServiceError",
    "ValidationError",
]
