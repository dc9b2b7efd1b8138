from __future__ import annotations  # Error taxonomy for the interview core


class InterviewError(RuntimeError):  # Base error carrying a machine-readable reason code
    code = "interview_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code:
            self.code = code

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(InterviewError):  # Missing or malformed input, rejected before persistence
    code = "validation_error"


class InvalidTransition(InterviewError):  # Action not allowed in the current session state
    code = "invalid_transition"


class ConcurrentUpdate(InvalidTransition):  # Stored session changed since it was loaded
    code = "concurrent_update"


class RecordNotFound(InterviewError):  # Lookup by id found nothing
    code = "not_found"


class SessionNotFound(RecordNotFound):
    code = "session_not_found"


class UpstreamServiceError(InterviewError):  # Reviewer, evaluator or scorer unreachable or unparseable
    code = "upstream_unavailable"


class PersistenceError(InterviewError):  # Store unavailable; the operation left no partial state
    code = "persistence_unavailable"


__all__ = [
    "ConcurrentUpdate",
    "InterviewError",
    "InvalidTransition",
    "PersistenceError",
    "RecordNotFound",
    "SessionNotFound",
    "UpstreamServiceError",
    "ValidationError",
]
