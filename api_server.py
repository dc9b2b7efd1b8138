from __future__ import annotations  # FastAPI server exposing the compliance interview

import logging
from typing import Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router
from api.schemas import ErrorResp
from auditing import AuditorLedger
from config.settings import settings
from interview_session import (
    InterviewError,
    InterviewService,
    InvalidTransition,
    PersistenceError,
    RecordNotFound,
    UpstreamServiceError,
    ValidationError,
)
from services.sessions import build_interview_service
from storage.migrate import migrate
from storage.profiles import ProfileStore


logger = logging.getLogger(__name__)

STATUS_BY_ERROR: Dict[Type[InterviewError], int] = {
    ValidationError: 422,
    InvalidTransition: 409,
    RecordNotFound: 404,
    UpstreamServiceError: 502,
    PersistenceError: 503,
}


def _status_for(exc: InterviewError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


async def _interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
    return JSONResponse(status_code=status, content=ErrorResp(error=exc.code, detail=exc.detail).model_dump())


def create_app(
    service: Optional[InterviewService] = None,
    *,
    ledger: Optional[AuditorLedger] = None,
    profiles: Optional[ProfileStore] = None,
    migrate_db: bool = True,
) -> FastAPI:
    """Build the ASGI app; collaborators default to the configured SQLite-backed ones."""

    if migrate_db:
        migrate(settings.DB_PATH)
    app = FastAPI(title="VendorIQ Compliance Interview API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.interview_service = service or build_interview_service(settings)
    app.state.auditor_ledger = ledger or AuditorLedger()
    app.state.profile_store = profiles or ProfileStore()
    app.add_exception_handler(InterviewError, _interview_error_handler)
    app.include_router(router)

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
