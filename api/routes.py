"""FastAPI routes for the compliance interview, auditor and admin views."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

from api.identity import RespondentIdentity, current_auditor, current_respondent
from api.schemas import (
    AnswerReq,
    CorrectionReq,
    DisagreeReq,
    ErrorResp,
    JustificationReq,
    ProfilePatchReq,
    RequirementReq,
    ResolveReq,
    SessionView,
    SkipReq,
)
from auditing import AuditorLedger
from interview_session import (
    EvidenceSubmission,
    FileUpload,
    InterviewService,
    ReviewItem,
    ScoringResult,
    Session,
    SessionNotFound,
)
from session_reports import build_report, generate_assessment_pdf
from storage.corrections import CorrectionRow
from storage.profiles import Profile, ProfilePatch, ProfileStore
from storage.sessions import AnswerRow, EscalationRow


ERROR_RESPONSES = {status: {"model": ErrorResp} for status in (404, 409, 422, 502, 503)}

router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)


def get_service(request: Request) -> InterviewService:
    return request.app.state.interview_service


def get_ledger(request: Request) -> AuditorLedger:
    return request.app.state.auditor_ledger


def get_profiles(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def _owned_session(service: InterviewService, session_id: str, who: RespondentIdentity) -> Session:
    session = service.get_session(session_id)
    if session.respondent_id != who.respondent_id:
        # Other respondents' sessions are indistinguishable from missing ones
        raise SessionNotFound(f"Session '{session_id}' not found")
    return session


def _view(service: InterviewService, session: Session) -> SessionView:
    return SessionView.build(session, service.phase(session.session_id))


async def _read_upload(file: UploadFile, limit: int) -> FileUpload:
    # One byte past the limit is enough for the size check to reject it
    return FileUpload(filename=file.filename or "", data=await file.read(limit + 1))


# ----------------------------------------------------------------------
# Respondent session
# ----------------------------------------------------------------------
@router.post("/sessions", response_model=SessionView)
def create_or_resume(
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
    profiles: ProfileStore = Depends(get_profiles),
) -> SessionView:
    session = service.create_or_resume_session(who.respondent_id, who.email)
    if who.email:
        profiles.upsert(who.email)
    return _view(service, session)


@router.get("/sessions/{session_id}", response_model=SessionView)
def fetch_session(
    session_id: str,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> SessionView:
    return _view(service, _owned_session(service, session_id, who))


@router.post("/sessions/{session_id}/answers", response_model=SessionView)
def submit_answer(
    session_id: str,
    req: AnswerReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> SessionView:
    _owned_session(service, session_id, who)
    session = service.submit_answer(session_id, req.question_number, req.value)
    return _view(service, session)


@router.get("/sessions/{session_id}/review", response_model=List[ReviewItem])
def review_summary(
    session_id: str,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> List[ReviewItem]:
    _owned_session(service, session_id, who)
    return service.review_summary(session_id)


@router.post("/sessions/{session_id}/evidence/file", response_model=EvidenceSubmission)
async def submit_evidence_file(
    session_id: str,
    question_number: int = Form(...),
    requirement_index: int = Form(...),
    file: UploadFile = File(...),
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> EvidenceSubmission:
    _owned_session(service, session_id, who)
    upload = await _read_upload(file, service.max_upload_bytes)
    return await run_in_threadpool(
        service.submit_evidence, session_id, question_number, requirement_index, upload=upload
    )


@router.post("/sessions/{session_id}/evidence/justification", response_model=EvidenceSubmission)
def submit_evidence_justification(
    session_id: str,
    req: JustificationReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> EvidenceSubmission:
    _owned_session(service, session_id, who)
    return service.submit_evidence(
        session_id, req.question_number, req.requirement_index, justification=req.justification
    )


@router.post("/sessions/{session_id}/evidence/skip", response_model=SessionView)
def skip_requirement(
    session_id: str,
    req: SkipReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> SessionView:
    _owned_session(service, session_id, who)
    session = service.skip_requirement(session_id, req.question_number, req.requirement_index, req.comment)
    return _view(service, session)


@router.post("/sessions/{session_id}/evidence/retry", response_model=EvidenceSubmission)
def retry_review(
    session_id: str,
    req: RequirementReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> EvidenceSubmission:
    _owned_session(service, session_id, who)
    return service.retry_review(session_id, req.question_number, req.requirement_index)


@router.post("/sessions/{session_id}/evidence/resolve", response_model=SessionView)
def resolve_evidence(
    session_id: str,
    req: ResolveReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> SessionView:
    _owned_session(service, session_id, who)
    session = service.resolve_evidence(session_id, req.question_number, req.requirement_index, req.decision)
    return _view(service, session)


@router.post("/sessions/{session_id}/evidence/disagree", response_model=SessionView)
def disagree_with_feedback(
    session_id: str,
    req: DisagreeReq,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> SessionView:
    _owned_session(service, session_id, who)
    session = service.disagree_with_feedback(session_id, req.question_number, req.requirement_index, req.argument)
    return _view(service, session)


@router.post("/sessions/{session_id}/evidence/auditor-file", response_model=EvidenceSubmission)
async def attach_auditor_file(
    session_id: str,
    question_number: int = Form(...),
    requirement_index: int = Form(...),
    file: UploadFile = File(...),
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> EvidenceSubmission:
    _owned_session(service, session_id, who)
    upload = await _read_upload(file, service.max_upload_bytes)
    return await run_in_threadpool(service.attach_auditor_file, session_id, question_number, requirement_index, upload)


@router.post("/sessions/{session_id}/finalize", response_model=ScoringResult)
def finalize(
    session_id: str,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
) -> ScoringResult:
    _owned_session(service, session_id, who)
    return service.finalize_and_score(session_id)


@router.get("/sessions/{session_id}/report.pdf")
def report_pdf(
    session_id: str,
    who: RespondentIdentity = Depends(current_respondent),
    service: InterviewService = Depends(get_service),
    profiles: ProfileStore = Depends(get_profiles),
) -> Response:
    session = _owned_session(service, session_id, who)
    profile = profiles.get_by_email(session.email) if session.email else None
    company = profile.company_name if profile else ""
    payload = generate_assessment_pdf(build_report(session, service.catalog, company_name=company))
    headers = {"Content-Disposition": f'attachment; filename="assessment-{session.session_id}.pdf"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)


# ----------------------------------------------------------------------
# Auditor
# ----------------------------------------------------------------------
@router.get("/audit/answers", response_model=List[AnswerRow])
def audit_answers(search: Optional[str] = None, ledger: AuditorLedger = Depends(get_ledger)) -> List[AnswerRow]:
    return ledger.list_answers(search)


@router.get("/audit/escalations", response_model=List[EscalationRow])
def audit_escalations(ledger: AuditorLedger = Depends(get_ledger)) -> List[EscalationRow]:
    return ledger.pending_escalations()


@router.post("/audit/corrections", response_model=CorrectionRow, status_code=201)
def record_correction(
    req: CorrectionReq,
    auditor_id: str = Depends(current_auditor),
    ledger: AuditorLedger = Depends(get_ledger),
) -> CorrectionRow:
    return ledger.record_correction(
        req.respondent_id,
        req.question_number,
        req.score,
        req.comment,
        auditor_id,
        requirement_index=req.requirement_index,
    )


@router.get("/audit/corrections", response_model=List[CorrectionRow])
def list_corrections(
    respondent_id: str,
    question_number: Optional[int] = None,
    ledger: AuditorLedger = Depends(get_ledger),
) -> List[CorrectionRow]:
    return ledger.corrections_for(respondent_id, question_number)


# ----------------------------------------------------------------------
# Admin
# ----------------------------------------------------------------------
@router.get("/admin/profiles", response_model=List[Profile])
def list_profiles(search: Optional[str] = None, profiles: ProfileStore = Depends(get_profiles)) -> List[Profile]:
    return profiles.search(search)


@router.put("/admin/profiles/{profile_id}", response_model=Profile)
def update_profile(
    profile_id: str,
    req: ProfilePatchReq,
    profiles: ProfileStore = Depends(get_profiles),
) -> Profile:
    return profiles.update_profile(profile_id, ProfilePatch(**req.model_dump()))
