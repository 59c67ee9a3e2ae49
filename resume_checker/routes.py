import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from starlette.background import BackgroundTask

from . import builder as draft_ops
from .analysis import AnalysisOutcome, ParsedAnalysis, analyze_resume
from .auth import validate_sign_up
from .builder import ResumeBuilder, WizardAction, transition
from .chat import DATA_STREAM_HEADERS, ChatHistoryRecorder, ChatTranscript, last_user_message, stream_chat
from .exceptions import AuthError, ProviderError, StoreError
from .models import (
    AnalyzeRequest,
    AnalyzeResponse,
    AuthSession,
    AuthUser,
    ChatRequest,
    Education,
    Experience,
    HealthResponse,
    ResumeBuilderData,
    ResumeListResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    UploadResponse,
    WizardMoveRequest,
    WizardState,
    WizardStep,
)
from .providers import Provider
from .store import ResumeStore
from .upload import extract_resume_text, is_allowed_file

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

ANALYSIS_FAILED = "Failed to analyze resume"


# ── Dependencies ──────────────────────────────────────────────────

async def current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthUser]:
    """The signed-in user, or None for anonymous requests and bad tokens."""
    if credentials is None:
        return None
    return await run_in_threadpool(request.app.state.auth.get_user, credentials.credentials)


async def require_user(user: Optional[AuthUser] = Depends(current_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_store(request: Request) -> ResumeStore:
    store = request.app.state.store
    if store is None:
        raise HTTPException(status_code=503, detail="Supabase not configured")
    return store


def _provider(request: Request) -> Provider:
    provider = request.app.state.provider
    if provider is None:
        raise HTTPException(status_code=500, detail="LLM provider not configured")
    return provider


async def _run_analysis(request: Request, file_name: str, file_content: str,
                        job_description: Optional[str]) -> AnalysisOutcome:
    provider = _provider(request)
    metrics = request.app.state.metrics
    start = time.monotonic()
    try:
        outcome = await analyze_resume(provider, file_name, file_content, job_description)
    except ProviderError as e:
        metrics.record_llm_failure("analyze")
        logger.error(f"Analysis error: {e}")
        raise HTTPException(status_code=500, detail=ANALYSIS_FAILED)
    metrics.record_analysis(outcome.source.value, (time.monotonic() - start) * 1000)
    return outcome


# ── Service ───────────────────────────────────────────────────────

@router.get("/")
async def root():
    return {"service": "Resume Checker API", "version": "1.0.0", "docs": "/docs"}


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    state = request.app.state
    services = {
        "llm": state.provider.name if state.provider else None,
        "supabase": state.store is not None,
        "auth": state.auth.name,
    }
    return HealthResponse(
        status="healthy" if state.provider and state.store else "degraded",
        timestamp=datetime.now().isoformat(),
        services=services,
        metrics=state.metrics.summary(),
    )


# ── Analyze ───────────────────────────────────────────────────────

@router.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest, request: Request):
    """Score resume text against an optional job description."""
    if not req.file_name or not req.file_content:
        raise HTTPException(status_code=400, detail="Missing file name or content")

    outcome = await _run_analysis(request, req.file_name, req.file_content, req.job_description)
    return AnalyzeResponse(analysis=outcome.result, source=outcome.source)


@router.post("/api/upload", response_model=UploadResponse)
async def upload(
    request: Request,
    resume: UploadFile = File(...),
    job_description: str = Form(""),
    user: Optional[AuthUser] = Depends(current_user),
):
    """
    Upload flow: read the file, analyze it, and for signed-in users record
    the resume and its score. Fallback analyses are not recorded.
    """
    file_name = resume.filename or ""
    if not is_allowed_file(file_name):
        raise HTTPException(status_code=400, detail="Only PDF, DOCX, TXT and MD files are supported")

    content = await resume.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    resume_text = extract_resume_text(file_name, content, resume.content_type)
    outcome = await _run_analysis(request, file_name, resume_text, job_description or None)

    resume_id = None
    store = request.app.state.store
    if user and store and isinstance(outcome, ParsedAnalysis):
        resume_id = await _record_upload(store, user.id, file_name, job_description, outcome)

    return UploadResponse(analysis=outcome.result, source=outcome.source, resume_id=resume_id)


async def _record_upload(store: ResumeStore, user_id: str, file_name: str,
                         job_description: str, outcome: ParsedAnalysis) -> Optional[str]:
    """Resume id once both rows exist, else None. A resume row without a score is removed."""
    try:
        resume_id = await run_in_threadpool(store.create_resume, user_id, file_name, job_description)
    except StoreError as e:
        # Analysis is still returned; the dashboard just won't list it
        logger.warning(f"Failed to record upload (non-critical): {e}")
        return None

    try:
        await run_in_threadpool(store.save_score, user_id, resume_id, outcome.result)
    except StoreError as e:
        logger.warning(f"Failed to record score for {resume_id} (non-critical): {e}")
        try:
            await run_in_threadpool(store.delete_resume, user_id, resume_id)
        except StoreError as cleanup_error:
            logger.error(f"Orphan resume {resume_id} left without a score: {cleanup_error}")
        return None
    return resume_id


# ── Chat ──────────────────────────────────────────────────────────

@router.post("/api/chat")
async def chat(req: ChatRequest, request: Request,
               user: Optional[AuthUser] = Depends(current_user)):
    """Stream the coach reply; store the exchange afterwards for signed-in users."""
    provider = _provider(request)
    metrics = request.app.state.metrics
    transcript = ChatTranscript(
        user_id=user.id if user else None,
        user_message=last_user_message(req.messages),
    )
    recorder = ChatHistoryRecorder(request.app.state.store, metrics)
    return StreamingResponse(
        stream_chat(provider, req.messages, transcript, metrics),
        media_type="text/plain; charset=utf-8",
        headers=DATA_STREAM_HEADERS,
        background=BackgroundTask(recorder.persist, transcript),
    )


# ── Dashboard ─────────────────────────────────────────────────────

@router.get("/api/resumes", response_model=ResumeListResponse)
async def list_resumes(user: AuthUser = Depends(require_user),
                       store: ResumeStore = Depends(require_store)):
    rows = await run_in_threadpool(store.list_resumes, user.id)
    return ResumeListResponse(resumes=rows)


@router.delete("/api/resumes/{resume_id}")
async def delete_resume(resume_id: str, user: AuthUser = Depends(require_user),
                        store: ResumeStore = Depends(require_store)):
    deleted = await run_in_threadpool(store.delete_resume, user.id, resume_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Resume not found")
    return {"deleted": resume_id}


@router.get("/api/analysis/{resume_id}")
async def get_analysis(resume_id: str, user: AuthUser = Depends(require_user),
                       store: ResumeStore = Depends(require_store)):
    row = await run_in_threadpool(store.get_score, user.id, resume_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"analysis": row}


# ── Resume Builder ────────────────────────────────────────────────

class DraftValue(BaseModel):
    value: str


@router.get("/api/resume-builder", response_model=WizardState)
async def load_draft(user: AuthUser = Depends(require_user),
                     store: ResumeStore = Depends(require_store)):
    """Page entry: the saved draft at the first step."""
    data = await run_in_threadpool(ResumeBuilder(store).load, user.id)
    step = WizardStep.PERSONAL_INFO
    return WizardState(step=step, step_name=step.label, data=data)


@router.put("/api/resume-builder", response_model=ResumeBuilderData)
async def save_draft(data: ResumeBuilderData, user: AuthUser = Depends(require_user),
                     store: ResumeStore = Depends(require_store)):
    return await run_in_threadpool(ResumeBuilder(store).save, user.id, data)


@router.post("/api/resume-builder/next", response_model=WizardState)
async def next_step(req: WizardMoveRequest, user: AuthUser = Depends(require_user),
                    store: ResumeStore = Depends(require_store)):
    return await run_in_threadpool(
        ResumeBuilder(store).move, user.id, req.step, WizardAction.NEXT, req.data
    )


@router.post("/api/resume-builder/previous", response_model=WizardState)
async def previous_step(req: WizardMoveRequest):
    """Only moves the step; nothing is saved."""
    step = transition(req.step, WizardAction.PREVIOUS)
    return WizardState(step=step, step_name=step.label, data=req.data)


async def _edit_draft(store: ResumeStore, user_id: str, edit) -> ResumeBuilderData:
    builder = ResumeBuilder(store)
    data = await run_in_threadpool(builder.load, user_id)
    updated = edit(data)
    if updated is data:
        return data
    return await run_in_threadpool(builder.save, user_id, updated)


def _add_value_route(add_fn, label: str):
    async def add_value(body: DraftValue, user: AuthUser = Depends(require_user),
                        store: ResumeStore = Depends(require_store)):
        if not body.value.strip():
            raise HTTPException(status_code=400, detail=f"{label} must not be blank")
        data = await run_in_threadpool(ResumeBuilder(store).load, user.id)
        updated = add_fn(data, body.value)
        if updated is data:
            raise HTTPException(status_code=409, detail=f"{label} already listed")
        return await run_in_threadpool(ResumeBuilder(store).save, user.id, updated)
    return add_value


def _remove_route(remove_fn):
    async def remove(key: str, user: AuthUser = Depends(require_user),
                     store: ResumeStore = Depends(require_store)):
        return await _edit_draft(store, user.id, lambda data: remove_fn(data, key))
    return remove


def _add_entry_route(add_fn):
    async def add_entry(user: AuthUser = Depends(require_user),
                        store: ResumeStore = Depends(require_store)):
        return await _edit_draft(store, user.id, lambda data: add_fn(data)[0])
    return add_entry


def _update_entry_route(update_fn, entry_model, collection: str, label: str):
    async def update_entry(key: str, body: entry_model, user: AuthUser = Depends(require_user),
                           store: ResumeStore = Depends(require_store)):
        data = await run_in_threadpool(ResumeBuilder(store).load, user.id)
        if not any(entry.id == key for entry in getattr(data, collection)):
            raise HTTPException(status_code=404, detail=f"{label} not found")
        updated = update_fn(data, key, **body.model_dump(exclude={"id"}))
        return await run_in_threadpool(ResumeBuilder(store).save, user.id, updated)
    return update_entry


for _collection, _add, _remove, _label in (
    ("skills", draft_ops.add_skill, draft_ops.remove_skill, "Skill"),
    ("certifications", draft_ops.add_certification, draft_ops.remove_certification, "Certification"),
):
    router.add_api_route(f"/api/resume-builder/{_collection}", _add_value_route(_add, _label),
                         methods=["POST"], response_model=ResumeBuilderData)
    router.add_api_route(f"/api/resume-builder/{_collection}/{{key}}", _remove_route(_remove),
                         methods=["DELETE"], response_model=ResumeBuilderData)

for _collection, _add, _update, _remove, _model, _label in (
    ("experiences", draft_ops.add_experience, draft_ops.update_experience,
     draft_ops.remove_experience, Experience, "Experience"),
    ("education", draft_ops.add_education, draft_ops.update_education,
     draft_ops.remove_education, Education, "Education"),
):
    router.add_api_route(f"/api/resume-builder/{_collection}", _add_entry_route(_add),
                         methods=["POST"], response_model=ResumeBuilderData)
    router.add_api_route(f"/api/resume-builder/{_collection}/{{key}}",
                         _update_entry_route(_update, _model, _collection, _label),
                         methods=["PUT"], response_model=ResumeBuilderData)
    router.add_api_route(f"/api/resume-builder/{_collection}/{{key}}", _remove_route(_remove),
                         methods=["DELETE"], response_model=ResumeBuilderData)


# ── Auth ──────────────────────────────────────────────────────────

@router.post("/auth/signin", response_model=AuthSession)
async def sign_in(req: SignInRequest, request: Request):
    try:
        return await run_in_threadpool(request.app.state.auth.sign_in, req.email, req.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/auth/signup", response_model=SignUpResponse)
async def sign_up(req: SignUpRequest, request: Request):
    try:
        validate_sign_up(req.password, req.confirm_password)
        result = await run_in_threadpool(
            request.app.state.auth.sign_up, req.email, req.password, req.full_name
        )
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    if isinstance(result, AuthSession):
        return SignUpResponse(user=result.user, session=result)
    return SignUpResponse(user=result)


@router.get("/auth/me", response_model=AuthUser)
async def me(user: AuthUser = Depends(require_user)):
    return user
