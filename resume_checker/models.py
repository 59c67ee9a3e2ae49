"""
Resume Checker Models
======================
Pydantic models for API contracts and stored documents.
Single source of truth — imported by routes, handlers and the store.
"""

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel

# Strict so "85" or true in a model reply fails validation instead of coercing
Score = Union[StrictInt, StrictFloat]


# ── Enums ─────────────────────────────────────────────────────────

class AnalysisSource(str, Enum):
    """Where an analysis result came from."""
    MODEL = "model"         # Parsed from the model reply
    FALLBACK = "fallback"   # Static payload substituted for an unparseable reply


class WizardStep(IntEnum):
    """Resume builder steps, in order."""
    PERSONAL_INFO = 1
    EXPERIENCE = 2
    EDUCATION = 3
    SKILLS = 4
    REVIEW = 5

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class PersistOutcome(str, Enum):
    """Result of the post-stream chat history write."""
    SAVED = "saved"
    SKIPPED_ANONYMOUS = "skipped_anonymous"
    SKIPPED_INCOMPLETE = "skipped_incomplete"
    SKIPPED_NO_USER_MESSAGE = "skipped_no_user_message"
    FAILED = "failed"


# ── Analysis ──────────────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    """Body for POST /api/analyze. Fields are optional so absence maps to 400."""
    model_config = ConfigDict(populate_by_name=True)

    file_name: Optional[str] = Field(None, alias="fileName")
    file_content: Optional[str] = Field(None, alias="fileContent")
    job_description: Optional[str] = Field(None, alias="jobDescription")


class Feedback(BaseModel):
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    hidden_strengths: Optional[List[str]] = None
    improvements: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Normalized ATS analysis. Ranges are nominal and not enforced."""
    overall_score: Optional[Score] = None
    keyword_score: Optional[Score] = None
    formatting_score: Optional[Score] = None
    experience_score: Optional[Score] = None
    skills_score: Optional[Score] = None
    antigravity_boost: Optional[Score] = None
    final_score: Optional[Score] = None
    feedback: Feedback = Field(default_factory=Feedback)


class AnalyzeResponse(BaseModel):
    analysis: AnalysisResult
    source: AnalysisSource


class UploadResponse(AnalyzeResponse):
    resume_id: Optional[str] = None


# ── Chat ──────────────────────────────────────────────────────────

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)


# ── Resume Builder ────────────────────────────────────────────────

class _CamelModel(BaseModel):
    """Builder documents keep the client's camelCase keys when stored."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalInfo(_CamelModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    summary: str = ""


class Experience(_CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    description: str = ""


class Education(_CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""
    gpa: str = ""


class ResumeBuilderData(_CamelModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experiences: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class WizardMoveRequest(_CamelModel):
    step: WizardStep
    data: ResumeBuilderData = Field(default_factory=ResumeBuilderData)


class WizardState(_CamelModel):
    step: WizardStep
    step_name: str
    saved: bool = False
    data: ResumeBuilderData


# ── Dashboard ─────────────────────────────────────────────────────

class ScoreSummary(BaseModel):
    id: Optional[str] = None
    overall_score: Optional[Score] = None


class ResumeRecord(BaseModel):
    id: str
    file_name: str
    created_at: Optional[datetime] = None
    job_description: Optional[str] = None
    ats_scores: List[ScoreSummary] = Field(default_factory=list)


class ResumeListResponse(BaseModel):
    resumes: List[ResumeRecord] = Field(default_factory=list)


# ── Auth ──────────────────────────────────────────────────────────

class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AuthUser


class SignInRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field("", alias="fullName")
    email: str = Field(min_length=3)
    password: str
    confirm_password: str = Field(alias="confirmPassword")


class SignUpResponse(BaseModel):
    user: AuthUser
    session: Optional[AuthSession] = None


# ── Health ────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str = "resume-checker"
    version: str = "1.0.0"
    timestamp: str
    services: Dict[str, Any] = Field(default_factory=dict)
    metrics: Dict[str, Any] = Field(default_factory=dict)
