"""
Resume Checker Service Package v1.0
====================================
ATS resume analysis, resume-coach chat and resume builder backend.

Architecture:
- config.py     → Settings dataclass with env overrides
- models.py     → Pydantic models (API contracts, builder draft, enums)
- prompts.py    → ATS analysis prompt and coach system prompt
- providers.py  → LLM providers (Groq, Gemini)
- analysis.py   → Prompt → model → ParsedAnalysis | UnparseableAnalysis
- chat.py       → Data-stream chat and post-stream history persistence
- builder.py    → Wizard steps and draft list operations
- upload.py     → Uploaded file → analysis text
- store.py      → Supabase table access
- auth.py       → Token resolution, sign-in / sign-up
- metrics.py    → In-memory metrics (labeled counters, latency window)
- routes.py     → HTTP routes
- main.py       → FastAPI application factory
"""

from .analysis import (
    FALLBACK_ANALYSIS,
    AnalysisOutcome,
    ParsedAnalysis,
    UnparseableAnalysis,
    analyze_resume,
    parse_analysis,
)
from .builder import ResumeBuilder, WizardAction, transition
from .config import Settings, load_settings
from .exceptions import AuthError, ProviderError, StoreError
from .metrics import MetricsCollector
from .models import AnalysisResult, AnalysisSource, PersistOutcome, ResumeBuilderData, WizardStep

__all__ = [
    "FALLBACK_ANALYSIS",
    "AnalysisOutcome",
    "ParsedAnalysis",
    "UnparseableAnalysis",
    "analyze_resume",
    "parse_analysis",
    "ResumeBuilder",
    "WizardAction",
    "transition",
    "Settings",
    "load_settings",
    "AuthError",
    "ProviderError",
    "StoreError",
    "MetricsCollector",
    "AnalysisResult",
    "AnalysisSource",
    "PersistOutcome",
    "ResumeBuilderData",
    "WizardStep",
]
