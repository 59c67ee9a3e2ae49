"""
Resume Checker - Analysis
Builds the ATS prompt, calls the LLM provider and turns the free-form reply
into an AnalysisResult.

Parsing strategy: greedy first-"{" to last-"}" extraction, then json.loads.
Anything that does not yield a usable object becomes UnparseableAnalysis,
which carries the static fallback payload so callers can still render a
result while knowing it did not come from the model.
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Union

from pydantic import ValidationError

from .models import AnalysisResult, AnalysisSource
from .prompts import build_analysis_prompt
from .providers import Provider

logger = logging.getLogger(__name__)

# Flat shape, as the model is asked to reply
FALLBACK_ANALYSIS: Dict[str, Any] = {
    "overall_score": 72,
    "keyword_score": 68,
    "formatting_score": 78,
    "experience_score": 75,
    "skills_score": 70,
    "antigravity_boost": 0.5,
    "final_score": 72.5,
    "summary": "Your resume shows good potential but could benefit from optimization for ATS systems.",
    "strengths": [
        "Clear professional experience",
        "Relevant skills listed",
        "Good overall structure",
    ],
    "hidden_strengths": [
        "Demonstrated adaptability in changing roles",
        "Implied leadership through project ownership",
    ],
    "improvements": [
        "Add more industry-specific keywords",
        "Quantify achievements with numbers",
        "Improve formatting consistency",
    ],
    "missing_keywords": [
        "Results-driven",
        "Cross-functional collaboration",
        "Data analysis",
    ],
    "recommendations": [
        "Use a single-column layout for better ATS parsing",
        "Include relevant certifications",
        "Add a professional summary section",
    ],
}

SCORE_FIELDS = [
    "overall_score",
    "keyword_score",
    "formatting_score",
    "experience_score",
    "skills_score",
    "antigravity_boost",
    "final_score",
]
FEEDBACK_FIELDS = [
    "summary",
    "strengths",
    "hidden_strengths",
    "improvements",
    "missing_keywords",
    "recommendations",
]

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def fallback_result() -> AnalysisResult:
    """A fresh copy of the static fallback analysis."""
    return normalize_analysis(copy.deepcopy(FALLBACK_ANALYSIS))


@dataclass(frozen=True)
class ParsedAnalysis:
    result: AnalysisResult
    raw_text: str
    source: ClassVar[AnalysisSource] = AnalysisSource.MODEL


@dataclass(frozen=True)
class UnparseableAnalysis:
    raw_text: str
    reason: str
    result: AnalysisResult = field(default_factory=fallback_result)
    source: ClassVar[AnalysisSource] = AnalysisSource.FALLBACK


AnalysisOutcome = Union[ParsedAnalysis, UnparseableAnalysis]


def _extract_json_block(text: str) -> Optional[str]:
    """Return the span from the first "{" to the last "}" in text."""
    match = _JSON_BLOCK.search(text)
    return match.group(0) if match else None


def normalize_analysis(data: Dict[str, Any]) -> AnalysisResult:
    """
    Map the flat model reply onto AnalysisResult.
    Feedback lists default to empty; scores default to None.
    Raises ValidationError when a field has an unusable type.
    """
    feedback = {}
    for name in FEEDBACK_FIELDS:
        value = data.get(name)
        if value is not None:
            feedback[name] = value
    scores = {name: data.get(name) for name in SCORE_FIELDS}
    return AnalysisResult.model_validate({**scores, "feedback": feedback})


def parse_analysis(text: str) -> AnalysisOutcome:
    """Parse the model reply into a tagged outcome."""
    block = _extract_json_block(text or "")
    if block is None:
        logger.warning(f"No JSON object in model reply: {(text or '')[:200]}")
        return UnparseableAnalysis(raw_text=text or "", reason="no JSON object found")

    try:
        data = json.loads(block)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed JSON in model reply: {e}")
        return UnparseableAnalysis(raw_text=text, reason=f"malformed JSON: {e.msg}")

    if not isinstance(data, dict):
        return UnparseableAnalysis(raw_text=text, reason="JSON value is not an object")

    try:
        result = normalize_analysis(data)
    except ValidationError as e:
        logger.warning(f"Model reply did not match the analysis shape: {e.error_count()} errors")
        return UnparseableAnalysis(raw_text=text, reason="unexpected field types")

    return ParsedAnalysis(result=result, raw_text=text)


async def analyze_resume(provider: Provider, file_name: str, file_content: str,
                         job_description: Optional[str] = None) -> AnalysisOutcome:
    """
    Analyze a resume with the LLM.

    Flow:
    1. Build prompt with file name, content and job description
    2. Single generation call (no retry)
    3. Parse reply into ParsedAnalysis | UnparseableAnalysis

    ProviderError from step 2 propagates to the caller.
    """
    prompt = build_analysis_prompt(file_name, file_content, job_description)
    text = await provider.generate(prompt)
    outcome = parse_analysis(text)
    if isinstance(outcome, UnparseableAnalysis):
        logger.warning(f"Using fallback analysis for {file_name}: {outcome.reason}")
    else:
        logger.info(f"Parsed model analysis for {file_name}: overall={outcome.result.overall_score}")
    return outcome
