"""
Tests for the analysis pipeline: prompt construction, reply parsing and
the fallback result.
"""

import json

import pytest

from conftest import EXPECTED_FALLBACK, MODEL_ANALYSIS, MODEL_REPLY, FakeProvider
from resume_checker.analysis import (
    FALLBACK_ANALYSIS,
    ParsedAnalysis,
    UnparseableAnalysis,
    analyze_resume,
    fallback_result,
    parse_analysis,
)
from resume_checker.exceptions import ProviderError
from resume_checker.models import AnalysisSource
from resume_checker.prompts import NO_JOB_DESCRIPTION, build_analysis_prompt


class TestBuildPrompt:

    def test_includes_file_name_and_content(self):
        prompt = build_analysis_prompt("cv.txt", "Python developer, 5 years")
        assert "cv.txt" in prompt
        assert "Python developer, 5 years" in prompt

    def test_job_description_section(self):
        prompt = build_analysis_prompt("cv.txt", "content", "Senior Go engineer")
        assert "Target Job Description: Senior Go engineer" in prompt
        assert NO_JOB_DESCRIPTION not in prompt

    def test_missing_job_description_uses_placeholder(self):
        for job in (None, ""):
            assert NO_JOB_DESCRIPTION in build_analysis_prompt("cv.txt", "content", job)

    def test_json_example_braces_survive_formatting(self):
        prompt = build_analysis_prompt("cv.txt", "content")
        assert '"overall_score"' in prompt
        assert "{file_name}" not in prompt


class TestParseAnalysis:

    def test_json_wrapped_in_prose(self):
        outcome = parse_analysis(MODEL_REPLY)
        assert isinstance(outcome, ParsedAnalysis)
        assert outcome.source is AnalysisSource.MODEL
        assert outcome.result.overall_score == 81
        assert outcome.result.final_score == 82.5
        assert outcome.result.feedback.missing_keywords == ["Kubernetes"]

    def test_missing_lists_default_to_empty(self):
        outcome = parse_analysis(json.dumps({"overall_score": 60, "summary": "ok"}))
        assert isinstance(outcome, ParsedAnalysis)
        feedback = outcome.result.feedback
        assert feedback.summary == "ok"
        assert feedback.strengths == []
        assert feedback.improvements == []
        assert feedback.missing_keywords == []
        assert feedback.recommendations == []
        assert outcome.result.keyword_score is None

    def test_no_json_is_unparseable(self):
        outcome = parse_analysis("Sorry, I cannot help with that.")
        assert isinstance(outcome, UnparseableAnalysis)
        assert outcome.source is AnalysisSource.FALLBACK
        assert outcome.reason == "no JSON object found"

    def test_malformed_json_is_unparseable(self):
        outcome = parse_analysis('Result: {"overall_score": 80,, }')
        assert isinstance(outcome, UnparseableAnalysis)
        assert outcome.reason.startswith("malformed JSON")

    def test_greedy_span_across_two_objects_is_unparseable(self):
        # First "{" to last "}" spans both objects, which is not valid JSON
        outcome = parse_analysis('{"a": 1} and also {"b": 2}')
        assert isinstance(outcome, UnparseableAnalysis)

    def test_wrong_field_types_are_unparseable(self):
        outcome = parse_analysis(json.dumps({"overall_score": "high", "strengths": "many"}))
        assert isinstance(outcome, UnparseableAnalysis)
        assert outcome.reason == "unexpected field types"

    def test_numeric_strings_are_not_coerced(self):
        outcome = parse_analysis('{"overall_score": "85", "keyword_score": 70}')
        assert isinstance(outcome, UnparseableAnalysis)
        assert outcome.reason == "unexpected field types"

    def test_boolean_scores_are_not_coerced(self):
        outcome = parse_analysis('{"overall_score": 85, "keyword_score": true}')
        assert isinstance(outcome, UnparseableAnalysis)

    def test_int_and_float_scores_keep_their_type(self):
        outcome = parse_analysis('{"overall_score": 85, "final_score": 85.5}')
        assert isinstance(outcome, ParsedAnalysis)
        assert type(outcome.result.overall_score) is int
        assert type(outcome.result.final_score) is float

    def test_unparseable_carries_fallback(self):
        outcome = parse_analysis("not json")
        assert outcome.result == fallback_result()
        assert outcome.raw_text == "not json"


class TestFallbackResult:

    def test_matches_static_payload(self):
        assert fallback_result().model_dump() == EXPECTED_FALLBACK

    def test_copies_are_independent(self):
        first = fallback_result()
        first.feedback.strengths.append("mutated")
        assert "mutated" not in fallback_result().feedback.strengths
        assert "mutated" not in FALLBACK_ANALYSIS["strengths"]


class TestAnalyzeResume:

    @pytest.mark.asyncio
    async def test_single_generation_call(self):
        provider = FakeProvider()
        outcome = await analyze_resume(provider, "cv.txt", "content", "Data engineer")
        assert len(provider.prompts) == 1
        assert "Data engineer" in provider.prompts[0]
        assert outcome.result.overall_score == MODEL_ANALYSIS["overall_score"]

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_fallback(self):
        provider = FakeProvider(reply="I think it's pretty good overall.")
        outcome = await analyze_resume(provider, "cv.txt", "content")
        assert isinstance(outcome, UnparseableAnalysis)
        assert outcome.result == fallback_result()

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self):
        provider = FakeProvider(fail_generate=True)
        with pytest.raises(ProviderError):
            await analyze_resume(provider, "cv.txt", "content")
