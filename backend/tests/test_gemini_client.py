"""Tests for Gemini reply parsing. No network calls."""

import pytest

from config import settings
from models.schemas.canonical_entry import CanonicalEntry, Vocabulary
from models.schemas.service_outcomes import (
    ClassificationParseError,
    ClassificationSuccess,
    ClassificationUnknown,
    ComparisonParseError,
    ComparisonSuccess,
)
from services import gemini_client
from services.prompt_builder import build_classification_prompt
from services.ranking.classifier import GeminiClassifier, parse_classification_reply
from services.ranking.reasoning import DisabledReasoningService, parse_comparison_reply, split_insights


class TestExtractJson:
    def test_plain(self):
        assert gemini_client.extract_json('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert gemini_client.extract_json('```json\n{"a": 2}\n```') == {"a": 2}

    def test_embedded_in_prose(self):
        assert gemini_client.extract_json('Sure! Here it is: {"a": 3} Hope it helps.') == {"a": 3}

    def test_rejects_non_objects(self):
        assert gemini_client.extract_json("[1, 2]") is None
        assert gemini_client.extract_json("no json here") is None

    def test_strip_code_fences(self):
        assert gemini_client.strip_code_fences("```\nhello\n```") == "hello"
        assert gemini_client.strip_code_fences("  hello ") == "hello"


class TestClassificationReply:
    def test_success(self):
        outcome = parse_classification_reply('{"canonical_key": "cpa", "confidence": 0.9, "reasoning": "alias"}')
        assert isinstance(outcome, ClassificationSuccess)
        assert outcome.key == "cpa"
        assert outcome.confidence == 0.9

    def test_confidence_clamped(self):
        outcome = parse_classification_reply('{"canonical_key": "cpa", "confidence": 1.7}')
        assert outcome.confidence == 1.0

    def test_missing_confidence(self):
        outcome = parse_classification_reply('{"canonical_key": "cpa", "confidence": "high"}')
        assert outcome.confidence is None

    def test_unknown(self):
        outcome = parse_classification_reply('{"canonical_key": "unknown", "confidence": 0.1}')
        assert isinstance(outcome, ClassificationUnknown)
        assert outcome.confidence == 0.1

    def test_parse_errors(self):
        assert isinstance(parse_classification_reply("I think it's CPA"), ClassificationParseError)
        assert isinstance(parse_classification_reply('{"confidence": 1}'), ClassificationParseError)

    @pytest.mark.asyncio
    async def test_classifier_without_key_never_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", "")
        outcome = await GeminiClassifier().classify("prompt")
        assert isinstance(outcome, ClassificationParseError)

    def test_prompt_lists_candidates(self):
        candidates = [CanonicalEntry(key="cpa", canonical="Certified Public Accountant", category="prc_license")]
        prompt = build_classification_prompt("CPA passer", candidates, Vocabulary.ELIGIBILITY)
        assert '"key": "cpa"' in prompt
        assert "CPA passer" in prompt
        assert "UNKNOWN" in prompt


class TestComparisonReply:
    def test_rankings(self):
        outcome = parse_comparison_reply(
            '```json\n{"rankings": [{"candidateName": "Ana", "microAdjustment": 0.2, "reasoning": "x"},'
            ' {"candidateName": "Ben", "microAdjustment": "oops"}, {"microAdjustment": 0.1}]}\n```'
        )
        assert isinstance(outcome, ComparisonSuccess)
        assert [(r.candidate_name, r.micro_adjustment) for r in outcome.rankings] == [("Ana", 0.2), ("Ben", 0.0)]
        assert outcome.rankings[1].reasoning == "AI-powered differentiation"

    def test_missing_rankings(self):
        assert isinstance(parse_comparison_reply('{"ranking": []}'), ComparisonParseError)
        assert isinstance(parse_comparison_reply("nope"), ComparisonParseError)

    def test_split_insights(self):
        text = "Intro text. Candidate 1: Strong fit. Candidate 2: Needs a license."
        assert split_insights(text) == ["Strong fit.", "Needs a license."]

    @pytest.mark.asyncio
    async def test_generate_text_requires_key(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", "")
        with pytest.raises(gemini_client.GeminiUnavailable):
            await gemini_client.generate_text("hello")

    @pytest.mark.asyncio
    async def test_disabled_reasoning_service(self):
        service = DisabledReasoningService()
        assert isinstance(await service.compare(None, None), ComparisonParseError)
        assert await service.summarize(None, []) is None
