"""Reasoning service: qualitative tie-breaking and top-candidate insights."""

import asyncio
import logging
import re
from typing import Protocol

from config import settings
from models.schemas.job_requirements import JobRequirements
from models.schemas.ranked_applicant import RankedApplicant
from models.schemas.service_outcomes import (
    CandidateAdjustment,
    ComparisonOutcome,
    ComparisonParseError,
    ComparisonSuccess,
)
from models.schemas.tie_break import TieGroup
from services import gemini_client
from services.prompt_builder import build_comparison_prompt, build_insights_prompt

logger = logging.getLogger(__name__)

_CANDIDATE_SPLIT_RE = re.compile(r"Candidate \d+:")


class ReasoningService(Protocol):
    async def compare(self, group: TieGroup, job: JobRequirements) -> ComparisonOutcome: ...

    async def summarize(self, job: JobRequirements, top_candidates: list[RankedApplicant]) -> list[str] | None: ...


def parse_comparison_reply(text: str) -> ComparisonOutcome:
    """Parse a ``{"rankings": [{candidateName, microAdjustment, reasoning}]}`` reply."""
    data = gemini_client.extract_json(text)
    if data is None:
        return ComparisonParseError(error="reply is not a JSON object")

    rankings = data.get("rankings")
    if not isinstance(rankings, list):
        return ComparisonParseError(error="missing rankings array")

    parsed: list[CandidateAdjustment] = []
    for item in rankings:
        if not isinstance(item, dict):
            continue
        name = item.get("candidateName")
        if not isinstance(name, str) or not name.strip():
            continue
        try:
            adjustment = float(item.get("microAdjustment") or 0.0)
        except (TypeError, ValueError):
            adjustment = 0.0
        parsed.append(CandidateAdjustment(
            candidate_name=name.strip(),
            micro_adjustment=adjustment,
            reasoning=str(item.get("reasoning") or "AI-powered differentiation"),
        ))
    return ComparisonSuccess(rankings=parsed)


def split_insights(text: str) -> list[str]:
    """Split a "Candidate 1: ... Candidate 2: ..." reply into per-candidate texts."""
    return [part.strip() for part in _CANDIDATE_SPLIT_RE.split(text)[1:]]


class GeminiReasoningService:
    """Reasoning over Gemini. Failures surface as parse errors / None, never raise."""

    def __init__(self, model: str | None = None, adjustment_limit: float | None = None):
        self.model = model or settings.gemini_model
        self.adjustment_limit = adjustment_limit or settings.micro_adjustment_limit

    async def _generate(self, prompt: str, what: str) -> str | None:
        try:
            return await gemini_client.generate_text(prompt, model=self.model)
        except gemini_client.GeminiUnavailable:
            return None
        except asyncio.TimeoutError:
            logger.warning("Gemini %s timed out", what)
            return None
        except Exception as e:
            logger.error("Gemini %s failed: %s", what, e)
            return None

    async def compare(self, group: TieGroup, job: JobRequirements) -> ComparisonOutcome:
        prompt = build_comparison_prompt(group, job.title, job.description, self.adjustment_limit)
        text = await self._generate(prompt, "tie-break comparison")
        if text is None:
            return ComparisonParseError(error="no reply")
        outcome = parse_comparison_reply(text)
        if isinstance(outcome, ComparisonParseError):
            logger.warning("Unparseable comparison reply (%s): %.200s", outcome.error, text)
        return outcome

    async def summarize(self, job: JobRequirements, top_candidates: list[RankedApplicant]) -> list[str] | None:
        if not top_candidates:
            return []
        text = await self._generate(build_insights_prompt(job, top_candidates), "insights")
        if text is None:
            return None
        return split_insights(text)


class DisabledReasoningService:
    """Used when no API key is configured: every group goes to the deterministic fallback."""

    async def compare(self, group: TieGroup, job: JobRequirements) -> ComparisonOutcome:
        return ComparisonParseError(error="reasoning service disabled")

    async def summarize(self, job: JobRequirements, top_candidates: list[RankedApplicant]) -> list[str] | None:
        return None


def get_reasoning_service() -> ReasoningService:
    if settings.gemini_api_key:
        return GeminiReasoningService()
    logger.warning("No GEMINI_API_KEY set - tie-breaking falls back to deterministic adjustments")
    return DisabledReasoningService()
