"""Tie detection and tie-breaking.

Applicants whose ensemble scores land in the same 0.01 bucket form a tie
group. Each group is sent to the reasoning service for bounded
micro-adjustments; anything it cannot settle gets a deterministic
adjustment instead, so every applicant of the run ends up in its own bucket.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass

from config import settings
from models.schemas.job_requirements import JobRequirements
from models.schemas.service_outcomes import ComparisonParseError
from models.schemas.tie_break import (
    TieBreakOutcome,
    TieBreakResult,
    TieBreakSource,
    TiedApplicant,
    TieGroup,
)
from services.ranking.reasoning import ReasoningService

logger = logging.getLogger(__name__)

_EPS = 1e-9


def score_bucket(score: float, threshold: float | None = None) -> int:
    """Index of the tie-precision bucket a score falls in."""
    threshold = threshold or settings.tie_score_threshold
    return round(score / threshold)


def find_tie_groups(applicants: list[TiedApplicant], threshold: float | None = None) -> list[TieGroup]:
    """Group applicants by bucketed score; only groups of two or more are ties.

    Members keep their input order; groups are ordered by descending score.
    """
    threshold = threshold or settings.tie_score_threshold
    buckets: dict[int, list[TiedApplicant]] = {}
    for app in applicants:
        buckets.setdefault(score_bucket(app.match_score, threshold), []).append(app)

    groups = [
        TieGroup(score=round(bucket * threshold, 2), applicants=members)
        for bucket, members in buckets.items()
        if len(members) > 1
    ]
    groups.sort(key=lambda g: g.score, reverse=True)
    return groups


def uniqueness_offset(applicant_id: str) -> float:
    """Stable per-applicant offset in [0, 0.099] from a SHA-256 of the id."""
    digest = hashlib.sha256(applicant_id.encode("utf-8")).digest()
    return (int.from_bytes(digest[:8], "big") % 100) * 0.001


def deterministic_adjustment(app: TiedApplicant, limit: float | None = None) -> tuple[float, str]:
    """Adjustment from component variance, skills/experience priority and an id-derived offset."""
    limit = limit or settings.micro_adjustment_limit
    scores = [app.education_score, app.experience_score, app.skills_score, app.eligibility_score]
    mean = sum(scores) / len(scores)
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)

    priority = app.skills_score * 0.003 + app.experience_score * 0.002
    variance_bonus = min(variance / 100, 0.2)
    offset = uniqueness_offset(app.applicant_id)
    adjustment = max(-limit, min(limit, priority + variance_bonus - 0.25 + offset))
    reasoning = (
        f"variance {variance:.1f}, skills/experience priority {priority:.3f}, "
        f"uniqueness offset {offset:.3f}"
    )
    return adjustment, reasoning


def match_candidate_name(name: str, applicants: list[TiedApplicant]) -> TiedApplicant | None:
    """First applicant whose name contains, or is contained in, ``name`` (case-insensitive)."""
    needle = name.lower().strip()
    if not needle:
        return None
    for app in applicants:
        candidate = app.applicant_name.lower().strip()
        if candidate and (needle in candidate or candidate in needle):
            return app
    return None


@dataclass
class _Pending:
    app: TiedApplicant
    adjustment: float
    reasoning: str
    source: TieBreakSource


class TieBreaker:
    def __init__(
        self,
        reasoning: ReasoningService | None = None,
        adjustment_limit: float | None = None,
        threshold: float | None = None,
        timeout: float | None = None,
    ):
        self.reasoning = reasoning
        self.limit = adjustment_limit or settings.micro_adjustment_limit
        self.threshold = threshold or settings.tie_score_threshold
        self.timeout = timeout if timeout is not None else settings.service_timeout_seconds

    async def break_ties(
        self,
        groups: list[TieGroup],
        job: JobRequirements,
        reserved: set[int] | None = None,
    ) -> TieBreakOutcome:
        """Adjust every group so no two applicants of the run share a bucket.

        ``reserved`` holds the buckets of applicants outside any group; those
        scores do not move, so group members are kept out of them too.
        """
        outcome = TieBreakOutcome()
        occupied = set(reserved or ())
        for group in groups:
            if len(group.applicants) < 2:
                continue
            logger.info("Tie-breaking %d applicants at %.2f", len(group.applicants), group.score)

            pending, used_fallback = await self._adjust_group(group, job)
            resolved = self._separate(pending, occupied)
            if used_fallback:
                outcome.fallback_groups += 1
            if not resolved:
                outcome.unresolved_groups += 1
                logger.error(
                    "Could not separate tie group at %.2f within +/-%.2f", group.score, self.limit
                )

            outcome.results.extend(
                TieBreakResult(
                    applicant_id=p.app.applicant_id,
                    micro_adjustment=p.adjustment,
                    reasoning=p.reasoning,
                    source=p.source,
                )
                for p in pending
            )
        return outcome

    def _fallback(self, app: TiedApplicant) -> _Pending:
        adjustment, reasoning = deterministic_adjustment(app, self.limit)
        return _Pending(app, adjustment, reasoning, TieBreakSource.DETERMINISTIC)

    async def _ask_reasoning(self, group: TieGroup, job: JobRequirements):
        if self.reasoning is None:
            return None
        try:
            outcome = await asyncio.wait_for(self.reasoning.compare(group, job), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Reasoning service timed out for tie group at %.2f", group.score)
            return None
        except Exception as e:
            logger.error("Reasoning service failed for tie group at %.2f: %s", group.score, e)
            return None
        if isinstance(outcome, ComparisonParseError):
            logger.warning("Reasoning service reply unusable (%s), using deterministic tie-break", outcome.error)
            return None
        return outcome

    async def _adjust_group(self, group: TieGroup, job: JobRequirements) -> tuple[list[_Pending], bool]:
        outcome = await self._ask_reasoning(group, job)
        if outcome is None:
            return [self._fallback(app) for app in group.applicants], True

        from_ai: dict[str, _Pending] = {}
        for ranking in outcome.rankings:
            app = match_candidate_name(ranking.candidate_name, group.applicants)
            if app is None:
                logger.warning("Could not match candidate name %r in tie group", ranking.candidate_name)
                continue
            if app.applicant_id in from_ai:
                continue
            adjustment = max(-self.limit, min(self.limit, ranking.micro_adjustment))
            from_ai[app.applicant_id] = _Pending(app, adjustment, ranking.reasoning, TieBreakSource.AI)

        if not from_ai:
            logger.warning("Reasoning reply matched no candidates, using deterministic tie-break")
            return [self._fallback(app) for app in group.applicants], True

        pending = [from_ai.get(app.applicant_id) or self._fallback(app) for app in group.applicants]
        return pending, len(from_ai) < len(group.applicants)

    def _separate(self, pending: list[_Pending], used: set[int]) -> bool:
        """Push members out of already occupied buckets, one bucket at a time.

        ``used`` starts with the buckets taken outside this group and gains
        each member's final bucket. Members are placed highest first (ties
        broken by applicant id) and move down, or up when the lower bound is
        reached. An AI adjustment that collides is first replaced by the
        deterministic one.
        """
        resolved = True
        order = sorted(pending, key=lambda p: (-(p.app.match_score + p.adjustment), p.app.applicant_id))

        for p in order:
            bucket = score_bucket(p.app.match_score + p.adjustment, self.threshold)
            if bucket in used and p.source is TieBreakSource.AI:
                fallback = self._fallback(p.app)
                p.adjustment, p.reasoning, p.source = fallback.adjustment, fallback.reasoning, fallback.source
                bucket = score_bucket(p.app.match_score + p.adjustment, self.threshold)

            adjustment = p.adjustment
            while bucket in used and adjustment - self.threshold >= -self.limit - _EPS:
                adjustment -= self.threshold
                bucket = score_bucket(p.app.match_score + adjustment, self.threshold)
            if bucket in used:
                adjustment = p.adjustment
                while bucket in used and adjustment + self.threshold <= self.limit + _EPS:
                    adjustment += self.threshold
                    bucket = score_bucket(p.app.match_score + adjustment, self.threshold)
            if bucket in used:
                resolved = False

            p.adjustment = round(max(-self.limit, min(self.limit, adjustment)), 6)
            used.add(bucket)
        return resolved
