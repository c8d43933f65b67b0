"""Ranker: scores every applicant for one job and assigns unique ranks.

Flow:
    job + applicants
      ├─ normalize job once, applicants concurrently   (NormalizationCascade)
      ├─ score in batches of batch_size                (EnsembleScorer)
      ├─ sort by the deterministic chain
      ├─ detect tie groups → break ties                (TieBreaker)
      ├─ re-sort with adjusted scores
      ├─ assign ranks 1..N
      └─ insights for the top K                        (ReasoningService, optional)
"""

import asyncio
import logging
from dataclasses import dataclass

from config import settings
from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.ranked_applicant import RankedApplicant, RankingResult, RankingStage
from models.schemas.score_breakdown import (
    AlgorithmDetails,
    AlgorithmKind,
    ApplicantComparison,
    EnsembleMethod,
    EnsembleResult,
)
from models.schemas.tie_break import TieBreakResult, TieBreakSource, TiedApplicant
from services.ranking.cascade import NormalizationCascade, build_default_cascade
from services.ranking.ensemble import EnsembleScorer
from services.ranking.reasoning import ReasoningService, get_reasoning_service
from services.ranking.statistics import ranking_statistics
from services.ranking.tie_breaker import TieBreaker, find_tie_groups, score_bucket

logger = logging.getLogger(__name__)


@dataclass
class _Scored:
    index: int
    applicant: ApplicantData
    result: EnsembleResult
    total: float
    reasoning: str
    tie_source: TieBreakSource | None = None


def _failed_result(error: Exception) -> EnsembleResult:
    return EnsembleResult(
        algorithm_used=AlgorithmKind.ENSEMBLE_WEIGHTED_AVERAGE,
        reasoning=f"Scoring failed: {error}",
        algorithm_details=AlgorithmDetails(ensemble_method=EnsembleMethod.WEIGHTED_AVERAGE),
    )


class Ranker:
    def __init__(
        self,
        cascade: NormalizationCascade | None = None,
        scorer: EnsembleScorer | None = None,
        reasoning: ReasoningService | None = None,
        tie_breaker: TieBreaker | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
        insights_top_k: int | None = None,
    ):
        self.cascade = cascade or build_default_cascade()
        self.scorer = scorer or EnsembleScorer()
        self.reasoning = reasoning
        self.tie_breaker = tie_breaker or TieBreaker(reasoning)
        self.batch_size = batch_size or settings.batch_size
        self.batch_delay = batch_delay_seconds if batch_delay_seconds is not None else settings.batch_delay_seconds
        self.insights_top_k = insights_top_k if insights_top_k is not None else settings.insights_top_k
        self.threshold = settings.tie_score_threshold
        self.timeout = settings.service_timeout_seconds

    def _enter(self, job: JobRequirements, stage: RankingStage) -> None:
        logger.info("Ranking job %s: %s", job.id or job.title, stage.value)

    async def rank(self, job: JobRequirements, applicants: list[ApplicantData]) -> RankingResult:
        # --- Stage 1: Normalization ---
        self._enter(job, RankingStage.NORMALIZING)
        normalized_job = await self.cascade.normalize_job(job)
        normalized = await asyncio.gather(*(self._normalize_applicant(a) for a in applicants))

        # --- Stage 2: Scoring, in batches ---
        self._enter(job, RankingStage.SCORING)
        scored = await self._score_all(normalized_job, applicants, normalized)

        # --- Stage 3: Deterministic sort ---
        self._enter(job, RankingStage.SORTING)
        scored.sort(key=self._sort_key)

        # --- Stage 4: Tie detection + breaking ---
        self._enter(job, RankingStage.TIE_DETECTION)
        groups = find_tie_groups([self._tied(s) for s in scored], self.threshold)
        fallback_used = False
        unresolved = 0
        if groups:
            self._enter(job, RankingStage.TIE_BREAKING)
            logger.info(
                "Found %d tie groups with %d applicants",
                len(groups), sum(len(g.applicants) for g in groups),
            )
            tied_ids = {a.applicant_id for g in groups for a in g.applicants}
            reserved = {
                score_bucket(s.total, self.threshold)
                for s in scored
                if s.applicant.applicant_id not in tied_ids
            }
            outcome = await self.tie_breaker.break_ties(groups, job, reserved)
            self._apply_adjustments(scored, outcome.results)
            fallback_used = outcome.fallback_groups > 0
            unresolved = outcome.unresolved_groups

            self._enter(job, RankingStage.RESORTING)
            scored.sort(key=self._sort_key)

        # --- Stage 5: Rank assignment ---
        self._enter(job, RankingStage.RANK_ASSIGNMENT)
        ranked = [self._to_ranked(rank, s) for rank, s in enumerate(scored, start=1)]
        insights = await self._add_insights(job, ranked)

        self._enter(job, RankingStage.DONE)
        return RankingResult(
            job_id=job.id,
            ranked_applicants=ranked,
            tie_groups_found=len(groups),
            tie_break_fallback_used=fallback_used,
            unresolved_ties=unresolved,
            insights_generated=insights,
            statistics=ranking_statistics([r.match_score for r in ranked]),
            stage=RankingStage.DONE,
        )

    async def compare(
        self, job: JobRequirements, applicant1: ApplicantData, applicant2: ApplicantData
    ) -> ApplicantComparison:
        """Normalize, then compare two applicants head to head."""
        normalized_job, first, second = await asyncio.gather(
            self.cascade.normalize_job(job),
            self._normalize_applicant(applicant1),
            self._normalize_applicant(applicant2),
        )
        return await self.scorer.compare_applicants(normalized_job, first, second)

    async def _normalize_applicant(self, applicant: ApplicantData) -> ApplicantData:
        try:
            return await self.cascade.normalize_applicant(applicant)
        except Exception as e:
            logger.error("Normalization failed for applicant %s, scoring raw values: %s", applicant.applicant_id, e)
            return applicant

    async def _score_one(self, job: JobRequirements, applicant: ApplicantData) -> EnsembleResult:
        try:
            return await self.scorer.ensemble_score(job, applicant)
        except Exception as e:
            logger.error("Scoring failed for applicant %s: %s", applicant.applicant_id, e)
            return _failed_result(e)

    async def _score_all(
        self,
        job: JobRequirements,
        applicants: list[ApplicantData],
        normalized: list[ApplicantData],
    ) -> list[_Scored]:
        results: list[EnsembleResult] = []
        total_batches = (len(normalized) + self.batch_size - 1) // self.batch_size
        for batch_no, start in enumerate(range(0, len(normalized), self.batch_size), start=1):
            if start > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
            batch = normalized[start:start + self.batch_size]
            results.extend(await asyncio.gather(*(self._score_one(job, a) for a in batch)))
            logger.info("Scored batch %d/%d (%d applicants)", batch_no, total_batches, len(batch))

        return [
            _Scored(index=i, applicant=raw, result=result, total=result.total_score, reasoning=result.reasoning)
            for i, (raw, result) in enumerate(zip(applicants, results))
        ]

    def _sort_key(self, s: _Scored) -> tuple:
        """total > eligibility > education > experience > skills (all at tie precision),
        then raw years, raw skill count, original order."""
        r = s.result
        return (
            -score_bucket(s.total, self.threshold),
            -score_bucket(r.eligibility_score, self.threshold),
            -score_bucket(r.education_score, self.threshold),
            -score_bucket(r.experience_score, self.threshold),
            -score_bucket(r.skills_score, self.threshold),
            -(s.applicant.total_years_experience or 0.0),
            -len(s.applicant.skills),
            s.index,
        )

    @staticmethod
    def _tied(s: _Scored) -> TiedApplicant:
        r = s.result
        a = s.applicant
        return TiedApplicant(
            applicant_id=a.applicant_id,
            applicant_name=a.applicant_name,
            match_score=s.total,
            education_score=r.education_score,
            experience_score=r.experience_score,
            skills_score=r.skills_score,
            eligibility_score=r.eligibility_score,
            highest_educational_attainment=a.highest_educational_attainment,
            total_years_experience=a.total_years_experience,
            skills=a.skills,
            eligibilities=a.eligibilities,
            work_experience_titles=a.work_experience_titles,
        )

    @staticmethod
    def _apply_adjustments(scored: list[_Scored], results: list[TieBreakResult]) -> None:
        by_id: dict[str, _Scored] = {}
        for s in scored:
            by_id.setdefault(s.applicant.applicant_id, s)
        for result in results:
            s = by_id.get(result.applicant_id)
            if s is None:
                continue
            s.total += result.micro_adjustment
            s.tie_source = result.source
            label = "AI tie-break" if result.source is TieBreakSource.AI else "Deterministic tie-break"
            s.reasoning += f" [{label}: {result.reasoning}]"

    def _to_ranked(self, rank: int, s: _Scored) -> RankedApplicant:
        r = s.result
        return RankedApplicant(
            applicant_id=s.applicant.applicant_id,
            applicant_name=s.applicant.applicant_name,
            rank=rank,
            match_score=round(score_bucket(s.total, self.threshold) * self.threshold, 4),
            education_score=round(r.education_score, 2),
            experience_score=round(r.experience_score, 2),
            skills_score=round(r.skills_score, 2),
            eligibility_score=round(r.eligibility_score, 2),
            matched_skills_count=r.matched_skills_count,
            matched_eligibilities_count=r.matched_eligibilities_count,
            algorithm_used=r.algorithm_used,
            ranking_reasoning=s.reasoning,
            algorithm_details=r.algorithm_details,
            tie_break_source=s.tie_source,
        )

    async def _add_insights(self, job: JobRequirements, ranked: list[RankedApplicant]) -> int:
        """Attach reasoning-service insights to the top K. Failures only skip insights."""
        if self.reasoning is None or not ranked or self.insights_top_k <= 0:
            return 0
        top = ranked[:self.insights_top_k]
        try:
            insights = await asyncio.wait_for(self.reasoning.summarize(job, top), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Insight generation timed out")
            return 0
        except Exception as e:
            logger.error("Insight generation failed: %s", e)
            return 0
        if not insights:
            return 0

        count = 0
        for candidate, text in zip(top, insights):
            if text:
                candidate.gemini_insights = text
                count += 1
        return count


_ranker: Ranker | None = None


def get_ranker() -> Ranker:
    """Process-wide ranker wired to the default cascade, scorer and reasoning service."""
    global _ranker
    if _ranker is None:
        reasoning = get_reasoning_service()
        _ranker = Ranker(reasoning=reasoning, tie_breaker=TieBreaker(reasoning))
    return _ranker
