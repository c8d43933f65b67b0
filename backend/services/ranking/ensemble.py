"""Ensemble scorer: combines the scoring algorithms into one match score.

    a1 = WeightedSum, a2 = SkillExperienceComposite
    |a1 - a2| <= threshold  ->  a3 (EligibilityEducation) decides
    otherwise               ->  0.6 * a1 + 0.4 * a2, components blended the same way
"""

import asyncio
import logging

from config import settings
from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.score_breakdown import (
    AlgorithmDetails,
    AlgorithmKind,
    ApplicantComparison,
    EnsembleMethod,
    EnsembleResult,
    ScoreBreakdown,
)
from services.ranking.algorithms.base import BaseScoringAlgorithm
from services.ranking.algorithms.registry import get_algorithm

logger = logging.getLogger(__name__)

COMPARISON_TIE_MARGIN = 1.0


def build_narrative(education: float, experience: float, skills: float, eligibility: float) -> str:
    """Plain-language strengths and gaps for a blended score."""
    strengths: list[str] = []
    gaps: list[str] = []

    if education >= 80:
        strengths.append("strong educational background")
    elif education < 60:
        gaps.append("education level")

    if experience >= 80:
        strengths.append("excellent relevant experience" if experience == 100 else "solid work experience")
    elif experience < 60:
        gaps.append("years of experience")

    if skills >= 60:
        strengths.append("good technical skills")
    elif skills < 40:
        gaps.append("required skills")

    if eligibility >= 80:
        strengths.append("appropriate certifications")
    elif eligibility < 60:
        gaps.append("certifications")

    parts: list[str] = []
    if strengths:
        parts.append(f"Candidate demonstrates {', '.join(strengths)}.")
    if gaps:
        lead = "Areas for development include" if strengths else "Needs improvement in"
        parts.append(f"{lead} {', '.join(gaps)}.")
    return " ".join(parts) or "Candidate evaluated across multiple qualification criteria."


class EnsembleScorer:
    def __init__(
        self,
        primary: BaseScoringAlgorithm | None = None,
        secondary: BaseScoringAlgorithm | None = None,
        tiebreaker: BaseScoringAlgorithm | None = None,
        tie_threshold: float | None = None,
        primary_weight: float | None = None,
        secondary_weight: float | None = None,
    ):
        self.primary = primary or get_algorithm(AlgorithmKind.WEIGHTED_SUM)
        self.secondary = secondary or get_algorithm(AlgorithmKind.SKILL_EXPERIENCE_COMPOSITE)
        self.tiebreaker = tiebreaker or get_algorithm(AlgorithmKind.ELIGIBILITY_EDUCATION_TIEBREAKER)
        self.tie_threshold = tie_threshold if tie_threshold is not None else settings.ensemble_tie_threshold
        self.primary_weight = primary_weight if primary_weight is not None else settings.ensemble_primary_weight
        self.secondary_weight = (
            secondary_weight if secondary_weight is not None else settings.ensemble_secondary_weight
        )

    async def ensemble_score(self, job: JobRequirements, applicant: ApplicantData) -> EnsembleResult:
        score1, score2 = await asyncio.gather(
            self.primary.score(job, applicant),
            self.secondary.score(job, applicant),
        )
        diff = abs(score1.total_score - score2.total_score)

        if diff <= self.tie_threshold:
            score3 = await self.tiebreaker.score(job, applicant)
            return self._tie_breaker_result(score1, score2, score3, diff)
        return self._weighted_result(score1, score2, diff)

    def _tie_breaker_result(
        self, score1: ScoreBreakdown, score2: ScoreBreakdown, score3: ScoreBreakdown, diff: float
    ) -> EnsembleResult:
        return EnsembleResult(
            **score3.model_dump(exclude={"algorithm_used", "reasoning"}),
            algorithm_used=AlgorithmKind.ENSEMBLE_TIE_BREAKER,
            reasoning=(
                f"Algorithms 1 & 2 within {self.tie_threshold:g} points "
                f"({score1.total_score:.1f} vs {score2.total_score:.1f}). "
                f"Tie-breaker: {score3.reasoning}"
            ),
            algorithm_details=AlgorithmDetails(
                algorithm1_score=score1.total_score,
                algorithm2_score=score2.total_score,
                algorithm3_score=score3.total_score,
                ensemble_method=EnsembleMethod.TIE_BREAKER,
                is_tie_breaker=True,
                score_difference=round(diff, 2),
            ),
        )

    def _weighted_result(self, score1: ScoreBreakdown, score2: ScoreBreakdown, diff: float) -> EnsembleResult:
        w1, w2 = self.primary_weight, self.secondary_weight

        def blend(field: str) -> float:
            return round(getattr(score1, field) * w1 + getattr(score2, field) * w2, 2)

        education = blend("education_score")
        experience = blend("experience_score")
        skills = blend("skills_score")
        eligibility = blend("eligibility_score")

        return EnsembleResult(
            total_score=blend("total_score"),
            education_score=education,
            experience_score=experience,
            skills_score=skills,
            eligibility_score=eligibility,
            matched_skills_count=score1.matched_skills_count,
            matched_eligibilities_count=score1.matched_eligibilities_count,
            algorithm_used=AlgorithmKind.ENSEMBLE_WEIGHTED_AVERAGE,
            reasoning=build_narrative(education, experience, skills, eligibility),
            algorithm_details=AlgorithmDetails(
                algorithm1_score=score1.total_score,
                algorithm2_score=score2.total_score,
                algorithm3_score=None,
                ensemble_method=EnsembleMethod.WEIGHTED_AVERAGE,
                algorithm1_weight=w1,
                algorithm2_weight=w2,
                is_tie_breaker=False,
                score_difference=round(diff, 2),
            ),
        )

    async def compare_applicants(
        self, job: JobRequirements, applicant1: ApplicantData, applicant2: ApplicantData
    ) -> ApplicantComparison:
        """Head-to-head ensemble comparison; under one point apart is a tie."""
        score1, score2 = await asyncio.gather(
            self.ensemble_score(job, applicant1),
            self.ensemble_score(job, applicant2),
        )
        diff = score1.total_score - score2.total_score
        if abs(diff) < COMPARISON_TIE_MARGIN:
            winner = "tie"
        elif diff > 0:
            winner = "applicant1"
        else:
            winner = "applicant2"

        return ApplicantComparison(
            winner=winner,
            applicant1_score=score1,
            applicant2_score=score2,
            analysis=(
                f"Applicant 1: {score1.total_score:.2f} vs Applicant 2: {score2.total_score:.2f}. "
                f"Difference: {abs(diff):.2f} points."
            ),
        )
