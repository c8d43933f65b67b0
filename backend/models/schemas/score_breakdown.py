"""Per-algorithm and ensemble scoring outputs."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class AlgorithmKind(str, Enum):
    WEIGHTED_SUM = "weighted_sum"
    SKILL_EXPERIENCE_COMPOSITE = "skill_experience_composite"
    ELIGIBILITY_EDUCATION_TIEBREAKER = "eligibility_education_tiebreaker"
    ENSEMBLE_WEIGHTED_AVERAGE = "ensemble_weighted_average"
    ENSEMBLE_TIE_BREAKER = "ensemble_tie_breaker"


class EnsembleMethod(str, Enum):
    WEIGHTED_AVERAGE = "weighted_average"
    TIE_BREAKER = "tie_breaker"


class ScoreBreakdown(BaseModel):
    """Score of one applicant under one algorithm.

    All scores are 0-100. Matched counts are job-side: how many of the job's
    skills / eligibility tokens the applicant satisfies.
    """
    total_score: float = 0.0
    education_score: float = 0.0
    experience_score: float = 0.0
    skills_score: float = 0.0
    eligibility_score: float = 0.0
    matched_skills_count: int = 0
    matched_eligibilities_count: int = 0
    algorithm_used: AlgorithmKind
    reasoning: str = ""


class AlgorithmDetails(BaseModel):
    """Audit trail of how the ensemble arrived at its score."""
    algorithm1_score: float | None = None
    algorithm2_score: float | None = None
    algorithm3_score: float | None = None  # only computed on near-ties
    ensemble_method: EnsembleMethod
    algorithm1_weight: float | None = None
    algorithm2_weight: float | None = None
    is_tie_breaker: bool = False
    score_difference: float = 0.0


class EnsembleResult(ScoreBreakdown):
    algorithm_details: AlgorithmDetails


class ApplicantComparison(BaseModel):
    winner: Literal["applicant1", "applicant2", "tie"]
    applicant1_score: EnsembleResult
    applicant2_score: EnsembleResult
    analysis: str = ""
