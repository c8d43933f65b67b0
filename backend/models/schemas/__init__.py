"""Pydantic contracts shared by the normalization, scoring and ranking stages."""

from models.schemas.applicant_data import ApplicantData, Eligibility
from models.schemas.canonical_entry import CanonicalEntry, Vocabulary
from models.schemas.job_requirements import JobRequirements
from models.schemas.normalization_result import CompositeNormalization, NormalizationMethod, NormalizationResult
from models.schemas.ranked_applicant import RankedApplicant, RankingResult, RankingStage, RankingStatistics
from models.schemas.score_breakdown import (
    AlgorithmDetails,
    AlgorithmKind,
    ApplicantComparison,
    EnsembleMethod,
    EnsembleResult,
    ScoreBreakdown,
)
from models.schemas.tie_break import TieBreakResult, TieBreakSource, TiedApplicant, TieGroup

__all__ = [
    "ApplicantData",
    "Eligibility",
    "CanonicalEntry",
    "Vocabulary",
    "JobRequirements",
    "CompositeNormalization",
    "NormalizationMethod",
    "NormalizationResult",
    "RankedApplicant",
    "RankingResult",
    "RankingStage",
    "RankingStatistics",
    "AlgorithmDetails",
    "AlgorithmKind",
    "ApplicantComparison",
    "EnsembleMethod",
    "EnsembleResult",
    "ScoreBreakdown",
    "TieBreakResult",
    "TieBreakSource",
    "TiedApplicant",
    "TieGroup",
]
