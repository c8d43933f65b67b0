"""Algorithm 1: weighted sum of the four component scores.

Weights default to education .30, experience .20, skills .20,
eligibility .30 and are validated to sum to 1.0 in Settings.
"""

from config import settings
from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.score_breakdown import AlgorithmKind, ScoreBreakdown
from services.embeddings import EmbeddingService
from services.ranking.algorithms.base import BaseScoringAlgorithm
from services.ranking.matching import (
    calculate_skill_match,
    compute_education_score,
    compute_eligibility_match,
    compute_experience_score,
)


class WeightedSumAlgorithm(BaseScoringAlgorithm):
    kind = AlgorithmKind.WEIGHTED_SUM

    def __init__(self, skill_embedder: EmbeddingService | None = None, weights: dict[str, float] | None = None):
        super().__init__(skill_embedder)
        self.weights = weights or {
            "education": settings.weighted_sum_education_weight,
            "experience": settings.weighted_sum_experience_weight,
            "skills": settings.weighted_sum_skills_weight,
            "eligibility": settings.weighted_sum_eligibility_weight,
        }

    async def score(self, job: JobRequirements, applicant: ApplicantData) -> ScoreBreakdown:
        education = compute_education_score(job, applicant, use_related_fields=True)
        experience = compute_experience_score(job, applicant)
        skills = await calculate_skill_match(job.skills, applicant.skills, self.skill_embedder)
        eligibility = compute_eligibility_match(job.eligibilities, applicant.eligibility_titles)

        w = self.weights
        total = (
            w["education"] * education
            + w["experience"] * experience
            + w["skills"] * skills.score
            + w["eligibility"] * eligibility.score
        )

        return ScoreBreakdown(
            total_score=round(total, 2),
            education_score=education,
            experience_score=experience,
            skills_score=skills.score,
            eligibility_score=eligibility.score,
            matched_skills_count=skills.matched_count,
            matched_eligibilities_count=eligibility.matched_count,
            algorithm_used=self.kind,
            reasoning=(
                f"Education ({w['education']:.0%}): {education:.1f}, "
                f"Experience ({w['experience']:.0%}): {experience:.1f}, "
                f"Skills ({w['skills']:.0%}): {skills.score:.1f}, "
                f"Eligibility ({w['eligibility']:.0%}): {eligibility.score:.1f}"
            ),
        )
