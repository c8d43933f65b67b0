"""Algorithm 2: skill-experience composite.

Skills are scaled by an exponential experience factor that reaches full
weight at twice the required years. When both sides list job titles, the
composite is blended with how closely past roles match the job title, and
that similarity also drives the experience relevance term.
"""

from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.score_breakdown import AlgorithmKind, ScoreBreakdown
from services.ranking.algorithms.base import BaseScoringAlgorithm
from services.ranking.matching import (
    calculate_skill_match,
    composite_skill_experience,
    compute_education_score,
    compute_eligibility_match,
    compute_experience_score,
    required_years,
    work_title_similarity,
)

COMPOSITE_WEIGHT = 0.30
EDUCATION_WEIGHT = 0.35
ELIGIBILITY_WEIGHT = 0.35
TITLE_BLEND = 0.20  # share of the composite taken by title similarity


class SkillExperienceAlgorithm(BaseScoringAlgorithm):
    kind = AlgorithmKind.SKILL_EXPERIENCE_COMPOSITE

    async def score(self, job: JobRequirements, applicant: ApplicantData) -> ScoreBreakdown:
        skills = await calculate_skill_match(job.skills, applicant.skills, self.skill_embedder)

        title_sim = work_title_similarity(job.title, applicant.work_experience_titles)
        experience = compute_experience_score(job, applicant, relevance=title_sim)

        ratio = max(0.0, applicant.total_years_experience or 0.0) / required_years(job)
        composite = composite_skill_experience(skills.score, ratio)
        if title_sim is not None:
            composite = (1 - TITLE_BLEND) * composite + TITLE_BLEND * title_sim

        education = compute_education_score(job, applicant)
        eligibility = compute_eligibility_match(job.eligibilities, applicant.eligibility_titles)

        total = COMPOSITE_WEIGHT * composite + EDUCATION_WEIGHT * education + ELIGIBILITY_WEIGHT * eligibility.score

        title_note = f", role similarity {title_sim:.1f}" if title_sim is not None else ""
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
                f"Skill-Experience Composite (30%): {composite:.1f}{title_note}, "
                f"Education (35%): {education:.1f}, Eligibility (35%): {eligibility.score:.1f}"
            ),
        )
