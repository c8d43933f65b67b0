"""Algorithm 3: eligibility-first tie-breaker.

Only computed when algorithms 1 and 2 land close together. Points:
eligibility up to 40 (neutral 20 when nothing is required), education up
to 30, experience up to 20, matched skills up to 2.
"""

from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.score_breakdown import AlgorithmKind, ScoreBreakdown
from services.ranking.algorithms.base import BaseScoringAlgorithm
from services.ranking.matching import (
    calculate_skill_match,
    compute_education_score,
    compute_eligibility_match,
    compute_experience_score,
    has_no_eligibility_requirement,
    required_years,
)


class EligibilityEducationAlgorithm(BaseScoringAlgorithm):
    kind = AlgorithmKind.ELIGIBILITY_EDUCATION_TIEBREAKER

    async def score(self, job: JobRequirements, applicant: ApplicantData) -> ScoreBreakdown:
        reasoning: list[str] = []

        eligibility = compute_eligibility_match(job.eligibilities, applicant.eligibility_titles)
        if has_no_eligibility_requirement(job.eligibilities):
            eligibility_points = 20.0
            reasoning.append("No license required (+20)")
        else:
            eligibility_points = eligibility.score / 100 * 40
            reasoning.append(
                f"Professional license match: {eligibility.score:.1f}% (+{eligibility_points:.1f})"
            )

        education = compute_education_score(job, applicant)
        education_points = education / 100 * 30
        reasoning.append(f"Degree match: {education:.1f}% (+{education_points:.1f})")

        experience = compute_experience_score(job, applicant)
        excess_years = max(0.0, (applicant.total_years_experience or 0.0) - required_years(job))
        experience_points = min(experience / 100 * 20, 20.0)
        reasoning.append(
            f"Experience: {experience:.1f}%, {excess_years:.1f} years over (+{experience_points:.1f})"
        )

        skills = await calculate_skill_match(job.skills, applicant.skills, self.skill_embedder)
        skill_points = min(skills.matched_count * 10, 20) * 0.10
        reasoning.append(f"{skills.matched_count} matched skills (+{skill_points:.1f})")

        total = eligibility_points + education_points + experience_points + skill_points
        return ScoreBreakdown(
            total_score=round(total, 2),
            education_score=education,
            experience_score=experience,
            skills_score=skills.score,
            eligibility_score=eligibility.score,
            matched_skills_count=skills.matched_count,
            matched_eligibilities_count=eligibility.matched_count,
            algorithm_used=self.kind,
            reasoning="; ".join(reasoning),
        )
