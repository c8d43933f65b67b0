"""All prompt templates for Gemini API calls."""

import json

from models.schemas.canonical_entry import CanonicalEntry, Vocabulary
from models.schemas.job_requirements import JobRequirements
from models.schemas.ranked_applicant import RankedApplicant
from models.schemas.tie_break import TieGroup


def build_classification_prompt(
    raw: str,
    candidates: list[CanonicalEntry],
    vocabulary: Vocabulary,
) -> str:
    """Cascade LLM tier: map a raw degree/eligibility onto one shortlisted key."""
    if vocabulary is Vocabulary.DEGREE:
        noun = "degree name"
        options = [
            {"key": c.key, "canonical": c.canonical, "level": c.level, "field_group": c.field_group}
            for c in candidates
        ]
    else:
        noun = "eligibility or license name"
        options = [{"key": c.key, "canonical": c.canonical, "category": c.category} for c in candidates]

    return f"""You are part of an HR system for Philippine government jobs.
Your task is to NORMALIZE an applicant's {noun} to one of the canonical {vocabulary.value} options provided.

CANONICAL OPTIONS (JSON):
{json.dumps(options, indent=2)}

RAW VALUE:
"{raw}"

Choose the SINGLE best canonical key from the list above.
If you are not reasonably sure, choose "UNKNOWN".

Respond with ONLY valid JSON (no markdown, no code fences) in this exact structure:
{{
  "canonical_key": "<one of the keys from the list OR 'UNKNOWN'>",
  "confidence": <number between 0 and 1>,
  "reasoning": "<short explanation in 1-2 sentences>"
}}"""


def _format_candidate(index: int, app) -> str:
    roles = ""
    if app.work_experience_titles:
        roles = f"\n  Previous roles: {', '.join(app.work_experience_titles)}"
    skills = ", ".join(app.skills) if app.skills else "None listed"
    eligibilities = ", ".join(e.title for e in app.eligibilities if e.title) or "None"
    return (
        f"Candidate {index}: {app.applicant_name}\n"
        f"- Education: {app.highest_educational_attainment} (Score: {app.education_score:.1f}%)\n"
        f"- Experience: {app.total_years_experience:g} years (Score: {app.experience_score:.1f}%){roles}\n"
        f"- Skills: {skills} (Score: {app.skills_score:.1f}%)\n"
        f"- Eligibilities: {eligibilities} (Score: {app.eligibility_score:.1f}%)"
    )


def build_comparison_prompt(
    group: TieGroup,
    job_title: str,
    job_description: str = "",
    adjustment_limit: float = 0.5,
) -> str:
    """Tie-breaking: ask for bounded micro-adjustments inside one tie group."""
    description = f"\nJob Description: {job_description}\n" if job_description else ""
    candidates = "\n\n".join(
        _format_candidate(i, app) for i, app in enumerate(group.applicants, start=1)
    )

    return f"""You are an expert HR recruiter analyzing candidates for the position: "{job_title}".
{description}
The following {len(group.applicants)} candidates have tied with an overall match score of {group.score:.2f}%.
Your task is to provide subtle differentiation by assigning micro-adjustments between -{adjustment_limit} and +{adjustment_limit} to each candidate based on qualitative factors.

Consider:
1. Quality and relevance of work experience (not just years)
2. Specific skills that align better with the job
3. Depth of qualifications vs breadth
4. Professional certifications and their relevance

{candidates}

Respond with ONLY valid JSON in this exact structure:
{{
  "rankings": [
    {{
      "candidateName": "<name exactly as listed above>",
      "microAdjustment": <number between -{adjustment_limit} and {adjustment_limit}>,
      "reasoning": "<brief explanation, max 50 words>"
    }}
  ]
}}

Rules:
- Micro-adjustments MUST be between -{adjustment_limit} and +{adjustment_limit}
- Give every candidate a different adjustment
- Higher adjustment = stronger candidate within this tie group
- Be objective and focus on job-relevant factors"""


def build_insights_prompt(job: JobRequirements, top_candidates: list[RankedApplicant]) -> str:
    """Post-ranking: short fit insight per top candidate, one "Candidate N:" block each."""
    candidates = "\n".join(
        f"{i}. {c.applicant_name}\n"
        f"   - Match Score: {c.match_score:.1f}%\n"
        f"   - Algorithm: {c.algorithm_used.value}\n"
        f"   - Scoring: Education {c.education_score:.1f}%, Experience {c.experience_score:.1f}%, "
        f"Skills {c.skills_score:.1f}%, Eligibility {c.eligibility_score:.1f}%"
        for i, c in enumerate(top_candidates, start=1)
    )

    return f"""You are an HR expert analyzing job applicants.

Job Position: {job.title}
Job Description: {job.description}
Requirements:
- Education: {job.degree_requirement}
- Experience: {job.years_of_experience:g} years
- Skills: {', '.join(job.skills)}
- Eligibilities: {', '.join(job.eligibilities)}

Top {len(top_candidates)} Candidates (already scored):
{candidates}

For each candidate, provide a brief (2-3 sentences) professional insight about their fit for this role. Focus on:
1. Key strengths that make them suitable
2. Any potential concerns or gaps
3. Recommendation (Highly Recommended / Recommended / Conditional)

Format your response as:
Candidate 1: [Your insight]
Candidate 2: [Your insight]
...

Keep it concise and professional."""
