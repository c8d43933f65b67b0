"""Tie detection and tie-breaking contracts."""

from enum import Enum

from pydantic import BaseModel

from models.schemas.applicant_data import Eligibility


class TieBreakSource(str, Enum):
    AI = "ai"
    DETERMINISTIC = "deterministic"


class TiedApplicant(BaseModel):
    """Summary of an applicant inside a tie group, used for the comparison prompt."""
    applicant_id: str
    applicant_name: str = ""
    match_score: float = 0.0
    education_score: float = 0.0
    experience_score: float = 0.0
    skills_score: float = 0.0
    eligibility_score: float = 0.0
    highest_educational_attainment: str = ""
    total_years_experience: float = 0.0
    skills: list[str] = []
    eligibilities: list[Eligibility] = []
    work_experience_titles: list[str] = []


class TieGroup(BaseModel):
    score: float  # ensemble score rounded to 2 decimals
    applicants: list[TiedApplicant] = []


class TieBreakResult(BaseModel):
    applicant_id: str
    micro_adjustment: float = 0.0  # clamped to [-limit, +limit]
    reasoning: str = ""
    source: TieBreakSource = TieBreakSource.DETERMINISTIC


class TieBreakOutcome(BaseModel):
    results: list[TieBreakResult] = []
    fallback_groups: int = 0  # groups resolved without the reasoning service
    unresolved_groups: int = 0  # groups left tied after both paths
