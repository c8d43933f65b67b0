"""Final output records of a ranking run."""

from enum import Enum

from pydantic import BaseModel

from models.schemas.score_breakdown import AlgorithmDetails, AlgorithmKind
from models.schemas.tie_break import TieBreakSource


class RankingStage(str, Enum):
    NORMALIZING = "normalizing"
    SCORING = "scoring"
    SORTING = "sorting"
    TIE_DETECTION = "tie_detection"
    TIE_BREAKING = "tie_breaking"
    RESORTING = "resorting"
    RANK_ASSIGNMENT = "rank_assignment"
    DONE = "done"


class RankedApplicant(BaseModel):
    applicant_id: str
    applicant_name: str = ""
    rank: int
    match_score: float
    education_score: float = 0.0
    experience_score: float = 0.0
    skills_score: float = 0.0
    eligibility_score: float = 0.0
    matched_skills_count: int = 0
    matched_eligibilities_count: int = 0
    algorithm_used: AlgorithmKind
    ranking_reasoning: str = ""
    algorithm_details: AlgorithmDetails | None = None
    tie_break_source: TieBreakSource | None = None
    gemini_insights: str | None = None  # omitted when insight generation fails


class RankingStatistics(BaseModel):
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0


class RankingResult(BaseModel):
    job_id: str = ""
    ranked_applicants: list[RankedApplicant] = []
    tie_groups_found: int = 0
    tie_break_fallback_used: bool = False
    unresolved_ties: int = 0
    insights_generated: int = 0
    statistics: RankingStatistics = RankingStatistics()
    stage: RankingStage = RankingStage.DONE
