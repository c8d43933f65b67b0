"""Tagged results for replies from the classification and reasoning services.

Replies are parsed into one of these shapes at the client boundary so the
rest of the engine never handles raw JSON.
"""

from typing import Literal, Union

from pydantic import BaseModel, Field


class ClassificationSuccess(BaseModel):
    kind: Literal["success"] = "success"
    key: str
    confidence: float | None = None  # None when the service omitted it
    reasoning: str = ""


class ClassificationUnknown(BaseModel):
    kind: Literal["unknown"] = "unknown"
    confidence: float | None = None
    reasoning: str = ""


class ClassificationParseError(BaseModel):
    kind: Literal["parse_error"] = "parse_error"
    error: str = ""


ClassificationOutcome = Union[ClassificationSuccess, ClassificationUnknown, ClassificationParseError]


class CandidateAdjustment(BaseModel):
    """One entry of a tie-break comparison reply."""
    candidate_name: str
    micro_adjustment: float = 0.0
    reasoning: str = ""


class ComparisonSuccess(BaseModel):
    kind: Literal["success"] = "success"
    rankings: list[CandidateAdjustment] = Field(default_factory=list)


class ComparisonParseError(BaseModel):
    kind: Literal["parse_error"] = "parse_error"
    error: str = ""


ComparisonOutcome = Union[ComparisonSuccess, ComparisonParseError]
