"""Normalization cascade output contracts."""

from enum import Enum

from pydantic import BaseModel, Field

from models.schemas.canonical_entry import CanonicalEntry


class NormalizationMethod(str, Enum):
    DICTIONARY = "dictionary"
    EMBEDDING = "embedding"
    LLM = "llm"
    UNRESOLVED = "unresolved"


class ListJoiner(str, Enum):
    AND = "and"
    OR = "or"


class NormalizationResult(BaseModel):
    """Resolution of one raw qualification string."""
    canonical_key: str | None = None
    method: NormalizationMethod = NormalizationMethod.UNRESOLVED
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    raw: str = ""

    model_config = {"frozen": True}

    @property
    def resolved(self) -> bool:
        return self.canonical_key is not None


class CompositeNormalization(BaseModel):
    """A possibly-composite string rebuilt from canonical labels.

    ``text`` keeps the joiner semantics of the input so the scoring
    algorithms' list-expression parsing reads it the same way.
    """
    text: str = ""
    primary_entry: CanonicalEntry | None = None
    joiner: ListJoiner | None = None
    tokens: list[NormalizationResult] = []
