"""String primitives shared by normalization and scoring.

Everything here is pure and synchronous: key normalization for alias lookup,
token overlap, Levenshtein similarity, and the list-expression grammar used
by degree and eligibility requirements ("A, B, or C" / "A and B").
"""

import re
from enum import Enum

from rapidfuzz.distance import Levenshtein

_PUNCT_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")
_JOINER_RE = re.compile(r"\s+(or|and)\s+", re.IGNORECASE)
_AND_RE = re.compile(r"\sand\s")
_OR_RE = re.compile(r"\sor\s")
_DEGREE_TAIL_RE = re.compile(r"\s+(?:Eligibilities|Skills|Experience):", re.IGNORECASE)
_FIELD_IN_RE = re.compile(r"\bin\s+(.+)$", re.IGNORECASE)
_FIELD_OF_RE = re.compile(r"\bof\s+(.+)$", re.IGNORECASE)

_SKILL_STOPWORDS = {"the", "and", "for", "with"}

NO_REQUIREMENT_TEXTS = frozenset({
    "none",
    "not required",
    "no degree required",
    "no eligibility required",
    "no eligibilities required",
    "no skills required",
    "no specific skills required",
})


class ListMode(str, Enum):
    SINGLE = "single"
    AND = "and"
    OR = "or"


def normalize_key(raw: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    text = _PUNCT_RE.sub(" ", raw.lower().strip())
    return _WS_RE.sub(" ", text).strip()


def tokenize(text: str) -> list[str]:
    return [t for t in _WS_RE.split(_PUNCT_RE.sub(" ", text.lower())) if t]


def token_jaccard(a: str, b: str) -> float:
    """Jaccard overlap of word sets (0-1). Used only to shortlist candidates."""
    a_tokens = set(tokenize(a))
    b_tokens = set(tokenize(b))
    if not a_tokens or not b_tokens:
        return 0.0
    intersection = len(a_tokens & b_tokens)
    union = len(a_tokens | b_tokens)
    return intersection / union if union else 0.0


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive Levenshtein similarity as a percentage (0-100)."""
    s1 = a.lower().strip()
    s2 = b.lower().strip()
    if s1 == s2:
        return 100.0
    if not s1 or not s2:
        return 0.0
    max_len = max(len(s1), len(s2))
    similarity = (max_len - Levenshtein.distance(s1, s2)) / max_len * 100
    return max(0.0, min(100.0, similarity))


def skill_tokens(skill: str) -> list[str]:
    """Meaningful words of a skill: longer than two characters, minus filler."""
    return [t for t in tokenize(skill) if len(t) > 2 and t not in _SKILL_STOPWORDS]


def is_no_requirement_text(raw: str | None) -> bool:
    if raw is None:
        return True
    lower = raw.lower().strip()
    return not lower or lower in NO_REQUIREMENT_TEXTS


def parse_list_expression(raw: str) -> list[str]:
    """Split "A, B, or C" / "A and B" into its items."""
    text = raw.strip()
    if not text:
        return []
    return [part.strip() for part in _JOINER_RE.sub(",", text).split(",") if part.strip()]


def detect_list_mode(raw: str) -> ListMode:
    """AND wins over OR; no joiner word means a single item."""
    lower = raw.lower()
    if _AND_RE.search(lower):
        return ListMode.AND
    if _OR_RE.search(lower):
        return ListMode.OR
    return ListMode.SINGLE


def is_composite(raw: str) -> bool:
    lower = raw.lower()
    return bool(_AND_RE.search(lower) or _OR_RE.search(lower) or "," in raw)


def composite_joiner(raw: str) -> str:
    """Joiner to rebuild a composite so detect_list_mode reads it the same way.

    Comma-only lists default to "or".
    """
    return "and" if detect_list_mode(raw) is ListMode.AND else "or"


def clean_degree_requirement(degree: str) -> str:
    """Drop eligibility/skills/experience text accidentally appended to a degree."""
    return _DEGREE_TAIL_RE.split(degree, maxsplit=1)[0].strip()


def extract_degree_field(degree: str) -> str:
    """Core field of a degree: the text after "in", else after "of"."""
    match = _FIELD_IN_RE.search(degree) or _FIELD_OF_RE.search(degree)
    if match:
        return match.group(1).strip()
    return degree.strip()
