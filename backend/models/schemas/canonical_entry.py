"""Canonical vocabulary entries for degrees and eligibilities."""

from enum import Enum

from pydantic import BaseModel


class Vocabulary(str, Enum):
    DEGREE = "degree"
    ELIGIBILITY = "eligibility"


class CanonicalEntry(BaseModel):
    """A single canonical degree or eligibility loaded from YAML.

    Degrees carry ``level`` and ``field_group``; eligibilities carry
    ``category``. Entries are immutable once loaded.
    """
    key: str
    canonical: str
    level: str | None = None  # e.g. "bachelor", "master"
    field_group: str | None = None  # e.g. "accounting_finance"
    category: str | None = None  # e.g. "csc", "prc_license"
    aliases: tuple[str, ...] = ()

    model_config = {"frozen": True}
