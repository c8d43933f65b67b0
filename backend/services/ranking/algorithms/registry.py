"""Lazy-loading registry of scoring algorithms.

Global singletons keyed by AlgorithmKind, created and loaded on first use.
"""

import logging

from models.schemas.score_breakdown import AlgorithmKind
from services.ranking.algorithms.base import BaseScoringAlgorithm

logger = logging.getLogger(__name__)

_registry: dict[AlgorithmKind, BaseScoringAlgorithm] = {}


def _create_algorithm(kind: AlgorithmKind) -> BaseScoringAlgorithm:
    """Factory: create an algorithm by kind with deferred imports."""
    if kind is AlgorithmKind.WEIGHTED_SUM:
        from services.ranking.algorithms.weighted_sum import WeightedSumAlgorithm
        return WeightedSumAlgorithm()
    elif kind is AlgorithmKind.SKILL_EXPERIENCE_COMPOSITE:
        from services.ranking.algorithms.skill_experience import SkillExperienceAlgorithm
        return SkillExperienceAlgorithm()
    elif kind is AlgorithmKind.ELIGIBILITY_EDUCATION_TIEBREAKER:
        from services.ranking.algorithms.eligibility_education import EligibilityEducationAlgorithm
        return EligibilityEducationAlgorithm()
    else:
        raise ValueError(f"Not a standalone scoring algorithm: {kind}")


def get_algorithm(kind: AlgorithmKind) -> BaseScoringAlgorithm:
    """Get an algorithm by kind, creating and loading it on first access."""
    if kind not in _registry:
        _registry[kind] = _create_algorithm(kind)
    algorithm = _registry[kind]
    algorithm.ensure_loaded()
    return algorithm


def preload(*kinds: AlgorithmKind) -> None:
    """Pre-load algorithms (e.g. at startup)."""
    for kind in kinds:
        get_algorithm(kind)


def clear() -> None:
    """Drop all algorithm instances. Useful for testing."""
    _registry.clear()
