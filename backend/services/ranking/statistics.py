"""Summary statistics over a ranking's final match scores."""

import numpy as np

from models.schemas.ranked_applicant import RankingStatistics


def ranking_statistics(scores: list[float]) -> RankingStatistics:
    """Min / max / mean / median / population std-dev, rounded to one decimal."""
    if not scores:
        return RankingStatistics()
    values = np.asarray(scores, dtype=float)
    return RankingStatistics(
        count=len(scores),
        min=round(float(values.min()), 1),
        max=round(float(values.max()), 1),
        mean=round(float(values.mean()), 1),
        median=round(float(np.median(values)), 1),
        std_dev=round(float(values.std()), 1),
    )
