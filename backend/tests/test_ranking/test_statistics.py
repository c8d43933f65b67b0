import pytest

from services.ranking.statistics import ranking_statistics


def test_statistics():
    stats = ranking_statistics([90.0, 80.0, 70.0])
    assert stats.count == 3
    assert (stats.min, stats.max) == (70.0, 90.0)
    assert stats.mean == 80.0
    assert stats.median == 80.0
    assert stats.std_dev == pytest.approx(8.2)


def test_even_count_median():
    assert ranking_statistics([10.0, 20.0, 30.0, 40.0]).median == 25.0


def test_single_score_has_zero_spread():
    stats = ranking_statistics([42.04])
    assert stats.std_dev == 0.0
    assert stats.mean == stats.median == 42.0


def test_empty():
    stats = ranking_statistics([])
    assert stats.count == 0
    assert stats.mean == 0.0
