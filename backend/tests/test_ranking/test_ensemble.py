"""Tests for the ensemble scorer."""

import pytest

from models.schemas.score_breakdown import AlgorithmKind, EnsembleMethod
from services.ranking.ensemble import build_narrative


class TestEnsembleScore:
    @pytest.mark.asyncio
    async def test_close_scores_use_tie_breaker(self, scorer, it_job, make_applicant):
        result = await scorer.ensemble_score(it_job, make_applicant("a1"))
        assert result.algorithm_used is AlgorithmKind.ENSEMBLE_TIE_BREAKER
        assert result.total_score == pytest.approx(92.0)
        details = result.algorithm_details
        assert details.is_tie_breaker
        assert details.ensemble_method is EnsembleMethod.TIE_BREAKER
        assert details.algorithm1_score == pytest.approx(100.0)
        assert details.algorithm2_score == pytest.approx(100.0)
        assert details.algorithm3_score == pytest.approx(92.0)
        assert details.score_difference == 0.0

    @pytest.mark.asyncio
    async def test_divergent_scores_use_weighted_average(self, scorer, it_job, make_applicant):
        applicant = make_applicant("a1", eligibilities=[], total_years_experience=2)
        result = await scorer.ensemble_score(it_job, applicant)
        assert result.algorithm_used is AlgorithmKind.ENSEMBLE_WEIGHTED_AVERAGE
        assert result.total_score == pytest.approx(61.6)
        details = result.algorithm_details
        assert not details.is_tie_breaker
        assert details.algorithm3_score is None
        assert (details.algorithm1_weight, details.algorithm2_weight) == (0.6, 0.4)
        assert details.score_difference == pytest.approx(14.0)
        assert result.eligibility_score == 0.0
        assert "certifications" in result.reasoning

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, scorer, it_job, make_applicant):
        scorer.tie_threshold = 0.0
        result = await scorer.ensemble_score(it_job, make_applicant("a1"))
        assert result.algorithm_details.is_tie_breaker


class TestCompareApplicants:
    @pytest.mark.asyncio
    async def test_winner(self, scorer, it_job, make_applicant):
        strong = make_applicant("a1")
        weak = make_applicant("a2", eligibilities=[], total_years_experience=2)
        assert (await scorer.compare_applicants(it_job, strong, weak)).winner == "applicant1"
        assert (await scorer.compare_applicants(it_job, weak, strong)).winner == "applicant2"

    @pytest.mark.asyncio
    async def test_tie(self, scorer, it_job, make_applicant):
        comparison = await scorer.compare_applicants(it_job, make_applicant("a1"), make_applicant("a2"))
        assert comparison.winner == "tie"
        assert "Difference: 0.00" in comparison.analysis


class TestNarrative:
    def test_strengths_and_gaps(self):
        text = build_narrative(90, 100, 30, 50)
        assert "strong educational background" in text
        assert "excellent relevant experience" in text
        assert "required skills" in text
        assert text.count(".") == 2

    def test_only_gaps(self):
        assert build_narrative(10, 10, 10, 10).startswith("Needs improvement in")

    def test_middle_of_the_road(self):
        assert build_narrative(70, 70, 50, 70) == "Candidate evaluated across multiple qualification criteria."
