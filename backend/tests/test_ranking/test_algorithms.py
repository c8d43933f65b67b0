"""Tests for the three scoring algorithms and their registry."""

import pytest

from models.schemas.score_breakdown import AlgorithmKind
from services.ranking.algorithms import registry
from services.ranking.algorithms.eligibility_education import EligibilityEducationAlgorithm
from services.ranking.algorithms.skill_experience import SkillExperienceAlgorithm
from services.ranking.algorithms.weighted_sum import WeightedSumAlgorithm


class TestWeightedSum:
    @pytest.mark.asyncio
    async def test_fully_qualified(self, it_job, make_applicant):
        result = await WeightedSumAlgorithm().score(it_job, make_applicant("a1"))
        assert result.total_score == pytest.approx(100.0)
        assert result.algorithm_used is AlgorithmKind.WEIGHTED_SUM
        assert result.matched_skills_count == 2
        assert result.matched_eligibilities_count == 1

    @pytest.mark.asyncio
    async def test_missing_eligibility(self, it_job, make_applicant):
        result = await WeightedSumAlgorithm().score(
            it_job, make_applicant("a1", eligibilities=[], total_years_experience=2)
        )
        assert result.eligibility_score == 0.0
        assert result.experience_score == pytest.approx(86.0)
        assert result.total_score == pytest.approx(67.2)

    @pytest.mark.asyncio
    async def test_custom_weights(self, it_job, make_applicant):
        algo = WeightedSumAlgorithm(weights={"education": 0.0, "experience": 0.0, "skills": 0.0, "eligibility": 1.0})
        result = await algo.score(it_job, make_applicant("a1", eligibilities=[]))
        assert result.total_score == 0.0
        assert "Eligibility (100%)" in result.reasoning


class TestSkillExperience:
    @pytest.mark.asyncio
    async def test_fully_qualified(self, it_job, make_applicant):
        result = await SkillExperienceAlgorithm().score(it_job, make_applicant("a1"))
        assert result.total_score == pytest.approx(100.0)
        assert result.experience_score == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_experience_scales_skills(self, it_job, make_applicant):
        result = await SkillExperienceAlgorithm().score(
            it_job, make_applicant("a1", eligibilities=[], total_years_experience=2)
        )
        assert result.total_score == pytest.approx(53.2)

    @pytest.mark.asyncio
    async def test_matching_role_title(self, it_job, make_applicant):
        applicant = make_applicant("a1", work_experience_titles=["Information Technology Officer I"])
        result = await SkillExperienceAlgorithm().score(it_job, applicant)
        assert result.total_score == pytest.approx(100.0)
        assert "role similarity 100.0" in result.reasoning

    @pytest.mark.asyncio
    async def test_unrelated_role_title_lowers_score(self, it_job, make_applicant):
        applicant = make_applicant("a1", work_experience_titles=["Cook"])
        result = await SkillExperienceAlgorithm().score(it_job, applicant)
        assert result.total_score < 100.0
        assert result.experience_score < 100.0


class TestEligibilityEducation:
    @pytest.mark.asyncio
    async def test_points(self, it_job, make_applicant):
        result = await EligibilityEducationAlgorithm().score(it_job, make_applicant("a1"))
        assert result.total_score == pytest.approx(92.0)
        assert result.algorithm_used is AlgorithmKind.ELIGIBILITY_EDUCATION_TIEBREAKER

    @pytest.mark.asyncio
    async def test_no_license_required_is_neutral(self, it_job, make_applicant):
        job = it_job.model_copy(update={"eligibilities": []})
        result = await EligibilityEducationAlgorithm().score(job, make_applicant("a1"))
        assert result.total_score == pytest.approx(72.0)
        assert "No license required" in result.reasoning


class TestRegistry:
    def test_singleton_and_loaded(self):
        algo = registry.get_algorithm(AlgorithmKind.WEIGHTED_SUM)
        assert algo is registry.get_algorithm(AlgorithmKind.WEIGHTED_SUM)
        assert algo.is_loaded
        assert algo.skill_embedder is not None

    def test_clear(self):
        algo = registry.get_algorithm(AlgorithmKind.SKILL_EXPERIENCE_COMPOSITE)
        registry.clear()
        assert registry.get_algorithm(AlgorithmKind.SKILL_EXPERIENCE_COMPOSITE) is not algo

    def test_preload(self):
        registry.preload(AlgorithmKind.WEIGHTED_SUM, AlgorithmKind.ELIGIBILITY_EDUCATION_TIEBREAKER)
        assert isinstance(registry.get_algorithm(AlgorithmKind.WEIGHTED_SUM), WeightedSumAlgorithm)

    def test_ensemble_kinds_are_not_standalone(self):
        with pytest.raises(ValueError):
            registry.get_algorithm(AlgorithmKind.ENSEMBLE_TIE_BREAKER)
