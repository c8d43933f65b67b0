"""Tests for the education, experience, skill and eligibility matchers."""

import math

import pytest

from conftest import FakeEmbedder
from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from services.ranking.matching import (
    NEUTRAL_SCORE,
    adjust_education_for_level_and_field,
    apply_related_fields,
    calculate_skill_match,
    composite_skill_experience,
    compute_education_score,
    compute_eligibility_match,
    compute_experience_score,
    compute_years_score,
    evaluate_degree_and_gate,
    match_degree_requirement,
    resolve_degree_level,
    score_skill_pair,
    work_title_similarity,
)


def _job(**kwargs) -> JobRequirements:
    return JobRequirements(title="Officer", **kwargs)


def _applicant(**kwargs) -> ApplicantData:
    return ApplicantData(applicant_id="a1", **kwargs)


class TestEducation:
    def test_no_requirement_is_neutral(self):
        assert compute_education_score(_job(degree_requirement="None"), _applicant()) == NEUTRAL_SCORE
        assert compute_education_score(_job(), _applicant()) == NEUTRAL_SCORE

    def test_exact_degree(self, it_job, make_applicant):
        assert compute_education_score(it_job, make_applicant("a1")) == 100.0

    def test_or_requirement_takes_best_option(self):
        job = _job(degree_requirement="Bachelor of Science in Nursing or Bachelor of Science in Midwifery")
        applicant = _applicant(highest_educational_attainment="Bachelor of Science in Midwifery")
        assert compute_education_score(job, applicant) == 100.0

    def test_and_requirement_missing_item_scores_zero(self):
        job = _job(degree_requirement="Bachelor of Science in Accountancy and Bachelor of Laws")
        applicant = _applicant(highest_educational_attainment="Bachelor of Science in Accountancy")
        gate = evaluate_degree_and_gate(job.degree_requirement, applicant.highest_educational_attainment)
        assert gate.is_and and not gate.all_hit
        assert (gate.hits, gate.required) == (1, 2)
        assert compute_education_score(job, applicant) == 0.0

    def test_and_requirement_fully_met(self):
        job = _job(degree_requirement="Bachelor of Science in Accountancy and Bachelor of Laws")
        applicant = _applicant(
            highest_educational_attainment="Bachelor of Science in Accountancy and Bachelor of Laws"
        )
        assert evaluate_degree_and_gate(job.degree_requirement, applicant.highest_educational_attainment).all_hit
        assert match_degree_requirement(
            job.degree_requirement.lower(), applicant.highest_educational_attainment.lower()
        ) == 100.0

    def test_higher_level_beats_lower_level(self, it_job, make_applicant):
        master = make_applicant(
            "m", highest_educational_attainment="Master of Science in Information Technology", degree_level="master"
        )
        high_school = make_applicant(
            "h", highest_educational_attainment="High School Graduate",
            degree_level="secondary", degree_field_group=None,
        )
        master_score = compute_education_score(it_job, master)
        high_school_score = compute_education_score(it_job, high_school)
        assert master_score > 90
        assert high_school_score <= 40
        assert master_score > high_school_score

    def test_related_fields_floor(self):
        assert apply_related_fields(10.0, "BS Information Technology", "BS Computer Science") == 85.0
        assert apply_related_fields(10.0, "BS Information Technology", "BS Nursing") == 10.0
        assert apply_related_fields(95.0, "BS Information Technology", "BS Computer Science") == 95.0

    def test_related_fields_only_when_requested(self):
        job = _job(degree_requirement="Bachelor of Science in Information Technology")
        applicant = _applicant(highest_educational_attainment="Bachelor of Science in Computer Science")
        plain = compute_education_score(job, applicant)
        related = compute_education_score(job, applicant, use_related_fields=True)
        assert related > plain

    def test_level_resolution(self):
        assert resolve_degree_level("College", "") == "bachelor"
        assert resolve_degree_level(None, "Master in Public Administration") == "master"
        assert resolve_degree_level(None, "Senior High School Graduate") == "secondary"
        assert resolve_degree_level(None, "TESDA NC II") == "vocational"
        assert resolve_degree_level(None, "Something else") is None

    def test_nonzero_base_keeps_floor(self):
        score = adjust_education_for_level_and_field(
            5.0, "Doctor of Public Administration", "Elementary Graduate"
        )
        assert score == 20.0

    def test_score_bounded(self, it_job, make_applicant):
        doctor = make_applicant(
            "d", highest_educational_attainment="Doctor of Information Technology", degree_level="doctoral"
        )
        assert 0.0 <= compute_education_score(it_job, doctor) <= 100.0


class TestExperience:
    @pytest.mark.parametrize("required,years,expected", [
        (1, 0, 0.0),
        (2, 1, 60.0),
        (2, 2, 80.0),
        (2, 4, 90.0),
        (2, 6, 100.0),
        (2, 20, 100.0),
        (0, 1, 80.0),
    ])
    def test_years_score(self, required, years, expected):
        assert compute_years_score(required, years) == pytest.approx(expected)

    def test_no_experience_scores_zero(self):
        job = _job(years_of_experience=2)
        assert compute_experience_score(job, _applicant(total_years_experience=0)) == 0.0

    def test_relevance_defaults_to_full(self):
        job = _job(years_of_experience=2)
        assert compute_experience_score(job, _applicant(total_years_experience=2)) == pytest.approx(86.0)

    def test_relevance_applied(self):
        job = _job(years_of_experience=2)
        score = compute_experience_score(job, _applicant(total_years_experience=2), relevance=50.0)
        assert score == pytest.approx(71.0)

    def test_composite_skill_experience(self):
        assert composite_skill_experience(80.0, 2.0) == pytest.approx(80.0)
        assert composite_skill_experience(80.0, 5.0) == pytest.approx(80.0)
        assert composite_skill_experience(80.0, 0.0) == pytest.approx(80.0 / math.e)

    def test_work_title_similarity(self):
        assert work_title_similarity("Administrative Officer", []) is None
        assert work_title_similarity("", ["Clerk"]) is None
        assert work_title_similarity("Administrative Officer", ["administrative officer"]) == 100.0
        assert work_title_similarity("Administrative Officer", ["Clerk", "Administrative Officer II"]) == (
            pytest.approx(88.0)
        )


class TestSkills:
    def test_exact_pair(self):
        assert score_skill_pair("Python", "python") == 100.0

    def test_unrelated_pair(self):
        assert score_skill_pair("Python", "Cooking") == 0.0

    def test_semantic_pair(self):
        assert score_skill_pair("Data Analysis", "Statistics", semantic=90.0) == pytest.approx(47.78, abs=0.01)

    def test_weak_semantic_ignored(self):
        assert score_skill_pair("Data Analysis", "Statistics", semantic=60.0) == 0.0

    @pytest.mark.asyncio
    async def test_full_match_with_surplus_capped(self):
        result = await calculate_skill_match(["Python", "SQL"], ["python", "sql", "excel"])
        assert result.score == 100.0
        assert result.matched_count == 2

    @pytest.mark.asyncio
    async def test_partial_match(self):
        result = await calculate_skill_match(["Python", "SQL"], ["Python"])
        assert result.score == pytest.approx(50.0)
        assert result.matched_count == 1

    @pytest.mark.asyncio
    async def test_surplus_bonus(self):
        result = await calculate_skill_match(["Python", "SQL"], ["Python", "Excel", "Word", "Cooking"])
        assert result.score == pytest.approx(52.0)

    @pytest.mark.asyncio
    async def test_applicant_skill_used_once(self):
        result = await calculate_skill_match(["Python", "python 3"], ["Python"])
        assert result.matched_count == 1
        assert result.score <= 50.0

    @pytest.mark.asyncio
    async def test_no_requirement_is_neutral(self):
        assert (await calculate_skill_match([], ["Python"])).score == NEUTRAL_SCORE
        assert (await calculate_skill_match(["No skills required"], ["Python"])).score == NEUTRAL_SCORE

    @pytest.mark.asyncio
    async def test_no_applicant_skills(self):
        result = await calculate_skill_match(["Python"], [])
        assert result.score == 0.0
        assert result.matched_count == 0

    @pytest.mark.asyncio
    async def test_embeddings_feed_semantic_similarity(self):
        embedder = FakeEmbedder({"Data Analysis": [1, 0], "Statistics": [0.8, 0.6]})
        result = await calculate_skill_match(["Data Analysis"], ["Statistics"], embedder)
        assert result.score == pytest.approx(47.78, abs=0.01)
        assert result.matched_count == 0


class TestEligibility:
    def test_no_requirement_is_neutral(self):
        assert compute_eligibility_match([], ["CPA"]).score == NEUTRAL_SCORE
        assert compute_eligibility_match(["None"], []).score == NEUTRAL_SCORE

    def test_single_line_met(self):
        result = compute_eligibility_match(["Career Service Professional"], ["Career Service Professional"])
        assert result.score == 100.0
        assert result.matched_count == 1

    def test_single_line_unmet(self):
        result = compute_eligibility_match(["Career Service Professional"], ["Career Service Subprofessional"])
        assert result.score == 0.0

    def test_or_line_any_one(self):
        result = compute_eligibility_match(
            ["Certified Public Accountant or Career Service Professional"], ["Career Service Professional"]
        )
        assert result.score == 100.0
        assert result.matched_count == 1

    def test_and_line_needs_all(self):
        result = compute_eligibility_match(
            ["Certified Public Accountant and Career Service Professional"], ["Certified Public Accountant"]
        )
        assert result.score == 0.0
        assert result.matched_count == 1

    def test_every_line_must_be_satisfied(self):
        result = compute_eligibility_match(
            ["Certified Public Accountant", "Career Service Professional"], ["Certified Public Accountant"]
        )
        assert result.score == 0.0
        assert result.matched_count == 1
