"""Shared test configuration, pytest markers and in-process fakes."""

import numpy as np
import pytest

from config import settings
from models.schemas.applicant_data import ApplicantData, Eligibility
from models.schemas.job_requirements import JobRequirements
from models.schemas.service_outcomes import ClassificationUnknown, ComparisonParseError
from services.ranking.algorithms import registry
from services.ranking.algorithms.eligibility_education import EligibilityEducationAlgorithm
from services.ranking.algorithms.skill_experience import SkillExperienceAlgorithm
from services.ranking.algorithms.weighted_sum import WeightedSumAlgorithm
from services.ranking.cascade import DictionaryStrategy, LLMStrategy, NormalizationCascade
from services.ranking.dictionary import DictionaryStore
from services.ranking.ensemble import EnsembleScorer
from services.ranking.ranker import Ranker
from services.ranking.tie_breaker import TieBreaker


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: loads real embedding models or calls Gemini (slow, needs network)"
    )


class FakeEmbedder:
    """Embedder backed by a fixed text -> vector table. Unknown texts embed to None."""

    def __init__(self, vectors: dict[str, list[float]]):
        self.vectors = {k.lower().strip(): np.asarray(v, dtype=float) for k, v in vectors.items()}
        self.batch_calls = 0

    async def embed(self, text: str):
        return self.vectors.get(text.lower().strip())

    async def embed_batch(self, texts: list[str]):
        self.batch_calls += 1
        return [self.vectors.get(t.lower().strip()) for t in texts]


class ScriptedClassifier:
    """Returns a fixed outcome and counts how often it was asked."""

    def __init__(self, outcome=None):
        self.outcome = outcome or ClassificationUnknown()
        self.calls = 0
        self.prompts: list[str] = []

    async def classify(self, prompt: str):
        self.calls += 1
        self.prompts.append(prompt)
        return self.outcome


class ScriptedReasoning:
    """Reasoning service with canned compare/summarize replies.

    ``compare_outcome`` may be an exception instance, which is raised.
    """

    def __init__(self, compare_outcome=None, insights=None):
        self.compare_outcome = compare_outcome or ComparisonParseError(error="scripted")
        self.insights = insights
        self.compare_calls = 0
        self.summarize_calls = 0

    async def compare(self, group, job):
        self.compare_calls += 1
        if isinstance(self.compare_outcome, Exception):
            raise self.compare_outcome
        return self.compare_outcome

    async def summarize(self, job, top_candidates):
        self.summarize_calls += 1
        return self.insights


@pytest.fixture(autouse=True)
def _clear_algorithm_registry():
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def dictionary_store() -> DictionaryStore:
    return DictionaryStore.from_directory(settings.dictionaries_dir)


@pytest.fixture
def classifier() -> ScriptedClassifier:
    return ScriptedClassifier()


@pytest.fixture
def cascade(dictionary_store, classifier) -> NormalizationCascade:
    """Dictionary tier plus a scripted LLM tier; no embedding models."""
    return NormalizationCascade(
        dictionary_store,
        [DictionaryStrategy(), LLMStrategy(classifier, candidate_limit=50, timeout=5.0)],
    )


@pytest.fixture
def scorer() -> EnsembleScorer:
    return EnsembleScorer(
        WeightedSumAlgorithm(),
        SkillExperienceAlgorithm(),
        EligibilityEducationAlgorithm(),
        tie_threshold=5.0,
        primary_weight=0.6,
        secondary_weight=0.4,
    )


@pytest.fixture
def ranker(cascade, scorer) -> Ranker:
    return Ranker(
        cascade=cascade,
        scorer=scorer,
        reasoning=None,
        tie_breaker=TieBreaker(None, adjustment_limit=0.5, threshold=0.01, timeout=5.0),
        batch_size=2,
        batch_delay_seconds=0,
        insights_top_k=0,
    )


@pytest.fixture
def it_job() -> JobRequirements:
    return JobRequirements(
        id="job-1",
        title="Information Technology Officer I",
        description="Maintains LGU information systems.",
        degree_requirement="Bachelor of Science in Information Technology",
        eligibilities=["Career Service Professional"],
        skills=["Python", "SQL"],
        years_of_experience=2,
        degree_level="bachelor",
        degree_field_group="information_technology",
    )


def _qualified_applicant(applicant_id: str, name: str = "", **overrides) -> ApplicantData:
    data = {
        "applicant_id": applicant_id,
        "applicant_name": name or applicant_id,
        "highest_educational_attainment": "Bachelor of Science in Information Technology",
        "eligibilities": [Eligibility(title="Career Service Professional")],
        "skills": ["Python", "SQL"],
        "total_years_experience": 6,
        "work_experience_titles": [],
        "degree_level": "bachelor",
        "degree_field_group": "information_technology",
    }
    data.update(overrides)
    return ApplicantData(**data)


@pytest.fixture
def make_applicant():
    """Factory for applicants fully qualified for ``it_job`` unless overridden."""
    return _qualified_applicant
