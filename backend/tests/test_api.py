import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_dictionaries, get_ranker
from api.router import limiter
from main import app

client = TestClient(app)

JOB = {
    "id": "job-1",
    "title": "Information Technology Officer I",
    "degree_requirement": "BSIT",
    "eligibilities": ["CSC Professional"],
    "skills": ["Python", "SQL"],
    "years_of_experience": 2,
}


def _applicant(applicant_id, **overrides):
    data = {
        "applicant_id": applicant_id,
        "applicant_name": applicant_id.title(),
        "highest_educational_attainment": "BS Information Technology",
        "eligibilities": [{"title": "Career Service Professional"}],
        "skills": ["Python", "SQL"],
        "total_years_experience": 6,
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def _overrides(ranker, dictionary_store):
    limiter.enabled = False
    app.dependency_overrides[get_ranker] = lambda: ranker
    app.dependency_overrides[get_dictionaries] = lambda: dictionary_store
    yield
    app.dependency_overrides.clear()
    limiter.enabled = True


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["vocabularies"]["degree"] > 0
    assert data["vocabularies"]["eligibility"] > 0


def test_rank():
    response = client.post(
        "/rank",
        json={
            "job": JOB,
            "applicants": [
                _applicant("ana", eligibilities=[], total_years_experience=2),
                _applicant("ben"),
            ],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["job_id"] == "job-1"
    assert [a["applicant_id"] for a in data["ranked_applicants"]] == ["ben", "ana"]
    assert [a["rank"] for a in data["ranked_applicants"]] == [1, 2]
    top = data["ranked_applicants"][0]
    assert top["algorithm_used"] == "ensemble_tie_breaker"
    assert top["algorithm_details"]["is_tie_breaker"] is True
    assert data["statistics"]["count"] == 2
    assert data["stage"] == "done"


def test_rank_rejects_duplicate_ids():
    response = client.post("/rank", json={"job": JOB, "applicants": [_applicant("ana"), _applicant("ana")]})
    assert response.status_code == 422


def test_rank_requires_applicant_id():
    response = client.post("/rank", json={"job": JOB, "applicants": [{"applicant_name": "No Id"}]})
    assert response.status_code == 422


def test_compare():
    response = client.post(
        "/compare",
        json={
            "job": JOB,
            "applicant1": _applicant("ana", skills=[]),
            "applicant2": _applicant("ben"),
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["winner"] == "applicant2"
    assert "Difference" in data["analysis"]
