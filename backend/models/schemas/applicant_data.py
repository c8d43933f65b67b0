"""Applicant-side input to a ranking run."""

from pydantic import BaseModel


class Eligibility(BaseModel):
    title: str = ""


class ApplicantData(BaseModel):
    """One applicant's qualifications as supplied by the caller."""
    applicant_id: str
    applicant_name: str = ""
    highest_educational_attainment: str = ""
    eligibilities: list[Eligibility] = []
    skills: list[str] = []
    total_years_experience: float = 0.0
    work_experience_titles: list[str] = []

    degree_level: str | None = None
    degree_field_group: str | None = None

    @property
    def eligibility_titles(self) -> list[str]:
        return [e.title for e in self.eligibilities if e.title and e.title.strip()]
