"""Job-side input to a ranking run."""

from pydantic import BaseModel


class JobRequirements(BaseModel):
    """Requirements of one job posting.

    ``degree_requirement`` and each ``eligibilities`` line may be composite
    ("BS Accountancy or BSBA major in Finance"). ``degree_level`` and
    ``degree_field_group`` are filled in by normalization when the degree
    resolves to a canonical entry.
    """
    id: str = ""
    title: str = ""
    description: str = ""
    degree_requirement: str = ""
    eligibilities: list[str] = []
    skills: list[str] = []
    years_of_experience: float = 0.0

    degree_level: str | None = None
    degree_field_group: str | None = None
