from pydantic import BaseModel, Field, model_validator

from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements


class RankRequest(BaseModel):
    job: JobRequirements
    applicants: list[ApplicantData] = Field(..., max_length=1000, description="Applicants to rank for this job")

    @model_validator(mode="after")
    def _unique_ids(self) -> "RankRequest":
        ids = [a.applicant_id for a in self.applicants]
        if len(ids) != len(set(ids)):
            raise ValueError("applicant_id values must be unique")
        return self


class CompareRequest(BaseModel):
    job: JobRequirements
    applicant1: ApplicantData
    applicant2: ApplicantData
