"""
Prospecting Pydantic schemas.

Request/response bodies for job submission and status polling.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.agents import PersonContact
from app.schemas.base import CamelModel, validate_http_url


class ProspectRequest(CamelModel):
    """Body of POST /prospect."""

    url: str = Field(..., max_length=2000)
    webhook_url: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return validate_http_url(value)

    @field_validator("webhook_url")
    @classmethod
    def _validate_webhook_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return validate_http_url(value)


class ProspectSubmitResponse(CamelModel):
    job_id: str


class ExtractedProspectData(CamelModel):
    """One merged prospect as produced by the result combiner."""

    company_name: Optional[str] = None
    people: List[PersonContact] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    links: List[str] = Field(default_factory=list)
    industry_keywords: List[str] = Field(default_factory=list)

    def is_persistable(self) -> bool:
        """A prospect is only worth storing with a company name, a person or an email."""
        return bool((self.company_name or "").strip() or self.people or self.emails)


class ProspectingResult(CamelModel):
    summary: str
    prospects: List[ExtractedProspectData] = Field(default_factory=list)


class JobStatusResponse(CamelModel):
    """Body of GET /job-status; `result` is only set for complete jobs, `error` only for failed ones."""

    status: str
    result: Optional[ProspectingResult] = None
    error: Optional[str] = None
    last_updated: datetime
