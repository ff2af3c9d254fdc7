"""Schemas for the synchronous competitor analysis endpoint."""

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, validate_http_url


class AnalyzeRequest(CamelModel):
    """Body of POST /analyze."""

    url: str = Field(..., max_length=2000)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return validate_http_url(value)
