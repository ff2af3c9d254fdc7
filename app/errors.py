"""Error types and structured error helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


VALIDATION_FAILED_MESSAGE = "Validation failed. Please check your input."


def build_error_payload(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = build_error_payload(message, details)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


def flatten_field_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Group pydantic errors by field name: {"url": ["..."]}."""
    field_errors: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or "body"
        field_errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return field_errors


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=build_error_payload(VALIDATION_FAILED_MESSAGE, flatten_field_errors(exc.errors())),
    )


def raise_app_error(status_code: int, message: str, details: Optional[Any] = None) -> None:
    """Raise an AppError with a standardized error shape."""
    raise AppError(status_code, message, details)


class ConfigurationError(Exception):
    """Raised when a required external endpoint or credential is missing."""

    def __init__(self, setting: str, message: Optional[str] = None):
        super().__init__(message or f"{setting} is not configured")
        self.setting = setting


class PipelineError(Exception):
    """Base class for failures raised by the analysis pipeline."""


class CrawlFailed(PipelineError):
    def __init__(self, url: str, cause: str):
        super().__init__(f"Failed to crawl URL {url}. Error: {cause}")
        self.url = url
        self.cause = cause


class EmptyContentError(PipelineError):
    def __init__(self, url: str):
        super().__init__("Failed to retrieve content from the URL.")
        self.url = url


class AgentFailed(PipelineError):
    def __init__(self, stage: str, cause: str):
        super().__init__(f"agent {stage} failed to produce output: {cause}")
        self.stage = stage
        self.cause = cause


class PersistenceFailed(PipelineError):
    def __init__(self, cause: str):
        super().__init__(f"Failed to persist extracted prospects: {cause}")
        self.cause = cause
