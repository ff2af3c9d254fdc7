"""
Schemas package.

Import all schemas here for easy access.
"""

from app.schemas.agents import (
    CompanyIdentification,
    CompetitorReport,
    ExtractedContent,
    PersonContact,
    ProspectDetails,
)
from app.schemas.analysis import AnalyzeRequest
from app.schemas.prospecting import (
    ExtractedProspectData,
    JobStatusResponse,
    ProspectingResult,
    ProspectRequest,
    ProspectSubmitResponse,
)

__all__ = [
    "CompanyIdentification",
    "CompetitorReport",
    "ExtractedContent",
    "PersonContact",
    "ProspectDetails",
    "AnalyzeRequest",
    "ExtractedProspectData",
    "JobStatusResponse",
    "ProspectingResult",
    "ProspectRequest",
    "ProspectSubmitResponse",
]
