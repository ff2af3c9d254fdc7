"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from app.models.prospecting_job import ProspectingJob, JobStatus
from app.models.extracted_prospect import ExtractedProspect
from app.models.analysis_cache import AnalysisCacheEntry

# Export all models
__all__ = [
    "ProspectingJob",
    "JobStatus",
    "ExtractedProspect",
    "AnalysisCacheEntry",
]
