"""
ProspectingJob model.

Durable record tracking one asynchronous prospect-extraction run.
"""

from datetime import datetime
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import String, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import TimestampedModel, JSONType

if TYPE_CHECKING:
    from app.models.extracted_prospect import ExtractedProspect


class JobStatus:
    """Lifecycle states of a prospecting job."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    TERMINAL = (COMPLETE, FAILED)
    ALL = (QUEUED, PROCESSING, COMPLETE, FAILED)


class ProspectingJob(TimestampedModel):
    """
    prospecting_jobs table.

    Created in `queued` state on submission; mutated only by the worker that
    claims it (queued -> processing -> complete|failed).
    """

    __tablename__ = "prospecting_jobs"

    url: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=JobStatus.QUEUED,
    )  # queued|processing|complete|failed

    # Optional callback notified after the job reaches a terminal state
    webhook_url: Mapped[Optional[str]] = mapped_column(
        String(2000),
        nullable=True,
    )

    # {"summary": str, "prospects": [...]} once complete
    result: Mapped[Optional[dict]] = mapped_column(
        JSONType,
        nullable=True,
    )

    error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    worker_id: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )

    claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    prospects: Mapped[List["ExtractedProspect"]] = relationship(
        "ExtractedProspect",
        back_populates="job",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_prospecting_jobs_status_created", "status", "created_at"),
        Index("ix_prospecting_jobs_created_at", "created_at"),
    )
