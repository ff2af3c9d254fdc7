"""
ExtractedProspect model.

Contact/company entities persisted as a side effect of a completed job.
"""

import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import TimestampedModel, JSONType

if TYPE_CHECKING:
    from app.models.prospecting_job import ProspectingJob


class ExtractedProspect(TimestampedModel):
    """
    extracted_prospects table.

    Rows are only written for non-empty prospects (company name, a person
    or an email), all rows of one job in a single batch.
    """

    __tablename__ = "extracted_prospects"

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("prospecting_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    source_url: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
    )

    company_name: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    # [{"name": ..., "role": ...}]
    people: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    emails: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    links: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    industry_keywords: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    job: Mapped["ProspectingJob"] = relationship(
        "ProspectingJob",
        back_populates="prospects",
    )
