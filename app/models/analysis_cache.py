"""
AnalysisCacheEntry model.

Stores prior pipeline outputs keyed by a hash of the canonical request.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import TimestampedModel, JSONType


class AnalysisCacheEntry(TimestampedModel):
    """Cached analysis output; only a hit while now < expires_at."""

    __tablename__ = "analysis_cache"

    cache_key: Mapped[str] = mapped_column(String(512), nullable=False)
    flow_name: Mapped[str] = mapped_column(String(100), nullable=False)
    input: Mapped[dict] = mapped_column(JSONType, nullable=False)
    output: Mapped[dict] = mapped_column(JSONType, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("uq_analysis_cache_key", "cache_key", unique=True),
        Index("ix_analysis_cache_expires", "expires_at"),
    )
