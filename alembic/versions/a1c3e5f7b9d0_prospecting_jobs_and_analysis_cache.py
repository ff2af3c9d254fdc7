"""Create prospecting jobs, extracted prospects and analysis cache tables

Revision ID: a1c3e5f7b9d0
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "prospecting_jobs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("url", sa.String(length=2000), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="queued"),
        sa.Column("webhook_url", sa.String(length=2000), nullable=True),
        sa.Column("result", JSON_TYPE, nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("worker_id", sa.String(length=200), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_prospecting_jobs_status_created", "prospecting_jobs", ["status", "created_at"])
    op.create_index("ix_prospecting_jobs_created_at", "prospecting_jobs", ["created_at"])

    op.create_table(
        "extracted_prospects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "job_id",
            sa.Uuid(),
            sa.ForeignKey("prospecting_jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("source_url", sa.String(length=2000), nullable=False),
        sa.Column("company_name", sa.String(length=500), nullable=True),
        sa.Column("people", JSON_TYPE, nullable=False),
        sa.Column("emails", JSON_TYPE, nullable=False),
        sa.Column("links", JSON_TYPE, nullable=False),
        sa.Column("industry_keywords", JSON_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_extracted_prospects_job_id", "extracted_prospects", ["job_id"])

    op.create_table(
        "analysis_cache",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("cache_key", sa.String(length=512), nullable=False),
        sa.Column("flow_name", sa.String(length=100), nullable=False),
        sa.Column("input", JSON_TYPE, nullable=False),
        sa.Column("output", JSON_TYPE, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("uq_analysis_cache_key", "analysis_cache", ["cache_key"], unique=True)
    op.create_index("ix_analysis_cache_expires", "analysis_cache", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_analysis_cache_expires", table_name="analysis_cache")
    op.drop_index("uq_analysis_cache_key", table_name="analysis_cache")
    op.drop_table("analysis_cache")

    op.drop_index("ix_extracted_prospects_job_id", table_name="extracted_prospects")
    op.drop_table("extracted_prospects")

    op.drop_index("ix_prospecting_jobs_created_at", table_name="prospecting_jobs")
    op.drop_index("ix_prospecting_jobs_status_created", table_name="prospecting_jobs")
    op.drop_table("prospecting_jobs")
