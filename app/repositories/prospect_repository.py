"""
Repository for ExtractedProspect database operations.
"""

from typing import List, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.extracted_prospect import ExtractedProspect
from app.schemas.prospecting import ExtractedProspectData
from app.utils.time import utc_now


class ProspectRepository:
    """Repository for ExtractedProspect operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_batch(
        self,
        job_id: UUID,
        source_url: str,
        prospects: Sequence[ExtractedProspectData],
    ) -> List[ExtractedProspect]:
        """
        Write all prospects of one job inside a SAVEPOINT.

        Either every row is flushed or none is; the caller sees the original
        database error when the batch fails.
        """
        created_at = utc_now()
        rows = [
            ExtractedProspect(
                job_id=job_id,
                source_url=source_url,
                company_name=prospect.company_name,
                people=[person.model_dump(mode="json") for person in prospect.people],
                emails=list(prospect.emails),
                links=list(prospect.links),
                industry_keywords=list(prospect.industry_keywords),
                created_at=created_at,
                updated_at=created_at,
            )
            for prospect in prospects
        ]
        if not rows:
            return []

        async with self.db.begin_nested():
            self.db.add_all(rows)
            await self.db.flush()
        return rows

    async def list_by_job(self, job_id: UUID) -> List[ExtractedProspect]:
        """Get all prospects stored for a job."""
        result = await self.db.execute(
            select(ExtractedProspect)
            .where(ExtractedProspect.job_id == job_id)
            .order_by(ExtractedProspect.created_at.asc())
        )
        return list(result.scalars().all())
