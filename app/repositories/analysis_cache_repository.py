"""Repository for analysis cache operations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.analysis_cache import AnalysisCacheEntry
from app.utils.time import utc_now


class AnalysisCacheRepository:
    """CRUD helpers for AnalysisCacheEntry."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite_insert(AnalysisCacheEntry)
        return pg_insert(AnalysisCacheEntry)

    async def get_by_cache_key(self, cache_key: str) -> Optional[AnalysisCacheEntry]:
        result = await self.db.execute(
            select(AnalysisCacheEntry)
            .where(AnalysisCacheEntry.cache_key == cache_key)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert_entry(
        self,
        *,
        cache_key: str,
        flow_name: str,
        input_params: dict,
        output: dict,
        expires_at: datetime,
    ) -> AnalysisCacheEntry:
        """Insert or overwrite the entry for `cache_key` (last writer wins)."""
        now = utc_now()
        insert_stmt = self._insert().values(
            cache_key=cache_key,
            flow_name=flow_name,
            input=input_params,
            output=output,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[AnalysisCacheEntry.cache_key],
            set_={
                "flow_name": flow_name,
                "input": input_params,
                "output": output,
                "expires_at": expires_at,
                "created_at": now,
                "updated_at": now,
            },
        )
        await self.db.execute(stmt)
        await self.db.flush()
        row = await self.get_by_cache_key(cache_key)
        return row

    async def delete_expired(self, *, now: datetime) -> int:
        stmt = delete(AnalysisCacheEntry).where(AnalysisCacheEntry.expires_at < now)
        result = await self.db.execute(stmt)
        return int(result.rowcount or 0)
