"""Cache lookup/persist helpers for idempotent analysis requests."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.analysis_cache import AnalysisCacheEntry
from app.repositories.analysis_cache_repository import AnalysisCacheRepository
from app.utils.canonical_json import request_fingerprint
from app.utils.time import ensure_utc, utc_now
from app.utils.url_canonicalizer import canonicalize_url

logger = logging.getLogger(__name__)


class AnalysisCacheService:
    """TTL cache of pipeline outputs keyed by flow name + canonical URL."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.cache_repo = AnalysisCacheRepository(db)

    @staticmethod
    def build_cache_key(flow_name: str, url: str) -> tuple[str, dict[str, Any]]:
        """Return cache_key and the canonical params it was derived from."""
        canonical_params = {"url": canonicalize_url(url)}
        cache_key = request_fingerprint(flow_name, canonical_params)
        return cache_key, canonical_params

    async def get(self, cache_key: str) -> Optional[dict[str, Any]]:
        """Return the cached output, or None on a miss (absent or expired)."""
        row = await self.cache_repo.get_by_cache_key(cache_key)
        if not row:
            logger.info("Cache miss for %s", cache_key)
            return None
        if ensure_utc(row.expires_at) <= utc_now():
            logger.info("Cache entry expired for %s", cache_key)
            return None
        logger.info("Cache hit for %s", cache_key)
        return row.output

    async def put(
        self,
        cache_key: str,
        *,
        flow_name: str,
        canonical_params: dict[str, Any],
        output: dict[str, Any],
        ttl_seconds: Optional[int] = None,
    ) -> AnalysisCacheEntry:
        ttl = self.default_ttl_seconds() if ttl_seconds is None else ttl_seconds
        expires_at = utc_now() + timedelta(seconds=max(1, ttl))
        entry = await self.cache_repo.upsert_entry(
            cache_key=cache_key,
            flow_name=flow_name,
            input_params=canonical_params,
            output=output,
            expires_at=expires_at,
        )
        logger.info("Cached %s output under %s until %s", flow_name, cache_key, expires_at.isoformat())
        return entry

    async def delete_expired(self) -> int:
        return await self.cache_repo.delete_expired(now=utc_now())

    @staticmethod
    def default_ttl_seconds() -> int:
        return int(settings.ANALYSIS_CACHE_TTL_SECONDS or 86400)
