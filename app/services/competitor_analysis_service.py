"""Synchronous, cache-first competitor analysis."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.agent_chain import COMPETITOR_ANALYSIS_CHAIN
from app.services.analysis_cache_service import AnalysisCacheService
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel
from app.services.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


class CompetitorAnalysisService:
    """Serve competitor reports from the cache, running the pipeline on a miss."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        crawl_client: CrawlClient,
        model: StructuredModel,
        ttl_seconds: Optional[int] = None,
    ):
        self.db = db
        self.cache = AnalysisCacheService(db)
        self.orchestrator = PipelineOrchestrator(db, crawl_client=crawl_client, model=model)
        self.ttl_seconds = ttl_seconds

    async def analyze(self, url: str) -> dict[str, Any]:
        flow_name = COMPETITOR_ANALYSIS_CHAIN.name
        cache_key, canonical_params = self.cache.build_cache_key(flow_name, url)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        result = await self.orchestrator.run(url, COMPETITOR_ANALYSIS_CHAIN)
        await self.cache.put(
            cache_key,
            flow_name=flow_name,
            canonical_params=canonical_params,
            output=result.output,
            ttl_seconds=self.ttl_seconds,
        )
        return result.output
