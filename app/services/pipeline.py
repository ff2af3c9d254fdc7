"""
Pipeline orchestrator.

crawl -> normalize -> truncate -> agent chain -> combine/filter -> persist

Every step is a hard failure point; there is no retry and no partial-success
path. Callers (the job worker or the synchronous analysis endpoint) decide
what to do with a PipelineError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import EmptyContentError, PersistenceFailed
from app.repositories.prospect_repository import ProspectRepository
from app.schemas.prospecting import ExtractedProspectData, ProspectingResult
from app.services.agent_chain import (
    AgentChain,
    AgentChainContext,
    AgentChainExecutor,
    PROSPECT_EXTRACTION_CHAIN,
)
from app.services.content_normalizer import ContentNormalizer, truncate
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel
from app.services.result_combiner import build_summary, combine_prospect, filter_persistable

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output of one orchestrator run."""

    chain: str
    output: dict[str, Any]
    prospects: List[ExtractedProspectData] = field(default_factory=list)
    context: Optional[AgentChainContext] = None


class PipelineOrchestrator:
    """Compose the crawl client, normalizer, chain executor and persistence."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        crawl_client: CrawlClient,
        model: StructuredModel,
        normalizer: Optional[ContentNormalizer] = None,
        max_input_characters: Optional[int] = None,
    ):
        self.db = db
        self.crawl_client = crawl_client
        self.executor = AgentChainExecutor(model)
        self.normalizer = normalizer or ContentNormalizer(model)
        self.max_input_characters = max_input_characters
        self.prospect_repo = ProspectRepository(db)

    async def run(self, url: str, chain: AgentChain, *, job_id: Optional[UUID] = None) -> PipelineResult:
        html = await self.crawl_client.fetch_html(url)

        text = truncate(await self.normalizer.normalize(html), self.max_input_characters)
        if not text:
            if chain.require_content:
                raise EmptyContentError(url)
            logger.warning("No usable content extracted from %s; continuing with empty text", url)

        context = await self.executor.run(chain, text)

        if chain.name == PROSPECT_EXTRACTION_CHAIN.name:
            return await self._finish_prospecting(url, context, job_id)

        # Single-record chains return the last agent's structured output as-is
        final = context.outputs[chain.agents[-1].name]
        return PipelineResult(chain=chain.name, output=final.model_dump(by_alias=True, mode="json"), context=context)

    async def _finish_prospecting(
        self,
        url: str,
        context: AgentChainContext,
        job_id: Optional[UUID],
    ) -> PipelineResult:
        prospects = filter_persistable([combine_prospect(context)])
        result = ProspectingResult(summary=build_summary(context, len(prospects)), prospects=prospects)

        if job_id is not None and prospects:
            try:
                await self.prospect_repo.create_batch(job_id, url, prospects)
            except SQLAlchemyError as exc:
                logger.error("Prospect batch write failed for job %s: %s", job_id, exc)
                raise PersistenceFailed(str(exc)) from exc
            logger.info("Persisted %d prospect(s) for job %s", len(prospects), job_id)

        return PipelineResult(
            chain=PROSPECT_EXTRACTION_CHAIN.name,
            output=result.to_wire(),
            prospects=prospects,
            context=context,
        )
