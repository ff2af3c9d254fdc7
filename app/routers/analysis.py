"""
Analysis router - synchronous, cache-first competitor analysis.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_crawl_client, get_db, get_structured_model
from app.errors import AppError, ConfigurationError, PipelineError
from app.schemas.agents import CompetitorReport
from app.schemas.analysis import AnalyzeRequest
from app.services.competitor_analysis_service import CompetitorAnalysisService
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])


@router.post("/analyze", response_model=CompetitorReport)
async def analyze_competitor(
    data: AnalyzeRequest,
    db: AsyncSession = Depends(get_db),
    crawl_client: CrawlClient = Depends(get_crawl_client),
    model: StructuredModel = Depends(get_structured_model),
):
    """
    Produce a competitor report card for an article URL.

    Identical URLs within the cache TTL are answered from the cache without
    crawling or calling the model.
    """
    logger.info("Analysis request received for %s", data.url)
    service = CompetitorAnalysisService(db, crawl_client=crawl_client, model=model)
    try:
        report = await service.analyze(data.url)
        await db.commit()
    except ConfigurationError:
        raise
    except PipelineError as exc:
        logger.error("Analysis failed for %s: %s", data.url, exc)
        raise AppError(500, str(exc)) from exc
    except Exception as exc:
        await db.rollback()
        logger.error("Error analyzing competitor %s: %s", data.url, exc)
        raise AppError(500, f"Failed to analyze competitor: {exc}") from exc

    logger.info("Successfully returned analysis for %s", data.url)
    return report
