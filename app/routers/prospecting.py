"""
Prospecting router - asynchronous job submission and status polling.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import (
    get_crawl_client,
    get_db,
    get_structured_model,
    get_webhook_notifier,
    require_status_api_key,
)
from app.errors import AppError
from app.schemas.prospecting import JobStatusResponse, ProspectRequest, ProspectSubmitResponse
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel
from app.services.prospecting_job_service import ProspectingJobService, parse_job_id
from app.services.webhook_notifier import WebhookNotifier
from app.workers.prospecting_job_runner import ProspectingJobRunner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Prospecting"])


@router.post("/prospect", response_model=ProspectSubmitResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_prospecting_job(
    data: ProspectRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    crawl_client: CrawlClient = Depends(get_crawl_client),
    model: StructuredModel = Depends(get_structured_model),
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
):
    """
    Queue a prospect extraction for a URL.

    Returns immediately with the job id; poll GET /job-status for progress.
    """
    logger.info("Prospecting job requested for %s", data.url)
    service = ProspectingJobService(db)
    try:
        job = await service.submit(data.url, webhook_url=data.webhook_url)
        await db.commit()
    except Exception as exc:
        logger.error("Error creating prospecting job: %s", exc)
        raise AppError(500, "Failed to create prospecting job.") from exc

    runner = ProspectingJobRunner(crawl_client=crawl_client, model=model, notifier=notifier)
    background_tasks.add_task(runner.run_job, job.id)
    return ProspectSubmitResponse(job_id=str(job.id))


@router.get(
    "/job-status",
    response_model=JobStatusResponse,
    dependencies=[Depends(require_status_api_key)],
)
async def get_job_status(
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    db: AsyncSession = Depends(get_db),
):
    """
    Read the latest state of a prospecting job.

    `result` is null until the job is complete.
    """
    if not job_id:
        raise AppError(400, "jobId is required")

    parsed_id = parse_job_id(job_id)
    if parsed_id is None:
        raise AppError(404, "Job not found")

    service = ProspectingJobService(db)
    try:
        job_status = await service.get_status(parsed_id)
    except Exception as exc:
        logger.error("Error fetching job status for %s: %s", job_id, exc)
        raise AppError(500, "Internal Server Error", str(exc)) from exc

    if job_status is None:
        raise AppError(404, "Job not found")
    return job_status
