"""Worker runner for prospecting jobs.

Each job is claimed (queued -> processing) in its own committed transaction,
then the extraction pipeline runs and the job reaches complete or failed.
The API schedules `run_job` right after submission; `run_forever` drains any
queued jobs left behind (e.g. after a restart).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
from typing import Callable, Optional
from uuid import UUID

from app.core.config import settings
from app.db.session import get_async_session_context
from app.models.prospecting_job import ProspectingJob
from app.services.agent_chain import PROSPECT_EXTRACTION_CHAIN
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel, get_model_client
from app.services.pipeline import PipelineOrchestrator
from app.services.prospecting_job_service import (
    MISSING_URL_MESSAGE,
    RATE_LIMIT_MESSAGE,
    ProspectingJobService,
)
from app.services.webhook_notifier import WebhookNotifier

logger = logging.getLogger(__name__)


class ProspectingJobRunner:
    """Claim and execute prospecting jobs."""

    def __init__(
        self,
        *,
        crawl_client: Optional[CrawlClient] = None,
        model: Optional[StructuredModel] = None,
        notifier: Optional[WebhookNotifier] = None,
        session_factory: Callable = get_async_session_context,
        worker_id: Optional[str] = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.crawl_client = crawl_client or CrawlClient()
        self._model = model
        self.notifier = notifier or WebhookNotifier()
        self.session_factory = session_factory
        self.worker_id = worker_id or f"prospecting-{socket.gethostname()}-{os.getpid()}"
        self.poll_interval = poll_interval
        self._stop_event = asyncio.Event()

    @property
    def model(self) -> StructuredModel:
        if self._model is None:
            self._model = get_model_client()
        return self._model

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run_job(self, job_id: UUID) -> Optional[ProspectingJob]:
        """Claim a specific job and run it; None when it was not queued."""
        async with self.session_factory() as session:
            service = ProspectingJobService(session)
            job = await service.claim_job(job_id, self.worker_id)
            if not job:
                logger.info("Job %s is not queued; skipping", job_id)
                return None
            await session.commit()
            return await self._process_job(service, job)

    async def run_once(self) -> bool:
        """Claim and execute the oldest queued job if available."""
        async with self.session_factory() as session:
            service = ProspectingJobService(session)
            job = await service.claim_next_job(self.worker_id)
            if not job:
                return False
            await session.commit()

            logger.info("Worker %s running job %s", self.worker_id, job.id)
            await self._process_job(service, job)
            return True

    async def run_forever(self) -> None:
        """Poll indefinitely until stopped, respecting poll_interval when idle."""
        while not self._stop_event.is_set():
            processed = await self.run_once()
            if processed:
                continue

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue

    async def _process_job(self, service: ProspectingJobService, job: ProspectingJob) -> Optional[ProspectingJob]:
        job_id = job.id

        try:
            if not (job.url or "").strip():
                finished = await service.mark_failed(job_id, MISSING_URL_MESSAGE)
            elif await service.is_rate_limited():
                finished = await service.mark_failed(job_id, RATE_LIMIT_MESSAGE)
            else:
                orchestrator = PipelineOrchestrator(
                    service.db,
                    crawl_client=self.crawl_client,
                    model=self.model,
                )
                result = await orchestrator.run(job.url, PROSPECT_EXTRACTION_CHAIN, job_id=job_id)
                finished = await service.mark_complete(job_id, result.output)
            await service.db.commit()
        except Exception as exc:  # noqa: BLE001
            logger.error("Job %s failed during processing: %s", job_id, exc)
            await self._rollback(service)
            finished = await self._record_failure(job_id, f"Processing failed: {exc}")

        return await self._notify(finished)

    async def _rollback(self, service: ProspectingJobService) -> None:
        try:
            await service.db.rollback()
        except Exception as exc:  # noqa: BLE001
            logger.error("Rollback of the claiming session failed: %s", exc)

    async def _record_failure(self, job_id: UUID, error: str) -> Optional[ProspectingJob]:
        """Fail the job in a fresh session; the claiming session may be unusable."""
        try:
            async with self.session_factory() as session:
                finished = await ProspectingJobService(session).mark_failed(job_id, error)
                await session.commit()
                return finished
        except Exception as exc:  # noqa: BLE001
            logger.error("Could not record failure for job %s: %s", job_id, exc)
            return None

    async def _notify(self, job: Optional[ProspectingJob]) -> Optional[ProspectingJob]:
        if job and job.webhook_url:
            await self.notifier.notify(job.webhook_url, ProspectingJobService.webhook_payload(job))
        return job


def get_default_runner(worker_id: Optional[str] = None, poll_interval: float = 1.0) -> ProspectingJobRunner:
    return ProspectingJobRunner(worker_id=worker_id, poll_interval=poll_interval)


async def run_worker(loop: bool, sleep_seconds: int) -> int:
    runner = get_default_runner(poll_interval=sleep_seconds)
    if loop:
        await runner.run_forever()
        return 0
    await runner.run_once()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Prospecting job worker")
    parser.add_argument("--once", action="store_true", help="Process a single job and exit")
    parser.add_argument("--loop", action="store_true", help="Run continuously")
    parser.add_argument("--sleep", type=int, default=2, help="Sleep seconds between polls when looping")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL)
    loop_mode = args.loop and not args.once
    return asyncio.run(run_worker(loop=loop_mode, sleep_seconds=args.sleep))


if __name__ == "__main__":
    raise SystemExit(main())
