"""Best-effort webhook delivery for finished prospecting jobs."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POST a job's terminal state to the URL supplied at submission."""

    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds or settings.WEBHOOK_TIMEOUT_SECONDS
        self._transport = transport

    async def notify(self, webhook_url: str, payload: dict[str, Any]) -> bool:
        """Return True when the receiver answered 2xx; failures are logged only."""
        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(webhook_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Webhook delivery to %s failed: %s", webhook_url, exc)
            return False

        if not response.is_success:
            logger.warning("Webhook %s answered status %s", webhook_url, response.status_code)
            return False
        return True
