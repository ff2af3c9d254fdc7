"""
Client for the external crawl service.

The crawler renders a page in a headless browser and returns its HTML:
    POST <CRAWLER_SERVICE_URL> {"url": ...} -> 200 {"html": "..."}
No retries and no caching happen at this layer.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.core.config import settings, is_configured
from app.errors import ConfigurationError, CrawlFailed

logger = logging.getLogger(__name__)


class CrawlClient:
    """Fetch rendered HTML for a URL from the crawl collaborator."""

    def __init__(
        self,
        service_url: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.service_url = service_url if service_url is not None else settings.CRAWLER_SERVICE_URL
        self.timeout_seconds = timeout_seconds or settings.CRAWLER_TIMEOUT_SECONDS
        self._transport = transport

    def validate_config(self) -> None:
        if not is_configured(self.service_url):
            raise ConfigurationError(
                "CRAWLER_SERVICE_URL",
                "CRAWLER_SERVICE_URL environment variable is not set. "
                "Please configure it with your deployed crawler service URL.",
            )

    async def fetch_html(self, url: str) -> str:
        """Return the page HTML or raise CrawlFailed."""
        self.validate_config()
        logger.info("Starting crawl for URL: %s", url)

        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(self.service_url, json={"url": url})
        except httpx.TimeoutException as exc:
            logger.error("Crawler timed out for %s: %s", url, exc)
            raise CrawlFailed(url, f"timeout: {exc}") from exc
        except httpx.RequestError as exc:  # connection/transport errors
            logger.error("Crawler request failed for %s: %s", url, exc)
            raise CrawlFailed(url, str(exc)) from exc

        if not response.is_success:
            body = response.text[:500]
            logger.error("Crawler returned status %s for %s", response.status_code, url)
            raise CrawlFailed(url, f"Crawler service returned status {response.status_code}: {body}")

        try:
            data = response.json()
        except ValueError as exc:
            raise CrawlFailed(url, "Crawler service response was not valid JSON.") from exc

        html = data.get("html") if isinstance(data, dict) else None
        if not isinstance(html, str):
            raise CrawlFailed(url, "Crawler service response did not contain valid HTML content.")

        logger.info("Successfully crawled URL: %s (%d characters)", url, len(html))
        return html
