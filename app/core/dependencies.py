"""
Shared FastAPI dependencies.

Collaborators are built lazily per request so a missing setting surfaces as a
ConfigurationError at the boundary instead of failing at import time. Tests
replace them through `app.dependency_overrides`.
"""

import logging
import secrets
from typing import Optional

from fastapi import Header

from app.core.config import settings, is_configured
from app.db.session import get_db  # noqa: F401  (re-exported for routers)
from app.errors import AppError
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModel, get_model_client
from app.services.webhook_notifier import WebhookNotifier

logger = logging.getLogger(__name__)


def get_crawl_client() -> CrawlClient:
    client = CrawlClient()
    client.validate_config()
    return client


def get_structured_model() -> StructuredModel:
    return get_model_client()


def get_webhook_notifier() -> WebhookNotifier:
    return WebhookNotifier()


def require_status_api_key(authorization: Optional[str] = Header(default=None)) -> None:
    """
    Check `Authorization: Bearer <STATUS_API_KEY>`.

    Raises:
        AppError: 500 when the server has no key configured, 401 on mismatch
    """
    api_key = settings.STATUS_API_KEY
    if not is_configured(api_key):
        logger.error("STATUS_API_KEY environment variable is not set on the server.")
        # The exact cause is not exposed to the client
        raise AppError(500, "Internal Server Error")

    expected = f"Bearer {api_key}"
    if not authorization or not secrets.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8")):
        raise AppError(401, "Unauthorized")
