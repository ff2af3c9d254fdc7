"""
Pytest configuration and shared fixtures.

The suite runs against a throwaway SQLite file; the crawler and the
structured-output model are replaced by in-process stubs.
"""

import os
import asyncio
import tempfile

# Settings are read at import time, so the environment must be ready first
_TEST_DB_DIR = tempfile.mkdtemp(prefix="prospector-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ.setdefault("STATUS_API_KEY", "test-status-key")
os.environ.setdefault("CRAWLER_SERVICE_URL", "http://crawler.test/crawl")
os.environ.setdefault("LLM_API_URL", "http://llm.test/v1/chat/completions")
os.environ.setdefault("LLM_API_KEY", "test-llm-key")

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_crawl_client, get_structured_model, get_webhook_notifier
from app.db.base import Base
from app.db.session import engine
from app.errors import CrawlFailed
from app.main import app
from app import models  # noqa: F401  (registers tables on Base.metadata)


TEST_STATUS_API_KEY = os.environ["STATUS_API_KEY"]

ACME_HTML = """
<html>
  <head><title>About Acme</title><script>trackVisitor();</script></head>
  <body>
    <nav>Home | Products | Careers</nav>
    <h1>About Acme Corp</h1>
    <p>Acme Corp builds industrial anvils for demanding customers.</p>
    <p>Talk to Jane Doe, Head of Sales: jane@acme.com</p>
    <footer>Copyright Acme Corp</footer>
  </body>
</html>
"""

ARTICLE_HTML = """
<html><body>
  <article>
    <h1>Ten ways to grow organic traffic</h1>
    <p>Search engines reward content that answers real questions.</p>
  </article>
  <div class="sidebar">Subscribe now</div>
</body></html>
"""

ACME_RESPONSES = {
    "company_identification": {
        "companyName": "Acme Corp",
        "industrySummary": "Industrial manufacturing.",
        "companySummary": "Acme Corp builds industrial anvils.",
        "industryKeywords": ["anvils", "manufacturing"],
    },
    "prospect_details": {
        "people": [{"name": "Jane Doe", "role": "Head of Sales"}],
        "emails": ["jane@acme.com"],
        "links": ["https://www.linkedin.com/company/acme"],
    },
    "competitor_report": {
        "keyTopics": ["organic traffic", "seo"],
        "contentGrade": "B",
        "contentGaps": ["link building", "technical seo", "content refresh"],
        "toneAnalysis": "Practical and upbeat.",
    },
}


def _echo_main_content(prompt):
    return {"mainContent": prompt}


class StubModel:
    """Structured-output model that answers from a dict keyed by agent name."""

    def __init__(self, responses=None):
        self.responses = {"content_extraction": _echo_main_content}
        self.responses.update(responses or {})
        self.calls = []

    def calls_for(self, name):
        return [call for call in self.calls if call["name"] == name]

    async def generate(self, *, name, instructions, prompt, schema):
        self.calls.append({"name": name, "instructions": instructions, "prompt": prompt})
        response = self.responses.get(name)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(prompt)
        if response is None:
            return None
        return schema.model_validate(response)


class StubCrawlClient:
    """Crawl collaborator returning canned HTML per URL."""

    def __init__(self, pages=None, default_html=ACME_HTML, failures=()):
        self.pages = dict(pages or {})
        self.default_html = default_html
        self.failures = set(failures)
        self.calls = []

    async def fetch_html(self, url):
        self.calls.append(url)
        if url in self.failures:
            raise CrawlFailed(url, "Crawler service returned status 502: bad gateway")
        return self.pages.get(url, self.default_html)


class RecordingNotifier:
    def __init__(self):
        self.deliveries = []

    async def notify(self, webhook_url, payload):
        self.deliveries.append((webhook_url, payload))
        return True


async def _create_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: uses the temporary SQLite database")
    config.addinivalue_line("markers", "server: exercises the HTTP app through TestClient")


@pytest.fixture(autouse=True)
def database():
    """Fresh tables for every test."""
    asyncio.run(_create_schema())
    yield
    asyncio.run(_drop_schema())


@pytest.fixture
def model():
    return StubModel(ACME_RESPONSES)


@pytest.fixture
def crawler():
    return StubCrawlClient()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(model, crawler, notifier):
    app.dependency_overrides[get_crawl_client] = lambda: crawler
    app.dependency_overrides[get_structured_model] = lambda: model
    app.dependency_overrides[get_webhook_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def status_headers():
    return {"Authorization": f"Bearer {TEST_STATUS_API_KEY}"}
