import asyncio
import json

import httpx
import pytest

from app.errors import AgentFailed, ConfigurationError, CrawlFailed
from app.schemas.agents import CompanyIdentification, CompetitorReport
from app.services.crawl_client import CrawlClient
from app.services.llm_client import StructuredModelClient
from app.services.webhook_notifier import WebhookNotifier


pytestmark = pytest.mark.unit

CRAWLER_URL = "http://crawler.test/crawl"
LLM_URL = "http://llm.test/v1/chat/completions"


def _crawler(handler):
    return CrawlClient(CRAWLER_URL, transport=httpx.MockTransport(handler))


def _chat_response(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


# ---------------------------------------------------------------------------
# Crawl client
# ---------------------------------------------------------------------------

def test_fetch_html_posts_url_and_returns_html():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"html": "<html><body>Hi</body></html>"})

    html = asyncio.run(_crawler(handler).fetch_html("https://example.com/about"))

    assert html == "<html><body>Hi</body></html>"
    assert seen == [{"url": "https://example.com/about"}]


def test_fetch_html_non_2xx_raises_crawl_failed():
    client = _crawler(lambda request: httpx.Response(502, text="bad gateway"))

    with pytest.raises(CrawlFailed) as exc_info:
        asyncio.run(client.fetch_html("https://example.com"))

    assert "status 502" in str(exc_info.value)
    assert str(exc_info.value).startswith("Failed to crawl URL https://example.com.")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"content": "<html></html>"}),
        httpx.Response(200, json={"html": None}),
        httpx.Response(200, text="not json"),
    ],
)
def test_fetch_html_rejects_bodies_without_html(response):
    with pytest.raises(CrawlFailed):
        asyncio.run(_crawler(lambda request: response).fetch_html("https://example.com"))


def test_fetch_html_transport_error_raises_crawl_failed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CrawlFailed, match="connection refused"):
        asyncio.run(_crawler(handler).fetch_html("https://example.com"))


@pytest.mark.parametrize("service_url", ["", "https://your-crawler-service-url/crawl"])
def test_crawl_client_requires_configured_endpoint(service_url):
    client = CrawlClient(service_url)

    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(client.fetch_html("https://example.com"))

    assert exc_info.value.setting == "CRAWLER_SERVICE_URL"


# ---------------------------------------------------------------------------
# Structured model client
# ---------------------------------------------------------------------------

def test_generate_sends_schema_and_parses_fenced_json():
    captured = {}

    def handler(request):
        captured["auth"] = request.headers.get("Authorization")
        captured["body"] = json.loads(request.content)
        return _chat_response(
            '```json\n{"companyName": "Acme Corp", "companySummary": "Anvils.", "industryKeywords": ["anvils"]}\n```'
        )

    client = StructuredModelClient(api_url=LLM_URL, api_key="k-123", transport=httpx.MockTransport(handler))
    output = asyncio.run(
        client.generate(
            name="company_identification",
            instructions="Identify the company.",
            prompt="Page text",
            schema=CompanyIdentification,
        )
    )

    assert isinstance(output, CompanyIdentification)
    assert output.company_name == "Acme Corp"
    assert output.industry_keywords == ["anvils"]
    assert captured["auth"] == "Bearer k-123"
    assert captured["body"]["response_format"] == {"type": "json_object"}
    assert "companyName" in captured["body"]["messages"][0]["content"]
    assert captured["body"]["messages"][1] == {"role": "user", "content": "Page text"}


@pytest.mark.parametrize(
    "response, cause",
    [
        (_chat_response('{"keyTopics": ["seo"]}'), "did not match schema"),
        (_chat_response("I cannot help with that"), "invalid JSON"),
        (httpx.Response(200, json={"choices": []}), "no output"),
        (httpx.Response(429, json={"error": "rate limited"}), "status 429"),
    ],
)
def test_generate_failures_name_the_stage(response, cause):
    client = StructuredModelClient(api_url=LLM_URL, api_key="k", transport=httpx.MockTransport(lambda r: response))

    with pytest.raises(AgentFailed) as exc_info:
        asyncio.run(
            client.generate(name="competitor_report", instructions="", prompt="text", schema=CompetitorReport)
        )

    assert exc_info.value.stage == "competitor_report"
    assert cause in str(exc_info.value)
    assert str(exc_info.value).startswith("agent competitor_report failed to produce output")


def test_generate_requires_api_key():
    client = StructuredModelClient(api_url=LLM_URL, api_key="")

    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(client.generate(name="x", instructions="", prompt="", schema=CompetitorReport))

    assert exc_info.value.setting == "LLM_API_KEY"


# ---------------------------------------------------------------------------
# Webhook notifier
# ---------------------------------------------------------------------------

def test_webhook_notifier_reports_delivery_outcome():
    delivered = []

    def handler(request):
        delivered.append(json.loads(request.content))
        if request.url.path == "/broken":
            return httpx.Response(500)
        return httpx.Response(204)

    notifier = WebhookNotifier(transport=httpx.MockTransport(handler))
    payload = {"jobId": "abc", "status": "complete", "result": {"summary": "s", "prospects": []}}

    assert asyncio.run(notifier.notify("http://hooks.test/ok", payload)) is True
    assert asyncio.run(notifier.notify("http://hooks.test/broken", payload)) is False
    assert delivered == [payload, payload]
