import asyncio
from datetime import timedelta

import pytest

from app.db.session import get_async_session_context
from app.errors import CrawlFailed
from app.repositories.analysis_cache_repository import AnalysisCacheRepository
from app.services import analysis_cache_service
from app.services.agent_chain import COMPETITOR_ANALYSIS_CHAIN, COMPETITOR_REPORT
from app.services.analysis_cache_service import AnalysisCacheService
from app.services.competitor_analysis_service import CompetitorAnalysisService
from app.utils.time import utc_now
from tests.conftest import ARTICLE_HTML, StubCrawlClient


pytestmark = pytest.mark.db

FLOW = COMPETITOR_ANALYSIS_CHAIN.name


def _advance_clock(monkeypatch, seconds):
    later = utc_now() + timedelta(seconds=seconds)
    monkeypatch.setattr(analysis_cache_service, "utc_now", lambda: later)


def test_cache_key_uses_canonical_url():
    key_a, params_a = AnalysisCacheService.build_cache_key(FLOW, "HTTPS://Site.com/a/#top")
    key_b, params_b = AnalysisCacheService.build_cache_key(FLOW, "https://site.com/a")

    assert key_a == key_b
    assert params_a == params_b == {"url": "https://site.com/a"}
    assert key_a.startswith(f"{FLOW}:")


def test_put_then_get_returns_output_until_expiry(monkeypatch):
    async def main():
        key, params = AnalysisCacheService.build_cache_key(FLOW, "https://site.com/a")
        async with get_async_session_context() as db:
            cache = AnalysisCacheService(db)
            await cache.put(key, flow_name=FLOW, canonical_params=params, output={"contentGrade": "A"}, ttl_seconds=60)

        async with get_async_session_context() as db:
            assert await AnalysisCacheService(db).get(key) == {"contentGrade": "A"}

        _advance_clock(monkeypatch, 61)
        async with get_async_session_context() as db:
            assert await AnalysisCacheService(db).get(key) is None

    asyncio.run(main())


def test_put_overwrites_existing_entry():
    async def main():
        key, params = AnalysisCacheService.build_cache_key(FLOW, "https://site.com/a")
        async with get_async_session_context() as db:
            cache = AnalysisCacheService(db)
            first = await cache.put(key, flow_name=FLOW, canonical_params=params, output={"v": 1}, ttl_seconds=60)
            second = await cache.put(key, flow_name=FLOW, canonical_params=params, output={"v": 2}, ttl_seconds=60)
            assert first.id == second.id
            assert await cache.get(key) == {"v": 2}

    asyncio.run(main())


def test_delete_expired_removes_only_stale_rows():
    async def main():
        async with get_async_session_context() as db:
            repo = AnalysisCacheRepository(db)
            now = utc_now()
            await repo.upsert_entry(cache_key="stale", flow_name=FLOW, input_params={}, output={}, expires_at=now - timedelta(seconds=5))
            await repo.upsert_entry(cache_key="fresh", flow_name=FLOW, input_params={}, output={}, expires_at=now + timedelta(hours=1))

        async with get_async_session_context() as db:
            assert await AnalysisCacheService(db).delete_expired() == 1

        async with get_async_session_context() as db:
            repo = AnalysisCacheRepository(db)
            assert await repo.get_by_cache_key("stale") is None
            assert await repo.get_by_cache_key("fresh") is not None

    asyncio.run(main())


def test_cache_hit_skips_crawl_and_chain(model):
    crawler = StubCrawlClient(default_html=ARTICLE_HTML)

    async def main():
        async with get_async_session_context() as db:
            first = await CompetitorAnalysisService(db, crawl_client=crawler, model=model).analyze("https://site.com/a")

        model.calls.clear()
        crawler.calls.clear()

        async with get_async_session_context() as db:
            second = await CompetitorAnalysisService(db, crawl_client=crawler, model=model).analyze("https://SITE.com/a/")

        return first, second

    first, second = asyncio.run(main())

    assert first == second
    assert first["contentGrade"] == "B"
    assert model.calls == []
    assert crawler.calls == []


def test_expired_entry_reruns_chain_and_is_refreshed(model, monkeypatch):
    crawler = StubCrawlClient(default_html=ARTICLE_HTML)

    async def main():
        key, _ = AnalysisCacheService.build_cache_key(FLOW, "https://site.com/a")
        async with get_async_session_context() as db:
            await CompetitorAnalysisService(db, crawl_client=crawler, model=model, ttl_seconds=60).analyze("https://site.com/a")

        _advance_clock(monkeypatch, 120)
        async with get_async_session_context() as db:
            await CompetitorAnalysisService(db, crawl_client=crawler, model=model, ttl_seconds=60).analyze("https://site.com/a")

        async with get_async_session_context() as db:
            return await AnalysisCacheService(db).get(key)

    refreshed = asyncio.run(main())

    assert len(model.calls_for(COMPETITOR_REPORT)) == 2
    assert len(crawler.calls) == 2
    assert refreshed is not None


def test_failed_analysis_is_not_cached(model):
    crawler = StubCrawlClient(failures={"https://site.com/down"})

    async def main():
        async with get_async_session_context() as db:
            service = CompetitorAnalysisService(db, crawl_client=crawler, model=model)
            with pytest.raises(CrawlFailed):
                await service.analyze("https://site.com/down")

        key, _ = AnalysisCacheService.build_cache_key(FLOW, "https://site.com/down")
        async with get_async_session_context() as db:
            return await AnalysisCacheService(db).get(key)

    assert asyncio.run(main()) is None
    assert model.calls_for(COMPETITOR_REPORT) == []
