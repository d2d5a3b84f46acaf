# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for industrylock.classifier — homepage fetch, fusion, result shape."""

from __future__ import annotations

import httpx
import pytest

from industrylock.classifier import (
    MAX_ALTS,
    ClassifyRequest,
    CrawlBudget,
    IndustryClassifier,
    fuse_scores,
)
from industrylock.settings import MODEL_VERSION, ClassifierSettings

TOYOTA_HOMEPAGE = """\
<html>
<head>
  <title>Toyota Official Site</title>
  <script type="application/ld+json">{"@type": "AutoDealer"}</script>
</head>
<body>
  <nav><a>Vehicles</a> <a>Shopping</a></nav>
  <p>Compare MSRP across SUVs, trucks and hybrids. IIHS safety ratings for every model.</p>
</body>
</html>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _html(body: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body, headers={"content-type": "text/html"})

    return handler


# ---------------------------------------------------------------------------
# Fusion
# ---------------------------------------------------------------------------


class TestFuseScores:
    def test_weighted_sum(self):
        fused = fuse_scores({"a": 1.0}, {"a": 1.0, "b": 0.7})
        assert fused["a"] == pytest.approx(0.9)
        assert fused["b"] == pytest.approx(0.35)

    def test_reserved_slot(self):
        fused = fuse_scores({}, {}, {"a": 1.0})
        assert fused["a"] == pytest.approx(0.1)

    def test_custom_weights(self):
        fused = fuse_scores({"a": 1.0}, {"a": 1.0}, weights=(0.5, 0.5, 0.0))
        assert fused["a"] == pytest.approx(1.0)

    def test_empty(self):
        assert fuse_scores({}, {}) == {}


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


class TestFetchHomepage:
    async def test_success(self):
        async with _client(_html("<html>ok</html>")) as client:
            classifier = IndustryClassifier(client=client)
            assert await classifier.fetch_homepage("https://toyota.com") == "<html>ok</html>"

    async def test_non_2xx_is_none(self, classifier):
        assert await classifier.fetch_homepage("https://toyota.com") is None

    async def test_transport_error_is_none(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            classifier = IndustryClassifier(client=client)
            assert await classifier.fetch_homepage("https://toyota.com") is None

    async def test_timeout_is_none(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            classifier = IndustryClassifier(client=client)
            assert await classifier.fetch_homepage("https://toyota.com", timeout_ms=10) is None

    async def test_body_capped(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>" + b"x" * 10_000)

        async with _client(handler) as client:
            classifier = IndustryClassifier(ClassifierSettings(max_homepage_bytes=100), client=client)
            body = await classifier.fetch_homepage("https://toyota.com")
        assert body is not None
        assert len(body) == 100
        assert body.startswith("<html>x")

    async def test_body_decoded_with_declared_charset(self):
        def handler(request):
            return httpx.Response(
                200, content="Café".encode("latin-1"), headers={"content-type": "text/html; charset=latin-1"}
            )

        async with _client(handler) as client:
            assert await IndustryClassifier(client=client).fetch_homepage("https://cafe.example") == "Café"

    async def test_sends_user_agent(self):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers.get("user-agent")
            return httpx.Response(200, text="")

        async with _client(handler) as client:
            classifier = IndustryClassifier(ClassifierSettings(user_agent="TestBot/1.0"), client=client)
            await classifier.fetch_homepage("https://toyota.com")
        assert seen["ua"] == "TestBot/1.0"


# ---------------------------------------------------------------------------
# Classify
# ---------------------------------------------------------------------------


class TestClassify:
    async def test_homepage_signals(self):
        async with _client(_html(TOYOTA_HOMEPAGE)) as client:
            result = await IndustryClassifier(client=client).classify("toyota.com", "https://toyota.com")

        assert result.primary.industry_key == "automotive_oem"
        # 0.4 * pattern(1.0) + 0.5 * domain(0.70)
        assert result.primary.confidence == pytest.approx(0.75)
        assert result.evidence.title == "Toyota Official Site"
        assert result.evidence.schema == ("AutoDealer",)
        assert result.evidence.nav == ("Vehicles", "Shopping")
        assert result.evidence.domain_signals == ("toyota", "com")
        assert result.model_version == MODEL_VERSION

    async def test_works_without_homepage(self, classifier):
        result = await classifier.classify(
            "adobe.com", "https://adobe.com", "Creative Cloud software and digital experience tools"
        )
        assert result.primary.industry_key == "saas_b2b"
        # 0.4 * pattern(2/3) + 0.5 * domain(0.70)
        assert result.primary.confidence == pytest.approx(0.4 * 2 / 3 + 0.35)
        assert result.evidence.title is None
        assert result.evidence.nav is None
        assert result.evidence.keywords == ("Creative", "Cloud", "software", "and", "digital", "experience", "tools")

    async def test_fallback_when_nothing_matches(self, classifier):
        result = await classifier.classify("zzqx.io", "https://zzqx.io")
        assert result.primary.industry_key == "generic_consumer"
        assert result.primary.confidence == pytest.approx(0.5)
        assert result.alts == ()

    async def test_configured_fallback(self, offline_http):
        classifier = IndustryClassifier(ClassifierSettings(fallback_industry="unknown"), client=offline_http)
        result = await classifier.classify("zzqx.io", "https://zzqx.io")
        assert result.primary.industry_key == "unknown"

    async def test_alts_ranked_and_bounded(self, classifier):
        result = await classifier.classify(
            "news-shop.example",
            "https://news-shop.example",
            "software news flights hotel rooms cruise ships menu delivery wireless phones",
        )
        assert len(result.alts) <= MAX_ALTS
        scores = [result.primary.confidence, *(a.confidence for a in result.alts)]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 < s <= 1.0 for s in scores)

    async def test_unparsable_structured_data_not_fatal(self):
        nested = "[" * 5000 + "]" * 5000
        page = TOYOTA_HOMEPAGE.replace("</head>", f'<script type="application/ld+json">{nested}</script></head>')
        async with _client(_html(page)) as client:
            result = await IndustryClassifier(client=client).classify("toyota.com", "https://toyota.com")
        assert result.primary.industry_key == "automotive_oem"
        assert result.evidence.schema == ("AutoDealer",)

    async def test_homepage_skipped_by_budget(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, text=TOYOTA_HOMEPAGE)

        async with _client(handler) as client:
            result = await IndustryClassifier(client=client).classify(
                "toyota.com", "https://toyota.com", crawl_budget=CrawlBudget(homepage=False)
            )
        assert calls == []
        assert result.primary.industry_key == "automotive_oem"
        assert result.evidence.title is None

    async def test_to_dict(self, classifier):
        result = await classifier.classify("adobe.com", "https://adobe.com", "Creative Cloud software")
        d = result.to_dict()
        assert d["primary"]["industry_key"] == "saas_b2b"
        assert d["primary"]["source"] == "ai_worker"
        assert d["model_version"] == MODEL_VERSION
        assert d["evidence"]["domain_signals"] == ["adobe", "com"]
        assert "title" not in d["evidence"]
        assert isinstance(d["alts"], list)


class TestClientLifecycle:
    async def test_injected_client_not_closed(self, offline_http):
        classifier = IndustryClassifier(client=offline_http)
        await classifier.aclose()
        assert not offline_http.is_closed

    async def test_owned_client_closed(self):
        classifier = IndustryClassifier()
        client = classifier._get_client()
        await classifier.aclose()
        assert client.is_closed


class TestClassifyRequest:
    def test_minimal(self):
        req = ClassifyRequest.model_validate({"domain": "toyota.com", "root_url": "https://toyota.com"})
        assert req.crawl_budget is None
        assert req.hints == []

    def test_strips_whitespace(self):
        req = ClassifyRequest.model_validate({"domain": " toyota.com ", "root_url": "https://toyota.com"})
        assert req.domain == "toyota.com"

    def test_unknown_fields_ignored(self):
        req = ClassifyRequest.model_validate(
            {"domain": "toyota.com", "root_url": "https://toyota.com", "extra": 1, "crawl_budget": {"homepage": False}}
        )
        assert req.crawl_budget == CrawlBudget(homepage=False)
