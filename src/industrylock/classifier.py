# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry classifier: homepage fetch + fused heuristic scoring.

Pipeline per call:
  1. Fetch ``root_url`` (bounded timeout). Failures mean "no homepage".
  2. Extract signals from the markup, or build a minimal bundle from the
     domain and site description.
  3. Run the pattern and domain-token scorers.
  4. Fuse: ``0.4 * pattern + 0.5 * domain + 0.1 * reserved`` per industry.
     The reserved slot (embeddings / LLM vote) is currently always empty.
  5. Primary = top fused score, alts = next three. No positive score at all
     yields the configured fallback industry at 0.5.

Works without a homepage (403s, bot walls): the domain and site description
alone still produce a result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from industrylock.heuristics import score_domain, score_patterns
from industrylock.settings import FETCH_TIMEOUT_MS, ClassifierSettings
from industrylock.signals import PageSignals, extract_signals

logger = logging.getLogger(__name__)

MAX_ALTS = 3
_EVIDENCE_KEYWORDS = 20
_FETCH_GUARD_S = 1.0  # wait_for slack on top of the httpx timeout


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CrawlBudget(BaseModel):
    """How much fetching one classification may do."""

    model_config = ConfigDict(extra="ignore")

    homepage: bool = True
    sitemap: bool = Field(False, description="Accepted for compatibility; sitemaps are never fetched")
    timeout_ms: int = Field(FETCH_TIMEOUT_MS, ge=1, le=60_000)


class ClassifyRequest(BaseModel):
    """Body of ``POST /industry/classify``."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    domain: str = Field(..., min_length=1, description="Bare domain, e.g. toyota.com")
    root_url: str = Field(..., min_length=1, description="Homepage URL to fetch")
    site_description: str | None = None
    project_id: str | None = None
    hints: list[str] = Field(default_factory=list)
    crawl_budget: CrawlBudget | None = None


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IndustryScore:
    industry_key: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"industry_key": self.industry_key, "confidence": round(self.confidence, 4)}


@dataclass(frozen=True, slots=True)
class ClassifyEvidence:
    """What the classifier looked at. Absent fields are omitted from JSON."""

    title: str | None = None
    nav: tuple[str, ...] | None = None
    schema: tuple[str, ...] | None = None
    keywords: tuple[str, ...] | None = None
    domain_signals: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.title is not None:
            d["title"] = self.title
        for name in ("nav", "schema", "keywords", "domain_signals"):
            value = getattr(self, name)
            if value is not None:
                d[name] = list(value)
        return d


@dataclass(frozen=True, slots=True)
class ClassifyResult:
    primary: IndustryScore
    alts: tuple[IndustryScore, ...]
    evidence: ClassifyEvidence
    model_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": {**self.primary.to_dict(), "source": "ai_worker"},
            "alts": [a.to_dict() for a in self.alts],
            "evidence": self.evidence.to_dict(),
            "model_version": self.model_version,
        }


# ---------------------------------------------------------------------------
# Fusion
# ---------------------------------------------------------------------------


def fuse_scores(
    pattern: Mapping[str, float],
    domain: Mapping[str, float],
    reserved: Mapping[str, float] | None = None,
    *,
    weights: tuple[float, float, float] = (0.4, 0.5, 0.1),
) -> dict[str, float]:
    """Weighted sum of the three score maps, per industry key."""
    fused: dict[str, float] = {}
    for weight, scores in zip(weights, (pattern, domain, reserved or {}), strict=True):
        for key, score in scores.items():
            fused[key] = fused.get(key, 0.0) + weight * score
    return fused


def _split_domain(domain: str) -> tuple[str, ...]:
    return tuple(t for t in domain.replace("-", ".").split(".") if t)


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class IndustryClassifier:
    """Classifies a domain from its homepage and name.

    Args:
        settings: Fetch timeout, fusion weights, fallback industry.
        client: Shared ``httpx.AsyncClient``. Created lazily (and owned) when
            omitted; tests pass one built on ``httpx.MockTransport``.
    """

    def __init__(self, settings: ClassifierSettings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings or ClassifierSettings()
        self._client = client
        self._owns_client = client is None

    @property
    def settings(self) -> ClassifierSettings:
        return self._settings

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                headers={"User-Agent": self._settings.user_agent},
            )
        return self._client

    async def fetch_homepage(self, url: str, timeout_ms: int | None = None) -> str | None:
        """GET *url*; body text on 2xx, ``None`` on anything else.

        Transport errors, invalid URLs, non-2xx statuses and timeouts are
        logged at debug level and never raised.
        """
        timeout_s = (timeout_ms or self._settings.fetch_timeout_ms) / 1000
        try:
            return await asyncio.wait_for(self._read_capped(url, timeout_s), timeout=timeout_s + _FETCH_GUARD_S)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            logger.debug("Homepage fetch failed for %s: %s", url, e)
            return None

    async def _read_capped(self, url: str, timeout_s: float) -> str | None:
        """Stream the body, stopping after ``max_homepage_bytes``."""
        cap = self._settings.max_homepage_bytes
        client = self._get_client()
        async with client.stream(
            "GET", url, headers={"User-Agent": self._settings.user_agent}, timeout=timeout_s
        ) as resp:
            if not resp.is_success:
                logger.debug("Homepage fetch for %s returned HTTP %d", url, resp.status_code)
                return None
            chunks: list[bytes] = []
            size = 0
            async for chunk in resp.aiter_bytes():
                chunks.append(chunk)
                size += len(chunk)
                if size >= cap:
                    logger.debug("Homepage for %s truncated at %d bytes", url, cap)
                    break
            return b"".join(chunks)[:cap].decode(resp.encoding or "utf-8", errors="replace")

    async def classify(
        self,
        domain: str,
        root_url: str,
        site_description: str | None = None,
        crawl_budget: CrawlBudget | None = None,
    ) -> ClassifyResult:
        """Classify *domain*. Always returns a result; never empty."""
        budget = crawl_budget or CrawlBudget(timeout_ms=self._settings.fetch_timeout_ms)
        description = site_description or None

        signals = PageSignals(domain=domain, site_description=description)
        if budget.homepage and root_url:
            html = await self.fetch_homepage(root_url, budget.timeout_ms)
            if html:
                signals = await asyncio.to_thread(extract_signals, html, domain, description)

        s = self._settings
        fused = fuse_scores(
            score_patterns(signals.text_blob()),
            score_domain(domain),
            weights=(s.pattern_weight, s.domain_weight, s.reserved_weight),
        )
        ranked = sorted(((k, v) for k, v in fused.items() if v > 0), key=lambda kv: kv[1], reverse=True)
        if not ranked:
            ranked = [(s.fallback_industry, s.fallback_score)]

        primary_key, primary_score = ranked[0]
        result = ClassifyResult(
            primary=IndustryScore(primary_key, min(1.0, primary_score)),
            alts=tuple(IndustryScore(k, min(1.0, v)) for k, v in ranked[1 : 1 + MAX_ALTS]),
            evidence=ClassifyEvidence(
                title=signals.title,
                nav=signals.nav_terms or None,
                schema=signals.schema_types or None,
                keywords=tuple(description.split()[:_EVIDENCE_KEYWORDS]) if description else None,
                domain_signals=_split_domain(domain),
            ),
            model_version=s.model_version,
        )
        logger.info(
            "Classified %s -> %s (confidence=%.3f, alts=%d, homepage=%s)",
            domain,
            primary_key,
            result.primary.confidence,
            len(result.alts),
            signals.body_text is not None or signals.title is not None,
        )
        return result

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
