# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry resolver: the precedence chain that produces an IndustryLock.

Evaluated strictly in order, first match wins:

  1. explicit override (call-site argument)         -> override
  2. project-level override                         -> override
  3. audit already locked                           -> stored value/source, verbatim
  4. domain rules (exact, case-insensitive, no www) -> domain_rules @ 1.0
  5. local pattern vote, banked for step 6/7 only
  6. classifier (8s outer timeout)                  -> ai_worker / ai_worker_medium_conf
       floor 0.35, +0.10 schema boost, +0.15 when the banked vote agrees,
       capped at 1.0; >= 0.70 is written back to the domain rules cache
  7. banked vote scoring >= 0.5                     -> heuristics
  8. configured default industry                    -> default

``resolve()`` never raises. Every failure degrades to the next tier.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from industrylock import (
    AuditIndustry,
    HeuristicVote,
    IndustryLock,
    IndustrySignals,
    IndustrySource,
    LockMetadata,
)
from industrylock.classifier import ClassifyResult, IndustryClassifier
from industrylock.errors import ClassifierError, ClassifierTimeoutError
from industrylock.heuristics import vote_patterns
from industrylock.kv_store import KVStoreProtocol
from industrylock.rule_store import IndustryConfig
from industrylock.settings import ResolverSettings
from industrylock.signals import PageSignals, extract_domain
from industrylock.taxonomy import ancestor_slugs, normalize_industry_key, schema_boost

logger = logging.getLogger(__name__)

_VOTES_KEPT = 3


@dataclass(frozen=True, slots=True)
class ResolveContext:
    """Everything known about one audit at resolution time."""

    signals: IndustrySignals
    audit: AuditIndustry | None = None
    project_override: str | None = None
    override: str | None = None
    root_url: str | None = None
    site_description: str | None = None


def _stored_source(raw: str | None) -> IndustrySource:
    if not raw:
        return IndustrySource.OVERRIDE
    try:
        return IndustrySource(raw)
    except ValueError:
        return IndustrySource.OVERRIDE


def _lock(
    key: str,
    source: IndustrySource,
    *,
    confidence: float | None = None,
    metadata: LockMetadata | None = None,
    votes: tuple[HeuristicVote, ...] = (),
) -> IndustryLock:
    value = normalize_industry_key(key)
    return IndustryLock(
        value=value,
        source=source,
        confidence=confidence,
        ancestors=ancestor_slugs(value),
        metadata=metadata,
        votes=votes,
    )


class IndustryResolver:
    """Resolves one IndustryLock per audit.

    Stateless across calls apart from the shared ``IndustryConfig``, whose
    domain rules grow through the classifier write-back.
    """

    def __init__(
        self,
        config: IndustryConfig,
        classifier: IndustryClassifier | None = None,
        kv_store: KVStoreProtocol | None = None,
        settings: ResolverSettings | None = None,
    ) -> None:
        self._config = config
        self._classifier = classifier
        self._kv_store = kv_store
        self._settings = settings or ResolverSettings()

    @property
    def settings(self) -> ResolverSettings:
        return self._settings

    async def resolve(self, ctx: ResolveContext) -> IndustryLock:
        domain = extract_domain(ctx.signals.domain)

        if ctx.override:
            lock = _lock(ctx.override, IndustrySource.OVERRIDE)
        elif ctx.project_override:
            lock = _lock(ctx.project_override, IndustrySource.OVERRIDE)
        elif ctx.audit is not None and ctx.audit.industry:
            # Re-emitted as stored, even when not a canonical slug.
            stored = ctx.audit.industry
            lock = IndustryLock(
                value=stored,
                source=_stored_source(ctx.audit.industry_source),
                ancestors=ancestor_slugs(normalize_industry_key(stored)),
            )
        else:
            try:
                lock = await self._infer(domain, ctx)
            except Exception:
                logger.exception("industry.resolve_failed domain=%s; using default", domain)
                lock = _lock(self._config.get_default_industry(), IndustrySource.DEFAULT)

        logger.info(
            "industry.resolved domain=%s value=%s source=%s confidence=%s",
            domain,
            lock.value,
            lock.source,
            f"{lock.confidence:.3f}" if lock.confidence is not None else "n/a",
        )
        return lock

    # ---- Inference tiers (4-8) ----

    async def _infer(self, domain: str, ctx: ResolveContext) -> IndustryLock:
        s = self._settings

        by_domain = self._config.lookup_domain(domain)
        if by_domain:
            return _lock(by_domain, IndustrySource.DOMAIN_RULES, confidence=1.0)

        votes = tuple(vote_patterns(PageSignals.from_industry_signals(ctx.signals)))
        banked = votes[0] if votes and votes[0].score > s.heuristic_bank_min else None

        ai_confidence: float | None = None
        if s.ai_classify_enabled and ctx.root_url and self._classifier is not None:
            result = await self._try_classify(self._classifier, domain, ctx.root_url, ctx)
            if result is not None and result.primary.confidence > 0:
                ai_confidence = result.primary.confidence
                if ai_confidence >= s.min_ai_confidence:
                    return await self._ai_lock(domain, ctx, result, banked, votes)
                logger.info(
                    "industry.ai_below_floor domain=%s industry=%s confidence=%.3f floor=%.2f",
                    domain,
                    result.primary.industry_key,
                    ai_confidence,
                    s.min_ai_confidence,
                )

        if banked is not None and banked.score >= s.heuristic_fallback_min:
            return _lock(
                banked.key,
                IndustrySource.HEURISTICS,
                confidence=banked.score,
                votes=votes[:_VOTES_KEPT],
            )

        fallback_confidence = ai_confidence if ai_confidence else (banked.score if banked else None)
        return _lock(
            self._config.get_default_industry(),
            IndustrySource.DEFAULT,
            confidence=fallback_confidence,
            votes=votes,
        )

    async def _try_classify(
        self, classifier: IndustryClassifier, domain: str, root_url: str, ctx: ResolveContext
    ) -> ClassifyResult | None:
        try:
            return await self._classify(classifier, domain, root_url, ctx)
        except ClassifierError as e:
            logger.warning("industry.ai_failed domain=%s error=%s", domain, e)
            return None

    async def _classify(
        self, classifier: IndustryClassifier, domain: str, root_url: str, ctx: ResolveContext
    ) -> ClassifyResult:
        """Classifier call under the outer timeout; failures become ``ClassifierError``."""
        timeout = self._settings.classifier_timeout
        try:
            return await asyncio.wait_for(
                classifier.classify(
                    domain,
                    root_url,
                    site_description=ctx.site_description or ctx.signals.site_description or "",
                ),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise ClassifierTimeoutError(f"classifier timed out after {timeout:.1f}s", timeout=timeout) from e
        except Exception as e:
            raise ClassifierError(f"{type(e).__name__}: {e}") from e

    async def _ai_lock(
        self,
        domain: str,
        ctx: ResolveContext,
        result: ClassifyResult,
        banked: HeuristicVote | None,
        votes: tuple[HeuristicVote, ...],
    ) -> IndustryLock:
        s = self._settings
        primary = result.primary
        primary_slug = normalize_industry_key(primary.industry_key)

        schema_types = (*ctx.signals.schema_types, *(result.evidence.schema or ()))
        boost = schema_boost(primary.industry_key, schema_types, s.schema_boost)
        boosted = min(1.0, primary.confidence + boost)

        agrees = banked is not None and normalize_industry_key(banked.key) == primary_slug
        final = min(1.0, boosted + s.agreement_boost) if agrees else boosted
        source = IndustrySource.AI_WORKER if final >= s.high_confidence else IndustrySource.AI_WORKER_MEDIUM_CONF

        logger.info(
            "industry.ai domain=%s industry=%s raw=%.3f schema=+%.2f agrees=%s final=%.3f source=%s",
            domain,
            primary_slug,
            primary.confidence,
            boost,
            agrees,
            final,
            source,
        )

        if final >= s.high_confidence and domain:
            await self._config.remember_domain(domain, primary_slug, self._kv_store)

        metadata = LockMetadata(
            alts=tuple(
                {"industry_key": normalize_industry_key(a.industry_key), "confidence": round(a.confidence, 4)}
                for a in result.alts
            ),
            heuristics_agree=agrees,
            schema_boost=boost,
            fusion_applied=boost > 0 or agrees,
        )
        return _lock(primary_slug, source, confidence=final, metadata=metadata, votes=votes)
