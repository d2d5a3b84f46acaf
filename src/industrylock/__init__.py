# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry Lock: canonical industry resolution for audited web domains.

Resolves one locked, confidence-scored industry per audit from:
- domain rules: exact domain -> industry map (free, deterministic)
- heuristics: regex patterns and domain-token keywords
- classifier: homepage fetch + fused heuristic scoring

The resolved industry then constrains which generated query intents are kept
(see ``industrylock.intent_filter``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class IndustrySource(StrEnum):
    """Which precedence tier produced an IndustryLock."""

    OVERRIDE = "override"
    DOMAIN_RULES = "domain_rules"
    HEURISTICS = "heuristics"
    AI_WORKER = "ai_worker"
    AI_WORKER_MEDIUM_CONF = "ai_worker_medium_conf"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class IndustrySignals:
    """Caller-supplied evidence bundle for one resolution attempt."""

    domain: str
    homepage_title: str | None = None
    homepage_h1: str | None = None
    schema_types: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    nav_terms: tuple[str, ...] = ()
    site_description: str | None = None


@dataclass(frozen=True, slots=True)
class HeuristicVote:
    """One scorer's opinion about an industry."""

    key: str
    score: float  # 0.0-1.0
    signals: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "score": round(self.score, 4), "signals": list(self.signals)}


@dataclass(frozen=True, slots=True)
class LockMetadata:
    """Fusion details attached to classifier-sourced locks."""

    alts: tuple[dict[str, Any], ...] = ()
    heuristics_agree: bool = False
    schema_boost: float = 0.0
    fusion_applied: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "alts": [dict(a) for a in self.alts],
            "heuristics_agree": self.heuristics_agree,
            "schema_boost": self.schema_boost,
            "fusion_applied": self.fusion_applied,
        }


@dataclass(frozen=True, slots=True)
class IndustryLock:
    """Durable output of a resolution. ``locked`` is always True."""

    value: str
    source: IndustrySource
    confidence: float | None = None
    ancestors: tuple[str, ...] = ()  # most-specific first
    metadata: LockMetadata | None = None
    votes: tuple[HeuristicVote, ...] = ()

    @property
    def locked(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "value": self.value,
            "source": self.source.value,
            "locked": True,
            "ancestors": list(self.ancestors),
        }
        if self.confidence is not None:
            d["confidence"] = round(self.confidence, 4)
        if self.metadata is not None:
            d["metadata"] = self.metadata.to_dict()
        if self.votes:
            d["votes"] = [v.to_dict() for v in self.votes]
        return d


@dataclass(frozen=True, slots=True)
class AuditIndustry:
    """Industry fields persisted on an audit row by the caller."""

    industry: str | None = None
    industry_source: str | None = None
    industry_locked: bool = False

    @classmethod
    def from_lock(cls, lock: IndustryLock) -> AuditIndustry:
        return cls(industry=lock.value, industry_source=lock.source.value, industry_locked=True)


@dataclass(frozen=True, slots=True)
class IntentPack:
    """Allow/deny vocabulary for one industry; ``inherits`` forms a DAG."""

    allow_tags: tuple[str, ...] = ()
    deny_phrases: tuple[str, ...] = ()
    inherits: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntentPack:
        return cls(
            allow_tags=tuple(str(t) for t in data.get("allow_tags") or ()),
            deny_phrases=tuple(str(p) for p in data.get("deny_phrases") or ()),
            inherits=tuple(str(k) for k in data.get("inherits") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"allow_tags": list(self.allow_tags)}
        if self.deny_phrases:
            d["deny_phrases"] = list(self.deny_phrases)
        if self.inherits:
            d["inherits"] = list(self.inherits)
        return d


@dataclass
class DomainRules:
    """Domain -> industry map plus the default industry.

    Mutated only by the resolver's cache write-back (one entry at a time).
    """

    domains: dict[str, str] = field(default_factory=dict)
    default_industry: str = "generic_consumer"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DomainRules:
        domains = data.get("domains") or {}
        return cls(
            domains={str(k).lower(): str(v) for k, v in domains.items()},
            default_industry=str(data.get("default_industry") or "generic_consumer"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"domains": dict(self.domains), "default_industry": self.default_industry}
