# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime settings for the resolver, classifier, and service.

The thresholds are tuned constants; the canary table is calibrated against
these exact values. Override per deployment through ``INDUSTRY_*``
environment variables or by constructing the dataclasses directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# ── Resolver thresholds ──────────────────────────────────────────────

MIN_AI_CONFIDENCE = 0.35
HIGH_CONFIDENCE = 0.70
AGREEMENT_BOOST = 0.15
SCHEMA_BOOST = 0.10
HEURISTIC_FALLBACK_MIN = 0.50
HEURISTIC_BANK_MIN = 0.40
CLASSIFIER_TIMEOUT_S = 8.0

# ── Classifier ───────────────────────────────────────────────────────

FETCH_TIMEOUT_MS = 5000
MAX_HOMEPAGE_BYTES = 2_000_000
PATTERN_WEIGHT = 0.4
DOMAIN_WEIGHT = 0.5
RESERVED_WEIGHT = 0.1  # embedding / LLM slot, currently always 0
FALLBACK_SCORE = 0.5
MODEL_VERSION = "ind-v1.2-heuristic"
USER_AGENT = "IndustryLockBot/1.0 (+https://www.retio.ai/bot)"

_FALSY = {"0", "false", "no", "off"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in _FALSY


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolverSettings:
    """Precedence-chain thresholds and the classifier kill switch."""

    ai_classify_enabled: bool = True
    min_ai_confidence: float = MIN_AI_CONFIDENCE
    high_confidence: float = HIGH_CONFIDENCE
    agreement_boost: float = AGREEMENT_BOOST
    schema_boost: float = SCHEMA_BOOST
    heuristic_fallback_min: float = HEURISTIC_FALLBACK_MIN
    heuristic_bank_min: float = HEURISTIC_BANK_MIN
    classifier_timeout: float = CLASSIFIER_TIMEOUT_S

    @classmethod
    def from_env(cls) -> ResolverSettings:
        return cls(
            ai_classify_enabled=_env_flag("INDUSTRY_AI_CLASSIFY", True),
            min_ai_confidence=_env_float("INDUSTRY_MIN_AI_CONFIDENCE", MIN_AI_CONFIDENCE),
            high_confidence=_env_float("INDUSTRY_HIGH_CONFIDENCE", HIGH_CONFIDENCE),
            classifier_timeout=_env_float("INDUSTRY_CLASSIFIER_TIMEOUT", CLASSIFIER_TIMEOUT_S),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ClassifierSettings:
    """Homepage fetch and score fusion parameters."""

    fetch_timeout_ms: int = FETCH_TIMEOUT_MS
    max_homepage_bytes: int = MAX_HOMEPAGE_BYTES
    pattern_weight: float = PATTERN_WEIGHT
    domain_weight: float = DOMAIN_WEIGHT
    reserved_weight: float = RESERVED_WEIGHT
    fallback_score: float = FALLBACK_SCORE
    fallback_industry: str = "generic_consumer"
    model_version: str = MODEL_VERSION
    user_agent: str = USER_AGENT

    @classmethod
    def from_env(cls) -> ClassifierSettings:
        return cls(fetch_timeout_ms=_env_int("INDUSTRY_FETCH_TIMEOUT_MS", FETCH_TIMEOUT_MS))


@dataclass(frozen=True, slots=True, kw_only=True)
class ServiceSettings:
    """Process-level options for the HTTP service and CLI."""

    kv_path: Path | None = None
    log_json: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ServiceSettings:
        raw_path = os.environ.get("INDUSTRY_KV_PATH", "").strip()
        return cls(
            kv_path=Path(raw_path) if raw_path else None,
            log_json=_env_flag("INDUSTRY_LOG_JSON", False),
            log_level=os.environ.get("INDUSTRY_LOG_LEVEL", "").strip() or "INFO",
        )
