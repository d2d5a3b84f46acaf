# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Canary: a fixed domain -> industry table run through the full resolver.

Detects drift in the heuristic / classifier balance. The thresholds in
``industrylock.settings`` are calibrated against this table.

Assertions:
  - pass_rate_95pct       at least 95% of cases resolve to the expected industry
  - no_generic_fallback   no case lands on generic_consumer
  - avg_confidence_40pct  mean confidence of at least 0.40
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from industrylock import IndustrySignals
from industrylock.resolver import IndustryResolver, ResolveContext
from industrylock.taxonomy import normalize_industry_key

logger = logging.getLogger(__name__)

PASS_RATE_MIN = 95.0
AVG_CONFIDENCE_MIN = 0.40
GENERIC_INDUSTRY = "generic_consumer"


@dataclass(frozen=True, slots=True)
class CanaryCase:
    domain: str
    expected: str
    root_url: str
    site_description: str | None = None


CANARY_CASES: tuple[CanaryCase, ...] = (
    # SaaS B2B
    CanaryCase("adobe.com", "saas_b2b", "https://adobe.com", "Creative Cloud software and digital experience tools"),
    CanaryCase("salesforce.com", "saas_b2b", "https://salesforce.com", "CRM and cloud software platform"),
    CanaryCase("workday.com", "saas_b2b", "https://workday.com", "HR and finance software"),
    CanaryCase("intuit.com", "saas_b2b", "https://intuit.com", "QuickBooks, TurboTax, Mint software"),
    # Automotive OEM
    CanaryCase("toyota.com", "automotive_oem", "https://toyota.com", "Toyota vehicles and cars"),
    CanaryCase("tesla.com", "automotive_oem", "https://tesla.com", "Electric vehicles and clean energy"),
    # Retail
    CanaryCase("costco.com", "retail", "https://costco.com", "Warehouse club and online store"),
    CanaryCase("bestbuy.com", "retail", "https://bestbuy.com", "Electronics and appliances retailer"),
    # Media
    CanaryCase("cnn.com", "media_entertainment", "https://cnn.com", "News and current events"),
    CanaryCase("nytimes.com", "media_entertainment", "https://nytimes.com", "The New York Times news organization"),
    # Airlines
    CanaryCase("southwest.com", "travel_air", "https://southwest.com", "Low-cost airline and flight booking"),
    CanaryCase("delta.com", "travel_air", "https://delta.com", "Airline flights and travel"),
    # Healthcare
    CanaryCase("mayoclinic.org", "healthcare_provider", "https://mayoclinic.org", "Medical care and health information"),
    CanaryCase("clevelandclinic.org", "healthcare_provider", "https://clevelandclinic.org", "Healthcare and medical center"),
)


@dataclass(frozen=True, slots=True)
class CanaryResult:
    domain: str
    expected: str
    actual: str
    passed: bool
    confidence: float
    source: str
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "domain": self.domain,
            "status": "pass" if self.passed else "fail",
            "expected": self.expected,
            "actual": self.actual,
            "confidence": round(self.confidence, 3),
            "source": self.source,
        }
        if self.details:
            d["details"] = self.details
        return d


@dataclass(frozen=True, slots=True)
class CanaryReport:
    results: tuple[CanaryResult, ...]
    pass_count: int
    generic_count: int
    total_count: int
    pass_rate: float  # percent, 1 decimal
    generic_rate: float  # percent, 1 decimal
    avg_confidence: float  # 3 decimals

    @property
    def assertions(self) -> dict[str, bool]:
        return {
            "pass_rate_95pct": self.pass_rate >= PASS_RATE_MIN,
            "no_generic_fallback": self.generic_count == 0,
            "avg_confidence_40pct": self.avg_confidence >= AVG_CONFIDENCE_MIN,
        }

    @property
    def passed(self) -> bool:
        return self.pass_rate >= PASS_RATE_MIN

    def to_dict(self) -> dict[str, Any]:
        return {
            "pass": self.passed,
            "pass_rate": self.pass_rate,
            "generic_rate": self.generic_rate,
            "avg_confidence": self.avg_confidence,
            "pass_count": self.pass_count,
            "total_count": self.total_count,
            "generic_count": self.generic_count,
            "results": [r.to_dict() for r in self.results],
            "assertions": {k: "pass" if v else "fail" for k, v in self.assertions.items()},
        }


async def _run_case(resolver: IndustryResolver, case: CanaryCase) -> CanaryResult:
    description = case.site_description or ""
    signals = IndustrySignals(
        domain=case.domain,
        keywords=tuple(description.lower().split()),
    )
    try:
        lock = await resolver.resolve(
            ResolveContext(signals=signals, root_url=case.root_url, site_description=case.site_description)
        )
    except Exception as e:  # noqa: BLE001
        logger.error("Canary %s errored: %s", case.domain, e)
        return CanaryResult(
            domain=case.domain,
            expected=case.expected,
            actual=GENERIC_INDUSTRY,
            passed=False,
            confidence=0.0,
            source="error",
            details=str(e),
        )

    expected = normalize_industry_key(case.expected)
    actual = normalize_industry_key(lock.value)
    passed = actual == expected
    return CanaryResult(
        domain=case.domain,
        expected=expected,
        actual=actual,
        passed=passed,
        confidence=lock.confidence or 0.0,
        source=lock.source.value,
        details=None if passed else f"expected {expected}, got {actual} (source: {lock.source.value})",
    )


async def run_canary(resolver: IndustryResolver, cases: Sequence[CanaryCase] | None = None) -> CanaryReport:
    """Resolve every case sequentially and summarize."""
    table = tuple(cases) if cases is not None else CANARY_CASES
    results: list[CanaryResult] = []
    for case in table:
        result = await _run_case(resolver, case)
        logger.info(
            "Canary %s: %s (expected=%s actual=%s confidence=%.3f source=%s)",
            case.domain,
            "pass" if result.passed else "FAIL",
            result.expected,
            result.actual,
            result.confidence,
            result.source,
        )
        results.append(result)

    total = len(results)
    pass_count = sum(1 for r in results if r.passed)
    generic_count = sum(1 for r in results if r.actual == GENERIC_INDUSTRY)
    avg_confidence = sum(r.confidence for r in results) / total if total else 0.0

    report = CanaryReport(
        results=tuple(results),
        pass_count=pass_count,
        generic_count=generic_count,
        total_count=total,
        pass_rate=round(pass_count / total * 100, 1) if total else 0.0,
        generic_rate=round(generic_count / total * 100, 1) if total else 0.0,
        avg_confidence=round(avg_confidence, 3),
    )
    logger.info(
        "Canary summary: pass_rate=%.1f%% generic_rate=%.1f%% avg_confidence=%.3f",
        report.pass_rate,
        report.generic_rate,
        report.avg_confidence,
    )
    return report
