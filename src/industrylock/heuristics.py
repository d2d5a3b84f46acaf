# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Heuristic industry scorers.

Two independent engines, both pure functions over immutable tables:

- **Pattern scorer** — per-industry regex list matched against the signal
  text blob. Score = matched patterns / pattern count. An industry whose
  profile anti-keywords appear in the text gets no score at all.
- **Domain-token scorer** — domain split on ``.``/``-``; per industry, the
  number of *distinct* keywords found as a substring of any token.
  Score = ``min(1, 0.70 + 0.25 * (matches - 1))``.

Keys are legacy flat industry keys; callers normalize to slugs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

from industrylock import HeuristicVote
from industrylock.signals import PageSignals
from industrylock.taxonomy import PROFILES

DOMAIN_BASE_SCORE = 0.70
DOMAIN_STEP_SCORE = 0.25

_DOMAIN_SPLIT_RE = re.compile(r"[.\-]")


def _p(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# ---------------------------------------------------------------------------
# Pattern table
# ---------------------------------------------------------------------------

PATTERNS: Mapping[str, tuple[re.Pattern[str], ...]] = MappingProxyType(
    {
        "automotive_oem": (
            _p(r"\b(msrp|vin|dealers?|build\s*(&|and)\s*price|configure|inventory|test\s*drive)\b"),
            _p(r"\b(iihs|nhtsa|safety\s*ratings?|crash\s*test|warranty|towing|payload)\b"),
            _p(r"\b(sedans?|suvs?|trucks?|pickups?|crossovers?|hybrids?|electric\s*vehicles?|ev)\b"),
            _p(r"\b(car\s*manufacturer|auto\s*manufacturer|automotive|vehicles?|automobiles?)\b"),
        ),
        "travel_cruise": (
            _p(r"\b(cruises?|river\s*cruise|ocean\s*cruise|expeditions?|sailings?|itinerar(y|ies))\b"),
            _p(r"\b(staterooms?|cabins?|decks?|ports?|embark|disembark|shore\s*excursions?)\b"),
            _p(r"\b(cruise\s*line|cruise\s*ship|vessels?|fleet)\b"),
        ),
        "travel_hotels": (
            _p(r"\b(hotels?|resorts?|spa|lodge|inn|suites?|rooms?|check[-\s]in|check[-\s]out)\b"),
            _p(r"\b(amenities|concierge|housekeeping|room\s*service|mini[-\s]bar)\b"),
            _p(r"\b(booking|reservations?|stay|nights?|guests?)\b"),
        ),
        "travel_air": (
            _p(r"\b(airlines?|flights?|baggage|fare\s*class|check[-\s]in|boarding|gate)\b"),
            _p(r"\b(destinations?|routes?|departures?|arrivals?|layovers?|connecting)\b"),
            _p(r"\b(frequent\s*flyer|miles|points|rewards\s*program)\b"),
        ),
        "retail": (
            _p(r"\b(return\s*policy|free\s*shipping|add\s*to\s*cart|checkout|shopping\s*cart)\b"),
            _p(r"\b(gift\s*cards?|promo\s*codes?|discounts?|sale|clearance|in\s*stock)\b"),
            _p(r"\b(products?|sku|order\s*status|track\s*order|online\s*store|stores?|retailers?|warehouse)\b"),
        ),
        "financial_services": (
            _p(r"\b(fdic|apr|apy|routing\s*number|account\s*number|nmls)\b"),
            _p(r"\b(checking|savings|credit\s*cards?|debit\s*cards?|mortgages?|loans?)\b"),
            _p(r"\b(online\s*banking|mobile\s*banking|bill\s*pay|transfers?)\b"),
        ),
        "healthcare_provider": (
            _p(r"\b(find\s*(a\s*)?doctor|physicians?|appointments?|patient\s*portal)\b"),
            _p(r"\b(medical\s*records?|emr|ehr|clinics?|hospitals?|emergency\s*room|medical)\b"),
            _p(r"\b(insurance\s*accepted|medicare|medicaid|copay|health\s*care|healthcare)\b"),
        ),
        "pharmaceutical": (
            _p(r"\b(fda\s*approved|prescription|pharmaceuticals?|drugs?|medications?|vaccines?)\b"),
            _p(r"\b(clinical\s*trials?|pipeline|dosage|side\s*effects|contraindications)\b"),
            _p(r"\b(prescribing\s*information|patient\s*assistance|hcp|healthcare\s*professionals?)\b"),
        ),
        "saas_b2b": (
            _p(r"\b(software|saas|platform|api|sdk)\b"),
            _p(r"\b(cloud|integrations?|workflows?|crm|dashboards?|automation)\b"),
            _p(r"\b(free\s*trial|request\s*a\s*demo|book\s*a\s*demo|enterprise|developers?)\b"),
        ),
        "university": (
            _p(r"\b(university|college|campus)\b"),
            _p(r"\b(admissions?|undergraduate|graduate|degrees?|tuition|financial\s*aid)\b"),
            _p(r"\b(faculty|alumni|academics?|students?)\b"),
        ),
        "restaurants": (
            _p(r"\b(menu|restaurants?|dining|dine[-\s]in)\b"),
            _p(r"\b(order\s*online|delivery|takeout|pickup|drive[-\s]thru)\b"),
            _p(r"\b(burgers?|pizza|sandwich(es)?|nutrition|catering)\b"),
        ),
        "streaming": (
            _p(r"\b(streaming|watch\s*now|watch\s*online|stream)\b"),
            _p(r"\b(shows?|movies?|series|episodes?|originals)\b"),
            _p(r"\b(subscription|profiles?|devices?|free\s*trial)\b"),
        ),
        "media_entertainment": (
            _p(r"\b(news|breaking|headlines|journalism)\b"),
            _p(r"\b(politics|opinion|world|business|sports|weather)\b"),
            _p(r"\b(articles?|reporters?|editorial|newsletters?)\b"),
        ),
        "telecom": (
            _p(r"\b(wireless|5g|lte|carrier|cellular)\b"),
            _p(r"\b(phones?|smartphones?|sim\s*card|unlimited\s*data|prepaid)\b"),
            _p(r"\b(internet|broadband|fiber|coverage\s*map)\b"),
        ),
        "generic_consumer": (),
    }
)

# ---------------------------------------------------------------------------
# Domain keyword table
# ---------------------------------------------------------------------------

DOMAIN_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "automotive_oem": ("auto", "car", "motors", "toyota", "ford", "honda", "nissan", "bmw", "tesla"),
        "travel_cruise": ("cruise", "cruises", "viking", "carnival", "princess", "royal", "norwegian"),
        "travel_hotels": ("hotel", "hotels", "resort", "resorts", "marriott", "hilton", "hyatt"),
        "travel_air": ("airline", "airlines", "air", "delta", "united", "american", "southwest", "jetblue"),
        "retail": ("shop", "store", "mall", "retail", "buy", "cart", "costco", "walmart", "target"),
        "financial_services": ("bank", "banking", "credit", "loan", "mortgage", "invest"),
        "healthcare_provider": ("health", "medical", "clinic", "hospital", "doctor", "mayo"),
        "pharmaceutical": ("pharma", "pfizer", "merck", "novartis", "lilly"),
        "saas_b2b": ("software", "cloud", "saas", "adobe", "salesforce", "workday", "intuit", "atlassian"),
        "university": ("university", "college", "edu"),
        "restaurants": ("pizza", "burger", "grill", "kitchen", "taco", "mcdonalds"),
        "streaming": ("netflix", "hulu", "stream", "disneyplus"),
        "media_entertainment": ("news", "times", "post", "tribune", "journal", "cnn", "media"),
        "telecom": ("wireless", "mobile", "verizon", "tmobile", "att", "telecom"),
        "generic_consumer": (),
    }
)


# ---------------------------------------------------------------------------
# Anti-keyword veto
# ---------------------------------------------------------------------------


def _anti_re(words: tuple[str, ...]) -> re.Pattern[str] | None:
    if not words:
        return None
    alternation = "|".join(re.escape(w.lower()) for w in words)
    return re.compile(rf"\b(?:{alternation})(?:e?s)?\b")


# Whole words, plurals included: "clinics" vetoes, "clinical trial" does not.
_ANTI_KEYWORDS: Mapping[str, re.Pattern[str] | None] = MappingProxyType(
    {key: _anti_re(profile.anti_keywords) for key, profile in PROFILES.items()}
)


def is_vetoed(key: str, text: str) -> bool:
    """True when *text* contains an anti-keyword of industry *key*."""
    pattern = _ANTI_KEYWORDS.get(key)
    return pattern is not None and pattern.search(text.lower()) is not None


# ---------------------------------------------------------------------------
# Scorers
# ---------------------------------------------------------------------------


def _pattern_hits(text: str) -> dict[str, tuple[float, tuple[str, ...]]]:
    blob = text.lower()
    hits: dict[str, tuple[float, tuple[str, ...]]] = {}
    for key, patterns in PATTERNS.items():
        if not patterns:
            continue
        snippets = []
        for pattern in patterns:
            m = pattern.search(blob)
            if m:
                snippets.append(m.group(0))
        if not snippets or is_vetoed(key, blob):
            continue
        hits[key] = (len(snippets) / len(patterns), tuple(snippets))
    return hits


def score_patterns(text: str) -> dict[str, float]:
    """Per-industry pattern score in (0, 1]; industries scoring 0 are omitted."""
    return {key: score for key, (score, _) in _pattern_hits(text).items()}


def score_domain(domain: str) -> dict[str, float]:
    """Per-industry domain-token score; industries with no keyword hit are omitted."""
    tokens = [t for t in _DOMAIN_SPLIT_RE.split(domain.lower()) if t]
    scores: dict[str, float] = {}
    for key, keywords in DOMAIN_KEYWORDS.items():
        matches = sum(1 for kw in keywords if any(kw in t for t in tokens))
        if matches:
            scores[key] = min(1.0, DOMAIN_BASE_SCORE + DOMAIN_STEP_SCORE * (matches - 1))
    return scores


def vote_patterns(signals: PageSignals | str) -> list[HeuristicVote]:
    """Pattern-scorer votes, highest score first. Ties keep table order."""
    text = signals if isinstance(signals, str) else signals.text_blob()
    votes = [HeuristicVote(key=key, score=score, signals=snippets) for key, (score, snippets) in _pattern_hits(text).items()]
    votes.sort(key=lambda v: v.score, reverse=True)
    return votes
