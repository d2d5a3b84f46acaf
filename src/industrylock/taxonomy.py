# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry taxonomy: hierarchical slugs, legacy keys, per-industry profiles.

Two views of the same vocabulary:

- **Slugs** — dotted hierarchical keys (``health.pharma.brand``). Canonical
  form of every value placed in an IndustryLock.
- **Legacy keys** — flat keys (``pharmaceutical``) used by the heuristic
  tables, the domain rules document, and older stored audits. Mapped to slugs
  through ``LEGACY_TO_SLUG``; never rejected.

Profiles carry anti-keywords (heuristic veto) and expected schema.org types
(resolver schema boost). Tables are eager module constants and immutable.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IndustryNode:
    """One slug in the hierarchical taxonomy."""

    slug: str
    parent: str | None = None
    aliases: tuple[str, ...] = ()


_NODES: tuple[IndustryNode, ...] = (
    # automotive
    IndustryNode("automotive"),
    IndustryNode("automotive.oem", "automotive"),
    IndustryNode("automotive.dealer", "automotive"),
    IndustryNode("automotive.aftermarket", "automotive"),
    IndustryNode("automotive.rental", "automotive"),
    IndustryNode("automotive.ev", "automotive"),
    IndustryNode("automotive.ev.charging", "automotive.ev"),
    # travel
    IndustryNode("travel"),
    IndustryNode("travel.air", "travel"),
    IndustryNode("travel.hotels", "travel"),
    IndustryNode("travel.cruise", "travel"),
    IndustryNode("travel.otasearch", "travel", ("travel_booking",)),
    IndustryNode("travel.vacation_rentals", "travel"),
    IndustryNode("travel.destinations.dmo", "travel", ("tourism",)),
    # retail
    IndustryNode("retail"),
    IndustryNode("retail.grocery", "retail"),
    IndustryNode("retail.mass_merch", "retail"),
    IndustryNode("retail.marketplace", "retail"),
    IndustryNode("retail.marketplace.horizontal", "retail.marketplace"),
    # food
    IndustryNode("food_restaurant"),
    IndustryNode("food_restaurant.qsr", "food_restaurant"),
    # finance
    IndustryNode("finance"),
    IndustryNode("finance.bank", "finance"),
    IndustryNode("finance.brokerage.trading", "finance"),
    IndustryNode("finance.insurance", "finance"),
    # health
    IndustryNode("health", aliases=("healthcare",)),
    IndustryNode("health.providers", "health"),
    IndustryNode("health.providers.urgent_care", "health.providers"),
    IndustryNode("health.telehealth", "health", ("telemedicine",)),
    IndustryNode("health.pharmacy", "health"),
    IndustryNode("health.payers", "health", ("health_insurance",)),
    IndustryNode("health.pharma", "health"),
    IndustryNode("health.pharma.brand", "health.pharma"),
    IndustryNode("health.med_devices", "health", ("medical_devices",)),
    IndustryNode("health.biotech", "health", ("biotech",)),
    # education
    IndustryNode("education"),
    IndustryNode("education.higher", "education"),
    IndustryNode("education.higher.public", "education.higher"),
    IndustryNode("education.higher.private", "education.higher"),
    # professional
    IndustryNode("professional"),
    IndustryNode("professional.consulting", "professional"),
    IndustryNode("professional.consulting.mgmt", "professional.consulting"),
    IndustryNode("professional.legal", "professional"),
    # software
    IndustryNode("software"),
    IndustryNode("software.saas", "software"),
    IndustryNode("software.devtools", "software"),
    IndustryNode("software.security", "software"),
    # media
    IndustryNode("media"),
    IndustryNode("media.news", "media"),
    IndustryNode("media.streaming", "media"),
    IndustryNode("media.streaming.video", "media.streaming"),
    IndustryNode("media.social", "media"),
    # telecom
    IndustryNode("telecom"),
    IndustryNode("telecom.wireless", "telecom"),
    IndustryNode("telecom.isp_broadband", "telecom"),
    # fallbacks
    IndustryNode("generic_consumer"),
    IndustryNode("generic_b2b"),
    IndustryNode("unknown"),
)

TAXONOMY: MappingProxyType[str, IndustryNode] = MappingProxyType({n.slug: n for n in _NODES})

LEGACY_TO_SLUG: MappingProxyType[str, str] = MappingProxyType(
    {
        "automotive_oem": "automotive.oem",
        "travel_air": "travel.air",
        "travel_hotels": "travel.hotels",
        "travel_cruise": "travel.cruise",
        "travel_booking": "travel.otasearch",
        "vacation_rentals": "travel.vacation_rentals",
        "retail": "retail.mass_merch",
        "ecommerce": "retail.marketplace.horizontal",
        "restaurants": "food_restaurant.qsr",
        "financial_services": "finance.bank",
        "healthcare_provider": "health.providers",
        "pharmaceutical": "health.pharma.brand",
        "pharmacy": "health.pharmacy",
        "health_insurance": "health.payers",
        "medical_devices": "health.med_devices",
        "biotech": "health.biotech",
        "telemedicine": "health.telehealth",
        "university": "education.higher.public",
        "consulting": "professional.consulting.mgmt",
        "saas_b2b": "software.saas",
        "streaming": "media.streaming.video",
        "social_media": "media.social",
        "media_entertainment": "media",
        "telecom": "telecom.wireless",
        "generic_consumer": "generic_consumer",
        "unknown": "unknown",
    }
)

_ALIAS_TO_SLUG: dict[str, str] = {alias: n.slug for n in _NODES for alias in n.aliases}

# Legacy keys that are also top-level slugs ("retail", "telecom") resolve to
# their legacy leaf, not the top-level node.
_LEGACY_OVERRIDES_SLUG = frozenset(k for k in LEGACY_TO_SLUG if k in TAXONOMY and LEGACY_TO_SLUG[k] != k)


def normalize_industry_key(key: str) -> str:
    """Map any industry key to its canonical hierarchical slug.

    Legacy flat keys and aliases are translated; unknown keys are lower-cased
    and returned unchanged.
    """
    k = (key or "").strip().lower()
    if not k:
        return "unknown"
    if k in _LEGACY_OVERRIDES_SLUG:
        return LEGACY_TO_SLUG[k]
    if k in TAXONOMY:
        return k
    if k in LEGACY_TO_SLUG:
        return LEGACY_TO_SLUG[k]
    return _ALIAS_TO_SLUG.get(k, k)


def parent_slug(slug: str) -> str | None:
    """``health.pharma.brand`` -> ``health.pharma``; top-level -> None."""
    node = TAXONOMY.get(slug)
    if node is not None:
        return node.parent
    head, sep, _ = slug.rpartition(".")
    return head if sep else None


def ancestor_slugs(slug: str) -> tuple[str, ...]:
    """Hierarchical path, most-specific first.

    ``health.pharma.brand`` -> ``(health.pharma.brand, health.pharma, health)``
    """
    path: list[str] = []
    current: str | None = slug
    while current and current not in path:
        path.append(current)
        current = parent_slug(current)
    return tuple(path)


def legacy_keys_for(slug: str) -> tuple[str, ...]:
    """All legacy flat keys that normalize to *slug*."""
    return tuple(k for k, v in LEGACY_TO_SLUG.items() if v == slug)


# ---------------------------------------------------------------------------
# Profiles (keyed by legacy flat key)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IndustryProfile:
    """Vocabulary used for heuristic vetoes and schema boosts."""

    anti_keywords: tuple[str, ...] = ()
    schema_types: tuple[str, ...] = ()


_NON_HEALTH_ANTI = ("patient", "hospital", "prescription", "fda approved")

PROFILES: MappingProxyType[str, IndustryProfile] = MappingProxyType(
    {
        "pharmaceutical": IndustryProfile(
            anti_keywords=(
                "patient portal",
                "appointment",
                "schedule visit",
                "emergency room",
                "wait time",
                "insurance accepted",
                "find a doctor",
                "hospital",
                "clinic",
            ),
            schema_types=("Drug", "MedicalGuideline"),
        ),
        "healthcare_provider": IndustryProfile(
            anti_keywords=(
                "fda approved drug",
                "prescription drug",
                "clinical trial enrollment",
                "drug development",
                "pharmaceutical products",
            ),
            schema_types=("Hospital", "MedicalClinic", "Physician", "MedicalOrganization"),
        ),
        "health_insurance": IndustryProfile(
            anti_keywords=("patient portal", "fda approved", "prescription drug", "emergency room"),
            schema_types=("InsuranceAgency", "HealthInsurancePlan"),
        ),
        "pharmacy": IndustryProfile(
            anti_keywords=("clinical trial", "drug development"),
            schema_types=("Pharmacy",),
        ),
        "saas_b2b": IndustryProfile(
            anti_keywords=("patient care", "prescription", "emergency room", "retail store", "physical location"),
            schema_types=("SoftwareApplication", "WebApplication"),
        ),
        "retail": IndustryProfile(
            anti_keywords=("patient", "appointment", "fda approved", "prescription", "software as a service"),
            schema_types=("Store", "OnlineStore"),
        ),
        "ecommerce": IndustryProfile(
            anti_keywords=("patient", "appointment", "prescription", "emergency room"),
            schema_types=("OnlineStore",),
        ),
        "travel_air": IndustryProfile(
            anti_keywords=(*_NON_HEALTH_ANTI, "software"),
            schema_types=("Airline", "Flight"),
        ),
        "travel_hotels": IndustryProfile(
            anti_keywords=_NON_HEALTH_ANTI,
            schema_types=("Hotel", "LodgingBusiness", "Resort"),
        ),
        "travel_cruise": IndustryProfile(
            anti_keywords=_NON_HEALTH_ANTI,
            schema_types=("TouristTrip", "TravelAgency"),
        ),
        "automotive_oem": IndustryProfile(
            anti_keywords=_NON_HEALTH_ANTI,
            schema_types=("Car", "Vehicle", "AutoDealer"),
        ),
        "university": IndustryProfile(
            anti_keywords=("patient", "hospital", "prescription", "retail store"),
            schema_types=("CollegeOrUniversity", "EducationalOrganization"),
        ),
        "restaurants": IndustryProfile(
            anti_keywords=_NON_HEALTH_ANTI,
            schema_types=("Restaurant", "FoodEstablishment"),
        ),
        "streaming": IndustryProfile(
            anti_keywords=("patient", "hospital", "prescription"),
            schema_types=("BroadcastService", "EntertainmentBusiness"),
        ),
        "media_entertainment": IndustryProfile(
            anti_keywords=("patient portal", "prescription"),
            schema_types=("NewsMediaOrganization", "NewsArticle", "WebSite"),
        ),
        "telecom": IndustryProfile(
            anti_keywords=("patient", "hospital", "prescription"),
            schema_types=("Telecommunication",),
        ),
        "consulting": IndustryProfile(
            anti_keywords=("patient", "hospital", "prescription", "retail"),
            schema_types=("ProfessionalService",),
        ),
        "financial_services": IndustryProfile(
            anti_keywords=_NON_HEALTH_ANTI,
            schema_types=("BankOrCreditUnion", "FinancialService"),
        ),
        "generic_consumer": IndustryProfile(),
    }
)


def get_profile(key: str) -> IndustryProfile | None:
    """Profile for a legacy key, or for any legacy key of a slug."""
    profile = PROFILES.get(key)
    if profile is not None:
        return profile
    slug = normalize_industry_key(key)
    for legacy in legacy_keys_for(slug):
        if legacy in PROFILES:
            return PROFILES[legacy]
    return None


def schema_boost(industry: str, schema_types: Iterable[str], boost: float = 0.10) -> float:
    """Confidence boost when structured-data types match the industry.

    Matching is case-insensitive containment in either direction
    (``LocalBusiness`` vs ``Business``). Unknown industries never boost.
    """
    profile = get_profile(industry)
    if profile is None or not profile.schema_types:
        return 0.0
    expected = [e.lower() for e in profile.schema_types]
    for raw in schema_types:
        t = raw.lower()
        if not t:
            continue
        if any(e in t or t in e for e in expected):
            return boost
    return 0.0
