# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Intent filtering against a resolved industry's pack.

Per intent, first match wins:

  1. lower-cased text contains a deny phrase      -> drop
  2. flattened pack has no allow tags             -> keep (unrestricted)
  3. text contains an allow tag ("build_and_price" as "build and price")
  4. text contains a token (4+ chars) of a multi-word allow tag
  5. text contains a synonym of an allow tag ("pricing" -> "how much")
  6. the intent's own tags include an allow tag
  otherwise                                       -> drop

Tags are coarse labels and query text is free-form, hence the looser tiers
after exact phrase matching.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

from industrylock.rule_store import FlattenedPack, IndustryConfig

logger = logging.getLogger(__name__)

MIN_KEYWORD_LEN = 4

_PRICING_TERMS = ("cost", "price", "how much", "msrp", "pricing")

SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "pricing": _PRICING_TERMS,
        "msrp": _PRICING_TERMS,
        "cost": _PRICING_TERMS,
        "dealer_locator": ("dealer", "near me", "find"),
        "safety": ("iihs", "nhtsa", "crash test"),
        "specs": ("capacity", "towing", "horsepower", "mpg"),
        "reviews": ("review", "rating"),
        "availability": ("in stock", "available"),
        "comparison": ("vs", "compare", "better"),
    }
)

# Leading word boundary only: "dealer" matches "dealers", "vs" does not match "tvs".
_SYNONYM_RES: Mapping[str, tuple[re.Pattern[str], ...]] = MappingProxyType(
    {tag: tuple(re.compile(rf"\b{re.escape(s)}") for s in terms) for tag, terms in SYNONYMS.items()}
)


@dataclass(frozen=True, slots=True)
class Intent:
    """A candidate query intent, optionally pre-tagged by its generator."""

    text: str
    tags: frozenset[str] = field(default_factory=frozenset)


T = TypeVar("T", Intent, str)


def _tag_tokens(tag: str) -> list[str]:
    words = tag.replace("_", " ").split()
    if len(words) < 2:
        return []
    return [w for w in words if len(w) >= MIN_KEYWORD_LEN]


def intent_matches_pack(intent: Intent | str, pack: FlattenedPack) -> tuple[bool, str]:
    """Decide one intent. Returns ``(keep, reason)``.

    Reasons: ``deny:<phrase>``, ``unrestricted``, ``allow:<tag>``,
    ``keyword:<token>``, ``synonym:<tag>``, ``tag:<tag>``, ``no_match``.
    """
    if isinstance(intent, str):
        intent = Intent(text=intent)
    text = intent.text.lower()

    for phrase in sorted(pack.deny):
        if phrase and phrase in text:
            return False, f"deny:{phrase}"

    if not pack.allow:
        return True, "unrestricted"

    allow = sorted(pack.allow)

    for tag in allow:
        if tag.replace("_", " ") in text:
            return True, f"allow:{tag}"

    for tag in allow:
        for token in _tag_tokens(tag):
            if token in text:
                return True, f"keyword:{token}"

    for tag in allow:
        if any(p.search(text) for p in _SYNONYM_RES.get(tag, ())):
            return True, f"synonym:{tag}"

    own_tags = {t.lower() for t in intent.tags}
    for tag in allow:
        if tag in own_tags:
            return True, f"tag:{tag}"

    return False, "no_match"


def filter_intents(intents: Iterable[T], industry: str, config: IndustryConfig) -> list[T]:
    """Keep the intents allowed by *industry*'s flattened pack.

    Accepts ``Intent`` objects or plain strings; returns the kept items
    unchanged, in input order.
    """
    pack = config.get_flattened_pack(industry)
    kept: list[T] = []
    dropped = 0
    for item in intents:
        keep, reason = intent_matches_pack(item, pack)
        if keep:
            kept.append(item)
        else:
            dropped += 1
            logger.debug("Dropped intent %r for %s (%s)", item if isinstance(item, str) else item.text, industry, reason)
    logger.info("Filtered intents for %s: kept=%d dropped=%d", industry, len(kept), dropped)
    return kept
