# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry rule store: domain rules, default industry, intent packs.

``IndustryConfig`` is built once at process start (compiled-in YAML), then
optionally overlaid from the KV document with ``await config.load(store)``
and passed by reference to the resolver, the intent filter and the server.

KV document shape (``KV_DOCUMENT_KEY``)::

    {
      "industry_rules": {"domains": {"toyota.com": "automotive_oem"},
                         "default_industry": "generic_consumer"},
      "packs": {"automotive_oem": {"allow_tags": [...], "deny_phrases": [...],
                                   "inherits": [...]}}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from industrylock import DomainRules, IntentPack
from industrylock.errors import ConfigLoadError
from industrylock.kv_store import KV_DOCUMENT_KEY, KVStoreProtocol
from industrylock.taxonomy import legacy_keys_for, normalize_industry_key

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "industry_packs.yaml"
FALLBACK_INDUSTRY = "generic_consumer"


@dataclass(frozen=True, slots=True)
class FlattenedPack:
    """Union of allow tags and deny phrases across a pack's inheritance chain."""

    allow: frozenset[str] = field(default_factory=frozenset)
    deny: frozenset[str] = field(default_factory=frozenset)


def _strip_www(domain: str) -> str:
    d = domain.strip().lower()
    return d[4:] if d.startswith("www.") else d


def _parse_packs(raw: Any) -> dict[str, IntentPack]:
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"packs must be a mapping, got {type(raw).__name__}")
    packs: dict[str, IntentPack] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            logger.warning("Skipping malformed pack %r", key)
            continue
        packs[str(key)] = IntentPack.from_dict(value)
    return packs


def _parse_rules(raw: Any) -> DomainRules:
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"industry_rules must be a mapping, got {type(raw).__name__}")
    domains = raw.get("domains") or {}
    if not isinstance(domains, dict):
        raise ConfigLoadError("industry_rules.domains must be a mapping")
    rules = DomainRules.from_dict(raw)
    rules.domains = {_strip_www(d): v for d, v in rules.domains.items()}
    return rules


class IndustryConfig:
    """Loaded rule and pack tables.

    Mutated in exactly two places: ``load()`` (once, at startup) and
    ``remember_domain()`` (one domain entry at a time).
    """

    def __init__(self, rules: DomainRules | None = None, packs: dict[str, IntentPack] | None = None) -> None:
        self._rules = rules if rules is not None else DomainRules()
        self._packs: dict[str, IntentPack] = dict(packs or {})
        self._loaded = False

    # ---- Construction ----

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> IndustryConfig:
        """Build from a KV-shaped document. Raises ``ConfigLoadError`` on bad shape."""
        if not isinstance(doc, dict):
            raise ConfigLoadError(f"config document must be a mapping, got {type(doc).__name__}")
        rules = _parse_rules(doc["industry_rules"]) if doc.get("industry_rules") is not None else DomainRules()
        packs = _parse_packs(doc["packs"]) if doc.get("packs") is not None else {}
        return cls(rules, packs)

    @classmethod
    def default(cls, path: Path | None = None) -> IndustryConfig:
        """Compiled-in configuration shipped as package data."""
        config_path = path or DEFAULT_CONFIG_PATH
        with open(config_path, encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
        return cls.from_document(doc)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self, kv_store: KVStoreProtocol | None) -> None:
        """Overlay the KV document onto the compiled-in tables.

        Runs once per instance. The loaded flag is set whatever happens:
        missing document, unreadable store and unparsable JSON all keep the
        current tables and log.
        """
        if self._loaded:
            return
        try:
            if kv_store is None:
                logger.info("No KV store configured; using compiled-in industry config")
                return
            txt = await kv_store.get(KV_DOCUMENT_KEY)
            if not txt:
                logger.info("No %s document; using compiled-in industry config", KV_DOCUMENT_KEY)
                return
            doc = json.loads(txt)
            overlay = IndustryConfig.from_document(doc)
            if doc.get("packs") is not None:
                self._packs = overlay._packs
            if doc.get("industry_rules") is not None:
                self._rules = overlay._rules
            logger.info(
                "Loaded industry config from KV: packs=%d domain_rules=%d",
                len(self._packs),
                len(self._rules.domains),
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("Industry config KV load failed, using defaults: %s", e)
        finally:
            self._loaded = True

    # ---- Accessors ----

    def get_domain_rules(self) -> dict[str, str]:
        return dict(self._rules.domains)

    def get_default_industry(self) -> str:
        return self._rules.default_industry or FALLBACK_INDUSTRY

    def lookup_domain(self, domain: str) -> str | None:
        """Exact domain rule match; case-insensitive, ``www.`` ignored."""
        return self._rules.domains.get(_strip_www(domain))

    def _resolve_pack_key(self, key: str) -> str | None:
        if key in self._packs:
            return key
        slug = normalize_industry_key(key)
        if slug in self._packs:
            return slug
        for legacy in legacy_keys_for(slug):
            if legacy in self._packs:
                return legacy
        return None

    def get_pack(self, key: str) -> IntentPack | None:
        """Pack stored under *key*, its slug, or any legacy key of that slug."""
        resolved = self._resolve_pack_key(key)
        return self._packs[resolved] if resolved is not None else None

    def get_flattened_pack(self, key: str) -> FlattenedPack:
        """Allow/deny sets over *key* and everything it inherits.

        Iterative DFS with a visited set; inheritance cycles are tolerated
        and missing packs contribute nothing.
        """
        seen: set[str] = set()
        allow: set[str] = set()
        deny: set[str] = set()
        stack = [key]

        while stack:
            k = stack.pop()
            resolved = self._resolve_pack_key(k) or k
            if resolved in seen:
                continue
            seen.add(resolved)

            pack = self._packs.get(resolved)
            if pack is None:
                continue
            allow.update(t.lower() for t in pack.allow_tags)
            deny.update(p.lower() for p in pack.deny_phrases)
            stack.extend(pack.inherits)

        return FlattenedPack(allow=frozenset(allow), deny=frozenset(deny))

    # ---- Write-back cache ----

    async def remember_domain(self, domain: str, industry: str, kv_store: KVStoreProtocol | None) -> bool:
        """Cache ``domain -> industry`` in memory and in the KV document.

        In-memory rules are updated first so the running process benefits even
        when the KV write fails. The KV update is a read-modify-write touching
        only ``industry_rules.domains``; last writer wins. Never raises.

        Returns:
            True when the KV document was written.
        """
        d = _strip_www(domain)
        if not d:
            return False
        self._rules.domains[d] = industry
        if kv_store is None:
            return False

        try:
            txt = await kv_store.get(KV_DOCUMENT_KEY)
            doc = json.loads(txt) if txt else None
        except Exception as e:  # noqa: BLE001
            logger.warning("KV read failed while caching %s: %s", d, e)
            doc = None

        if not isinstance(doc, dict):
            # No packs key: a later load keeps the compiled-in packs.
            doc = {"industry_rules": self._rules.to_dict()}
        rules = doc.get("industry_rules")
        if not isinstance(rules, dict):
            rules = doc["industry_rules"] = self._rules.to_dict()
        domains = rules.get("domains")
        if not isinstance(domains, dict):
            domains = rules["domains"] = {}
        domains[d] = industry

        try:
            await kv_store.put(KV_DOCUMENT_KEY, json.dumps(doc))
        except Exception as e:  # noqa: BLE001
            logger.warning("KV write failed while caching %s -> %s: %s", d, industry, e)
            return False
        logger.info("Cached %s -> %s to KV", d, industry)
        return True

    def to_document(self) -> dict[str, Any]:
        return {
            "industry_rules": self._rules.to_dict(),
            "packs": {k: p.to_dict() for k, p in self._packs.items()},
        }
