# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Homepage signal extraction.

Turns raw homepage markup (or nothing, when the fetch failed or was skipped)
into a ``PageSignals`` bundle that the heuristic engines score:
title, meta description, ``og:site_name``, first heading, navigation terms,
JSON-LD ``@type`` values and a bounded slice of body text.

Uses lxml for parsing. Malformed JSON-LD blocks are skipped one at a time;
unparsable markup yields a bundle carrying only the domain and description.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import lxml.html
from lxml import etree

from industrylock import IndustrySignals
from industrylock.sanitizer import sanitize_text

logger = logging.getLogger(__name__)

BODY_TEXT_LIMIT = 2000
NAV_TERM_LIMIT = 20
_NAV_MIN_LEN = 4
_NAV_MAX_LEN = 19
_JSONLD_MAX_DEPTH = 5

_NAV_XPATH = "//nav | //*[@role='navigation'] | //header//ul | //header//menu"
_STRIP_TAGS = ("script", "style", "noscript", "template")


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def extract_domain(url: str) -> str:
    """Bare lower-cased host of *url*: scheme, ``www.``, port and path removed.

    ``https://www.toyota.com/rav4`` -> ``toyota.com``. Scheme-less input is
    accepted. Input that does not parse as a URL is lower-cased and has a
    leading ``www.`` removed.
    """
    raw = (url or "").strip()
    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        host = None
    if not host:
        return _strip_www(raw.lower())
    return _strip_www(host.lower())


# ---------------------------------------------------------------------------
# Signal bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PageSignals:
    """Normalized evidence for the heuristic engines."""

    domain: str
    title: str | None = None
    meta_description: str | None = None
    og_site_name: str | None = None
    h1: str | None = None
    nav_terms: tuple[str, ...] = ()
    schema_types: tuple[str, ...] = ()
    body_text: str | None = None
    site_description: str | None = None
    keywords: tuple[str, ...] = ()

    def text_blob(self) -> str:
        """All signal text joined and lower-cased, for pattern matching."""
        parts = [
            self.domain,
            self.title,
            self.meta_description,
            self.og_site_name,
            self.h1,
            self.site_description,
            self.body_text,
            *self.nav_terms,
            *self.keywords,
            *self.schema_types,
        ]
        return " ".join(p for p in parts if p).lower()

    @classmethod
    def from_industry_signals(cls, signals: IndustrySignals) -> PageSignals:
        """Adapt a caller-supplied bundle (no homepage fetch involved)."""
        return cls(
            domain=signals.domain,
            title=signals.homepage_title,
            h1=signals.homepage_h1,
            nav_terms=tuple(signals.nav_terms),
            schema_types=tuple(signals.schema_types),
            site_description=signals.site_description,
            keywords=tuple(signals.keywords),
        )


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------


def _collect_types(data: Any, out: list[str], max_depth: int = _JSONLD_MAX_DEPTH) -> None:
    """Append every ``@type`` found at the top level, in arrays, and in ``@graph``."""
    if max_depth <= 0:
        return
    if isinstance(data, list):
        for item in data:
            _collect_types(item, out, max_depth - 1)
        return
    if not isinstance(data, dict):
        return
    t = data.get("@type")
    for value in t if isinstance(t, list) else [t]:
        if isinstance(value, str) and value and value not in out:
            out.append(value)
    if "@graph" in data:
        _collect_types(data["@graph"], out, max_depth - 1)


def _schema_types(doc: lxml.html.HtmlElement) -> tuple[str, ...]:
    types: list[str] = []
    for script in doc.iter("script"):
        if (script.get("type") or "").strip().lower() != "application/ld+json":
            continue
        try:
            data = json.loads(script.text or "")
        except (ValueError, TypeError, RecursionError):
            continue
        _collect_types(data, types)
    return tuple(types)


# ---------------------------------------------------------------------------
# HTML fields
# ---------------------------------------------------------------------------


def _meta_content(doc: lxml.html.HtmlElement, *, name: str | None = None, prop: str | None = None) -> str | None:
    for meta in doc.iter("meta"):
        if name is not None and (meta.get("name") or "").lower() != name:
            continue
        if prop is not None and (meta.get("property") or "").lower() != prop:
            continue
        content = sanitize_text(meta.get("content"))
        if content:
            return content
    return None


def _first_text(doc: lxml.html.HtmlElement, tag: str) -> str | None:
    el = next(doc.iter(tag), None)
    if el is None:
        return None
    return sanitize_text(el.text_content()) or None


def _nav_terms(doc: lxml.html.HtmlElement) -> tuple[str, ...]:
    terms: list[str] = []
    for region in doc.xpath(_NAV_XPATH):
        for word in region.text_content().split():
            word = sanitize_text(word, max_len=_NAV_MAX_LEN + 1)
            if _NAV_MIN_LEN <= len(word) <= _NAV_MAX_LEN and word not in terms:
                terms.append(word)
                if len(terms) >= NAV_TERM_LIMIT:
                    return tuple(terms)
    return tuple(terms)


def _body_text(doc: lxml.html.HtmlElement) -> str | None:
    # Destructive: JSON-LD must be read before this runs.
    for el in list(doc.iter(*_STRIP_TAGS)):
        el.drop_tree()
    body = doc.find("body")
    root = body if body is not None else doc
    return sanitize_text(root.text_content(), max_len=BODY_TEXT_LIMIT) or None


def extract_signals(html: str | None, domain: str, site_description: str | None = None) -> PageSignals:
    """Build a ``PageSignals`` bundle from homepage markup.

    Args:
        html: Raw homepage HTML. ``None``/empty yields a minimal bundle.
        domain: Bare domain under audit.
        site_description: Caller-supplied description, carried through as-is.
    """
    if not html or not html.strip():
        return PageSignals(domain=domain, site_description=site_description)

    try:
        doc = lxml.html.document_fromstring(html)
    except (etree.ParserError, ValueError) as e:
        logger.debug("Unparsable homepage markup for %s: %s", domain, e)
        return PageSignals(domain=domain, site_description=site_description)

    title = _first_text(doc, "title")
    meta_description = _meta_content(doc, name="description")
    og_site_name = _meta_content(doc, prop="og:site_name")
    h1 = _first_text(doc, "h1")
    nav_terms = _nav_terms(doc)
    schema_types = _schema_types(doc)
    body_text = _body_text(doc)

    return PageSignals(
        domain=domain,
        title=title,
        meta_description=meta_description,
        og_site_name=og_site_name,
        h1=h1,
        nav_terms=nav_terms,
        schema_types=schema_types,
        body_text=body_text,
        site_description=site_description,
    )
