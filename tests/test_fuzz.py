# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies invariants hold for arbitrary inputs across the sanitizer,
heuristic scorers, domain extraction, pack flattening and the intent filter.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, example, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import re

import pytest

from industrylock import IntentPack
from industrylock.heuristics import PATTERNS, score_domain, score_patterns, vote_patterns
from industrylock.intent_filter import intent_matches_pack
from industrylock.rule_store import FlattenedPack, IndustryConfig
from industrylock.sanitizer import sanitize_text
from industrylock.signals import extract_domain

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

GENERAL_TEXT = st.text(min_size=0, max_size=2000)

DOMAIN_LABEL = st.from_regex(r"[a-z0-9]{1,20}", fullmatch=True)

PACK_KEYS = st.sampled_from(["a", "b", "c", "d", "e", "f"])

PACK_GRAPH = st.dictionaries(
    PACK_KEYS,
    st.tuples(
        st.lists(st.text(alphabet="abcxyz_", min_size=1, max_size=8), max_size=4),
        st.lists(PACK_KEYS | st.just("missing"), max_size=4),
    ),
    max_size=6,
)

PHRASES = st.frozensets(st.text(alphabet="abcde _", min_size=0, max_size=8), max_size=5)

_HIDDEN_RE = re.compile(r"[\u200b-\u200f\u202a-\u202e\u2060-\u2069\ufeff\x00-\x08\x0b\x0c\x0e-\x1f]")

# ---------------------------------------------------------------------------
# Shared settings
# ---------------------------------------------------------------------------

_fuzz_settings = settings(
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)


# ---------------------------------------------------------------------------
# TestFuzzSanitizer
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzSanitizer:
    @_fuzz_settings
    @given(text=GENERAL_TEXT, max_len=st.integers(1, 500))
    @example("x" * 2000, 10)
    def test_respects_max_length(self, text: str, max_len: int) -> None:
        assert len(sanitize_text(text, max_len=max_len)) <= max_len

    @_fuzz_settings
    @given(text=GENERAL_TEXT)
    @example("\u200bToyota\u202e")
    @example("\x00hidden\x1ftext")
    def test_no_hidden_chars(self, text: str) -> None:
        result = sanitize_text(text, max_len=5000)
        assert not _HIDDEN_RE.search(result)
        assert "\n" not in result


# ---------------------------------------------------------------------------
# TestFuzzHeuristics
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzHeuristics:
    @_fuzz_settings
    @given(text=GENERAL_TEXT)
    @example("software platform crm for clinics and patient portal")
    def test_pattern_scores_in_range(self, text: str) -> None:
        scores = score_patterns(text)
        assert set(scores) <= set(PATTERNS)
        assert all(0.0 < s <= 1.0 for s in scores.values())

    @_fuzz_settings
    @given(domain=GENERAL_TEXT)
    @example("mayo-clinic-hospital.org")
    def test_domain_scores_in_range(self, domain: str) -> None:
        assert all(0.0 < s <= 1.0 for s in score_domain(domain).values())

    @_fuzz_settings
    @given(text=GENERAL_TEXT)
    def test_votes_sorted(self, text: str) -> None:
        scores = [v.score for v in vote_patterns(text)]
        assert scores == sorted(scores, reverse=True)


# ---------------------------------------------------------------------------
# TestFuzzDomain
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzDomain:
    @_fuzz_settings
    @given(url=GENERAL_TEXT)
    @example("http://[::1")
    @example("://")
    def test_never_raises(self, url: str) -> None:
        assert isinstance(extract_domain(url), str)

    @_fuzz_settings
    @given(label=DOMAIN_LABEL, path=st.from_regex(r"(/[a-z0-9]{0,10}){0,3}", fullmatch=True))
    def test_www_and_path_removed(self, label: str, path: str) -> None:
        assert extract_domain(f"https://www.{label}.com{path}") == f"{label}.com"


# ---------------------------------------------------------------------------
# TestFuzzPacks
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestFuzzPacks:
    @_fuzz_settings
    @given(graph=PACK_GRAPH, start=PACK_KEYS)
    def test_flatten_terminates_on_any_graph(self, graph, start: str) -> None:
        packs = {k: IntentPack(allow_tags=tuple(tags), inherits=tuple(parents)) for k, (tags, parents) in graph.items()}
        flat = IndustryConfig(packs=packs).get_flattened_pack(start)
        if start not in packs:
            assert flat == FlattenedPack()
        else:
            assert {t.lower() for t in packs[start].allow_tags} <= flat.allow

    @_fuzz_settings
    @given(text=GENERAL_TEXT, allow=PHRASES, deny=PHRASES)
    def test_intent_decision_is_consistent(self, text: str, allow, deny) -> None:
        keep, reason = intent_matches_pack(text, FlattenedPack(allow=allow, deny=deny))
        assert keep == (not (reason.startswith("deny:") or reason == "no_match"))
        if any(p and p in text.lower() for p in deny):
            assert keep is False
