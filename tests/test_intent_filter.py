# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for industrylock.intent_filter — deny veto and the allow tiers."""

from __future__ import annotations

import pytest

from industrylock import IntentPack
from industrylock.intent_filter import Intent, filter_intents, intent_matches_pack
from industrylock.rule_store import FlattenedPack, IndustryConfig

TOYOTA_INTENTS = [
    "What is the return policy for Toyota parts?",
    "How much does a 2024 Toyota RAV4 cost?",
    "Free shipping options for Toyota accessories",
    "Find Toyota dealers near me",
    "Toyota gift card balance",
    "Toyota RAV4 safety ratings from IIHS",
    "Toyota Tacoma towing capacity",
    "Add Toyota parts to cart",
]

RETAIL_PHRASES = ("return policy", "shipping", "gift card", "promo code", "cart", "checkout")


def _pack(allow=(), deny=()) -> FlattenedPack:
    return FlattenedPack(allow=frozenset(allow), deny=frozenset(deny))


class TestToyotaScenario:
    def test_exact_survivors(self, config):
        kept = filter_intents(TOYOTA_INTENTS, "automotive_oem", config)
        assert kept == [
            "How much does a 2024 Toyota RAV4 cost?",
            "Find Toyota dealers near me",
            "Toyota RAV4 safety ratings from IIHS",
            "Toyota Tacoma towing capacity",
        ]

    def test_no_retail_phrase_survives(self, config):
        kept = filter_intents(TOYOTA_INTENTS, "automotive_oem", config)
        for intent in kept:
            for phrase in RETAIL_PHRASES:
                assert phrase not in intent.lower()

    def test_slug_gives_same_result(self, config):
        assert filter_intents(TOYOTA_INTENTS, "automotive.oem", config) == filter_intents(
            TOYOTA_INTENTS, "automotive_oem", config
        )

    def test_reasons(self, config):
        pack = config.get_flattened_pack("automotive_oem")
        reasons = [intent_matches_pack(i, pack)[1] for i in TOYOTA_INTENTS]
        assert reasons == [
            "deny:return policy",
            "synonym:msrp",
            "deny:free shipping",
            "keyword:dealer",
            "deny:gift card",
            "allow:safety",
            "allow:towing",
            "deny:cart",
        ]


class TestDeny:
    def test_deny_beats_allow(self):
        keep, reason = intent_matches_pack("MSRP with free shipping", _pack(allow={"msrp"}, deny={"shipping"}))
        assert keep is False
        assert reason == "deny:shipping"

    def test_deny_case_insensitive(self):
        assert intent_matches_pack("CHECKOUT now", _pack(deny={"checkout"}))[0] is False

    def test_deny_applies_to_unrestricted_pack(self):
        assert intent_matches_pack("use a coupon", _pack(deny={"coupon"}))[0] is False


class TestAllowTiers:
    def test_unrestricted(self):
        assert intent_matches_pack("anything at all", _pack()) == (True, "unrestricted")

    def test_underscore_tag_matches_phrase(self):
        assert intent_matches_pack("Toyota build and price tool", _pack(allow={"build_and_price"})) == (
            True,
            "allow:build_and_price",
        )

    def test_keyword_token_of_multi_word_tag(self):
        keep, reason = intent_matches_pack("nearest dealer", _pack(allow={"dealer_locator"}))
        assert keep is True
        assert reason == "keyword:dealer"

    def test_short_tokens_ignored(self):
        # "and" is below the keyword length floor
        assert intent_matches_pack("salt and pepper", _pack(allow={"build_and_price"}))[0] is False

    def test_single_word_tag_has_no_keyword_tier(self):
        assert intent_matches_pack("warranties", _pack(allow={"warranty"}))[0] is False

    @pytest.mark.parametrize(
        ("text", "tag"),
        [
            ("What does it cost?", "pricing"),
            ("RAV4 price", "msrp"),
            ("dealers near me", "dealer_locator"),
            ("NHTSA crash test results", "safety"),
            ("Tacoma horsepower", "specs"),
            ("customer rating", "reviews"),
            ("is it in stock", "availability"),
            ("RAV4 vs CR-V", "comparison"),
        ],
    )
    def test_synonyms(self, text, tag):
        keep, reason = intent_matches_pack(text, _pack(allow={tag}))
        assert keep is True
        assert reason in {f"synonym:{tag}", f"keyword:{tag.split('_')[0]}"}

    def test_synonym_needs_word_start(self):
        assert intent_matches_pack("best tvs", _pack(allow={"comparison"})) == (False, "no_match")

    def test_intent_tags(self):
        intent = Intent("What do customers say?", tags=frozenset({"reviews"}))
        assert intent_matches_pack(intent, _pack(allow={"reviews", "pricing"})) == (True, "tag:reviews")

    def test_intent_tags_case_insensitive(self):
        intent = Intent("What do customers say?", tags=frozenset({"Reviews"}))
        assert intent_matches_pack(intent, _pack(allow={"reviews"}))[0] is True

    def test_no_match(self):
        assert intent_matches_pack("What do customers say?", _pack(allow={"reviews"})) == (False, "no_match")


class TestFilterIntents:
    def test_order_and_identity_preserved(self, config):
        intents = [Intent("b towing"), Intent("a safety"), Intent("c coupon")]
        kept = filter_intents(intents, "automotive_oem", config)
        assert kept == intents[:2]
        assert kept[0] is intents[0]

    def test_unknown_industry_is_unrestricted(self, config):
        assert filter_intents(["x", "y"], "space_tourism", config) == ["x", "y"]

    def test_empty_allow_list_is_unrestricted(self, config):
        assert filter_intents(["anything"], "generic_consumer", config) == ["anything"]

    def test_inherited_allow_tags(self, config):
        # "vehicles" comes from the parent automotive pack
        assert filter_intents(["Toyota hybrid vehicles"], "automotive_oem", config) == ["Toyota hybrid vehicles"]

    def test_inherited_deny_phrases(self, config):
        assert filter_intents(["promo code for telehealth"], "healthcare_provider", config) == []

    def test_empty_input(self, config):
        assert filter_intents([], "automotive_oem", config) == []

    def test_custom_config(self):
        config = IndustryConfig(
            packs={
                "base": IntentPack(deny_phrases=("recipe",)),
                "bakery": IntentPack(allow_tags=("bread",), inherits=("base",)),
            }
        )
        assert filter_intents(["sourdough bread", "bread recipe", "cakes"], "bakery", config) == ["sourdough bread"]
