# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for industrylock.settings — defaults and INDUSTRY_* overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from industrylock.settings import (
    CLASSIFIER_TIMEOUT_S,
    FETCH_TIMEOUT_MS,
    MIN_AI_CONFIDENCE,
    ClassifierSettings,
    ResolverSettings,
    ServiceSettings,
)

_ENV = (
    "INDUSTRY_AI_CLASSIFY",
    "INDUSTRY_MIN_AI_CONFIDENCE",
    "INDUSTRY_HIGH_CONFIDENCE",
    "INDUSTRY_CLASSIFIER_TIMEOUT",
    "INDUSTRY_FETCH_TIMEOUT_MS",
    "INDUSTRY_KV_PATH",
    "INDUSTRY_LOG_JSON",
    "INDUSTRY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


class TestResolverSettings:
    def test_defaults(self):
        s = ResolverSettings.from_env()
        assert s == ResolverSettings()
        assert s.ai_classify_enabled is True
        assert s.min_ai_confidence == MIN_AI_CONFIDENCE
        assert s.classifier_timeout == CLASSIFIER_TIMEOUT_S

    @pytest.mark.parametrize("raw", ["false", "0", "NO", " off "])
    def test_kill_switch(self, monkeypatch, raw):
        monkeypatch.setenv("INDUSTRY_AI_CLASSIFY", raw)
        assert ResolverSettings.from_env().ai_classify_enabled is False

    def test_kill_switch_truthy(self, monkeypatch):
        monkeypatch.setenv("INDUSTRY_AI_CLASSIFY", "yes")
        assert ResolverSettings.from_env().ai_classify_enabled is True

    def test_float_overrides(self, monkeypatch):
        monkeypatch.setenv("INDUSTRY_MIN_AI_CONFIDENCE", "0.5")
        monkeypatch.setenv("INDUSTRY_CLASSIFIER_TIMEOUT", "2.5")
        s = ResolverSettings.from_env()
        assert s.min_ai_confidence == 0.5
        assert s.classifier_timeout == 2.5

    def test_invalid_float_keeps_default(self, monkeypatch):
        monkeypatch.setenv("INDUSTRY_HIGH_CONFIDENCE", "very")
        assert ResolverSettings.from_env().high_confidence == ResolverSettings().high_confidence

    def test_frozen(self):
        with pytest.raises(AttributeError):
            ResolverSettings().min_ai_confidence = 0.1  # type: ignore[misc]


class TestClassifierSettings:
    def test_default_timeout(self):
        assert ClassifierSettings.from_env().fetch_timeout_ms == FETCH_TIMEOUT_MS

    def test_timeout_override(self, monkeypatch):
        monkeypatch.setenv("INDUSTRY_FETCH_TIMEOUT_MS", "1500")
        assert ClassifierSettings.from_env().fetch_timeout_ms == 1500

    def test_invalid_int_keeps_default(self, monkeypatch):
        monkeypatch.setenv("INDUSTRY_FETCH_TIMEOUT_MS", "1.5s")
        assert ClassifierSettings.from_env().fetch_timeout_ms == FETCH_TIMEOUT_MS

    def test_weights_sum_to_one(self):
        s = ClassifierSettings()
        assert s.pattern_weight + s.domain_weight + s.reserved_weight == pytest.approx(1.0)


class TestServiceSettings:
    def test_defaults(self):
        s = ServiceSettings.from_env()
        assert s.kv_path is None
        assert s.log_json is False
        assert s.log_level == "INFO"

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("INDUSTRY_KV_PATH", str(tmp_path / "kv.db"))
        monkeypatch.setenv("INDUSTRY_LOG_JSON", "1")
        monkeypatch.setenv("INDUSTRY_LOG_LEVEL", "debug")
        s = ServiceSettings.from_env()
        assert s.kv_path == Path(tmp_path / "kv.db")
        assert s.log_json is True
        assert s.log_level == "debug"
