# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import industrylock  # noqa: F401
except ImportError:
    raise ImportError("industrylock is not installed. Run: pip install -e '.[dev]'") from None

import httpx
import pytest

from industrylock.classifier import IndustryClassifier
from industrylock.kv_store import InMemoryKVStore
from industrylock.resolver import IndustryResolver
from industrylock.rule_store import IndustryConfig


def _not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, text="not found")


@pytest.fixture
def config() -> IndustryConfig:
    """Fresh compiled-in config per test (write-backs mutate it)."""
    return IndustryConfig.default()


@pytest.fixture
def kv_store() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
async def offline_http():
    """HTTP client whose every request gets a 404, like a bot-walled homepage."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(_not_found))
    yield client
    await client.aclose()


@pytest.fixture
def classifier(offline_http) -> IndustryClassifier:
    return IndustryClassifier(client=offline_http)


@pytest.fixture
def resolver(config, classifier, kv_store) -> IndustryResolver:
    return IndustryResolver(config, classifier=classifier, kv_store=kv_store)
