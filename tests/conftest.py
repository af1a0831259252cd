"""
Pytest configuration and shared fixtures for ReelScout tests.

Nothing here touches the network: the catalog is the built-in mock dataset,
the OpenAI client is a recording fake, and the cache runs on a manual clock.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import openai
import pytest

from reelscout.services.cache import RecommendationCache
from reelscout.services.generation import OpenAIBackend
from reelscout.services.mock_catalog import MockCatalogClient
from reelscout.services.recommender import Recommender


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "TMDB_API_KEY",
        "TMDB_MOCK",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "RECOMMENDATIONS_CACHE_TTL_SECONDS",
        "API_LOG_OPENAI",
    ):
        monkeypatch.delenv(name, raising=False)


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def status_error(error_type, status: int):
    """Build an openai status error the way the SDK raises it."""
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return error_type(f"Error code: {status}", response=response, body=None)


class FakeOpenAI:
    """Stands in for ``openai.OpenAI``; answers every completion with ``content``."""

    def __init__(self, content: str = "", error: Optional[Exception] = None) -> None:
        self.content = content
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def suggestions(*entries: Dict[str, Any]) -> str:
    return json.dumps({"recommendations": list(entries)})


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def catalog() -> MockCatalogClient:
    return MockCatalogClient()


@pytest.fixture
def cache(clock) -> RecommendationCache:
    return RecommendationCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI(
        suggestions(
            {"title": "Inception", "year": "2010", "reason": "Reality-bending heist."},
            {"title": "Dark City", "year": "1998", "reason": "Same noir simulation mood."},
        )
    )


@pytest.fixture
def backend(fake_openai) -> OpenAIBackend:
    return OpenAIBackend(api_key="sk-test", client=fake_openai)


@pytest.fixture
def recommender(catalog, backend, cache) -> Recommender:
    return Recommender(catalog=catalog, backend=backend, cache=cache)


@pytest.fixture
def auth_error():
    return status_error(openai.AuthenticationError, 401)


@pytest.fixture
def make_openai():
    return FakeOpenAI


@pytest.fixture
def make_status_error():
    return status_error


@pytest.fixture
def make_suggestions():
    return suggestions
