"""Unit tests for src/healthcheck.py — no real API calls."""

import asyncio
from unittest.mock import AsyncMock

from src.healthcheck import run_health_checks
from src.providers.base import ProviderError
from tests.conftest import MockProvider


async def test_all_models_pass():
    """All models answer -> all marked ok, no errors."""
    provider = MockProvider(response_content="OK")

    results = await run_health_checks(provider, ["mock-pro", "mock-flash"])

    assert results == {"mock-pro": (True, ""), "mock-flash": (True, "")}


async def test_duplicate_models_pinged_once():
    provider = MockProvider(response_content="OK")

    results = await run_health_checks(provider, ["mock-flash", "mock-pro", "mock-flash"])

    assert list(results) == ["mock-flash", "mock-pro"]
    assert provider.responder.await_count == 2


async def test_one_model_fails():
    """A model that raises returns ok=False with the error message."""
    provider = MockProvider()

    async def respond(model_id, prompt):
        if model_id == "mock-pro":
            raise ProviderError("mock", "403 Forbidden")
        return "OK"

    provider.responder = AsyncMock(side_effect=respond)

    results = await run_health_checks(provider, ["mock-pro", "mock-flash"])

    assert results["mock-flash"] == (True, "")
    ok, err = results["mock-pro"]
    assert ok is False
    assert "403" in err


async def test_conversation_open_failure():
    provider = MockProvider()
    provider.create_conversation = AsyncMock(side_effect=ProviderError("mock", "bad key"))

    ok, err = (await run_health_checks(provider, ["mock-pro"]))["mock-pro"]

    assert ok is False
    assert "bad key" in err


async def test_empty_model_list():
    results = await run_health_checks(MockProvider(), [])
    assert results == {}


async def test_timeout_counts_as_failure(monkeypatch):
    """A model that hangs past the timeout is marked as failed."""
    provider = MockProvider()

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    provider.responder = AsyncMock(side_effect=hang)
    monkeypatch.setattr("src.healthcheck._TIMEOUT_SEC", 0.05)

    ok, _ = (await run_health_checks(provider, ["slow"]))["slow"]
    assert ok is False
