"""Unit tests for provider conversations with stubbed SDK clients — no real API calls."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models import ConversationTurn
from src.providers.anthropic import AnthropicConversation
from src.providers.base import ProviderError
from src.providers.gemini import GeminiConversation
from src.providers.openai_provider import OpenAIConversation, OpenAIProvider


def _openai_response(text: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(total_tokens=12),
    )


def _anthropic_response(text: str):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=5, output_tokens=7),
    )


async def test_gemini_conversation_returns_text(sample_model_config):
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=SimpleNamespace(text="Rust it is.", usage_metadata=None))

    conv = GeminiConversation(chat, sample_model_config, "test-flash")

    assert await conv.send("Should I learn Rust?") == "Rust it is."
    chat.send_message.assert_awaited_once_with("Should I learn Rust?")


async def test_gemini_conversation_empty_text(sample_model_config):
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=SimpleNamespace(text=None, usage_metadata=None))

    with pytest.raises(ProviderError, match="Empty response"):
        await GeminiConversation(chat, sample_model_config, "test-flash").send("hi")


async def test_gemini_conversation_wraps_errors(sample_model_config):
    chat = MagicMock()
    chat.send_message = AsyncMock(side_effect=ConnectionError("reset"))

    with pytest.raises(ProviderError, match="reset"):
        await GeminiConversation(chat, sample_model_config, "test-flash").send("hi")


async def test_openai_conversation_keeps_history(sample_model_config):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[_openai_response("one"), _openai_response("two")])
    conv = OpenAIConversation(
        client, sample_model_config, "test-flash", "SYSTEM", [ConversationTurn("user", "hi"), ConversationTurn("model", "hello")]
    )

    assert await conv.send("first") == "one"
    assert await conv.send("second") == "two"

    messages = client.chat.completions.create.await_args.kwargs["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user", "assistant", "user"]
    assert messages[0]["content"] == "SYSTEM"
    assert messages[-1]["content"] == "second"


async def test_openai_failed_send_not_added_to_history(sample_model_config):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[RuntimeError("boom"), _openai_response("ok")])
    conv = OpenAIConversation(client, sample_model_config, "test-flash", "SYSTEM", [])

    with pytest.raises(ProviderError):
        await conv.send("lost")
    await conv.send("kept")

    messages = client.chat.completions.create.await_args.kwargs["messages"]
    assert [m["content"] for m in messages] == ["SYSTEM", "kept"]


async def test_openai_empty_content(sample_model_config):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_openai_response(""))

    with pytest.raises(ProviderError, match="Empty response"):
        await OpenAIConversation(client, sample_model_config, "m", "S", []).send("hi")


async def test_anthropic_conversation_uses_system_param(sample_model_config):
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=_anthropic_response("Answer."))
    conv = AnthropicConversation(client, sample_model_config, "claude-x", "SYSTEM", [])

    assert await conv.send("Q?") == "Answer."

    kwargs = client.messages.create.await_args.kwargs
    assert kwargs["system"] == "SYSTEM"
    assert kwargs["messages"] == [{"role": "user", "content": "Q?"}]


async def test_anthropic_no_text_blocks(sample_model_config):
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="tool_use")], usage=None)
    )

    with pytest.raises(ProviderError, match="No text blocks"):
        await AnthropicConversation(client, sample_model_config, "claude-x", "S", []).send("hi")


def test_openai_provider_missing_key(sample_model_config, monkeypatch):
    monkeypatch.delenv("TEST_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="Missing API key"):
        OpenAIProvider(sample_model_config)


async def test_openai_provider_fallback_and_conversation(sample_model_config, monkeypatch):
    monkeypatch.setenv("TEST_API_KEY", "sk-test")
    provider = OpenAIProvider(sample_model_config)

    assert provider.name() == "test_model"
    assert provider.fallback_model() == "test-lite"
    conv = await provider.create_conversation("test-flash", "SYSTEM", grounding=True)
    assert isinstance(conv, OpenAIConversation)
