"""Shared pytest fixtures."""

from collections.abc import Sequence
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, CouncilConfig, DefaultsConfig, ModelConfig, ResearchConfig
from src.models import AgentConfig, ConversationTurn, CouncilMessage, MessageKind, SearchResult
from src.personas import MODERATOR_SEAT, SKEPTIC_SEAT, VISIONARY_SEAT, build_agent_config, get_persona
from src.providers.base import Conversation, TextCompletionProvider
from src.retry import RetryPolicy
from src.search import WebSearchProvider


class MockConversation(Conversation):
    """Forwards every send() to the owning provider's ``responder`` AsyncMock."""

    def __init__(self, provider: "MockProvider", model_id: str, system_instruction: str, grounding: bool) -> None:
        self._provider = provider
        self.model_id = model_id
        self.system_instruction = system_instruction
        self.grounding = grounding

    async def send(self, prompt: str) -> str:
        return await self._provider.responder(self.model_id, prompt)


class MockProvider(TextCompletionProvider):
    """Test double TextCompletionProvider.

    ``responder`` is an AsyncMock called as ``responder(model_id, prompt)`` for
    every message sent on any conversation; swap its side_effect to script replies.
    """

    def __init__(
        self,
        provider_name: str = "mock",
        response_content: str = "Mock response",
        fallback: str = "mock-fallback",
    ) -> None:
        self._name = provider_name
        self._fallback = fallback
        self.conversations: list[MockConversation] = []
        self.responder = AsyncMock(return_value=response_content)

    def name(self) -> str:
        return self._name

    def fallback_model(self) -> str:
        return self._fallback

    async def create_conversation(
        self,
        model_id: str,
        system_instruction: str,
        prior_turns: Sequence[ConversationTurn] = (),
        grounding: bool = False,
    ) -> Conversation:
        conversation = MockConversation(self, model_id, system_instruction, grounding)
        self.conversations.append(conversation)
        return conversation

    def prompts(self) -> list[str]:
        return [c.args[1] for c in self.responder.call_args_list]


class MockSearchProvider(WebSearchProvider):
    def __init__(self, results: list[SearchResult] | None = None) -> None:
        self.search = AsyncMock(return_value=results if results is not None else [])  # type: ignore[method-assign]

    async def search(self, query: str) -> list[SearchResult]:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return []


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def fast_council_config() -> CouncilConfig:
    """Round cap and window as in production, no pacing delays."""
    return CouncilConfig(
        max_rounds=2,
        history_window=4,
        pre_turn_delay_sec=0,
        post_turn_delay_sec=0,
        round_pause_sec=0,
        verdict_delay_sec=0,
    )


@pytest.fixture
def fast_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=3, base_delay_sec=0, rate_limit_base_delay_sec=0)


@pytest.fixture
def moderator_config() -> AgentConfig:
    return build_agent_config(MODERATOR_SEAT, get_persona("moderator"), "mock-pro")


@pytest.fixture
def visionary_config() -> AgentConfig:
    return build_agent_config(VISIONARY_SEAT, get_persona("first_principles"), "mock-flash")


@pytest.fixture
def skeptic_config() -> AgentConfig:
    return build_agent_config(SKEPTIC_SEAT, get_persona("empirical_skeptic"), "mock-flash")


@pytest.fixture
def bench(moderator_config, visionary_config, skeptic_config) -> list[AgentConfig]:
    return [moderator_config, skeptic_config, visionary_config]


@pytest.fixture
def sample_search_results() -> list[SearchResult]:
    return [
        SearchResult(
            title="Rust adoption survey",
            link="https://example.com/rust-survey",
            snippet="Rust usage keeps growing among systems programmers.",
            date="2 days ago",
            source="Example News",
        ),
        SearchResult(
            title="Rust benchmarks",
            link="https://example.com/rust-bench",
            snippet="Rust matches C++ on most benchmarks.",
        ),
    ]


def make_message(speaker_id: str, content: str, kind: MessageKind = MessageKind.ARGUMENT, idx: int = 0) -> CouncilMessage:
    return CouncilMessage(
        id=f"m{idx}",
        speaker_id=speaker_id,
        content=content,
        created_at_millis=1_700_000_000_000 + idx,
        kind=kind,
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="gemini",
        model="test-flash",
        moderator_model="test-pro",
        fallback_model="test-lite",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_model_config: ModelConfig) -> AppConfig:
    return AppConfig(
        defaults=DefaultsConfig(
            provider="test_model",
            output_dir=tmp_path / "output",
            sessions_dir=tmp_path / "sessions",
        ),
        models={"test_model": sample_model_config},
        research=ResearchConfig(api_key_env="TEST_SERPAPI_KEY"),
        available_providers={"test_model"},
    )
