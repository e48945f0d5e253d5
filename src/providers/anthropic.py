"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time
from collections.abc import Sequence

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from src.models import ConversationTurn
from src.providers.base import Conversation, ProviderError, TextCompletionProvider

logger = logging.getLogger(__name__)


class AnthropicConversation(Conversation):
    """Messages-API conversation. History is kept client-side."""

    def __init__(
        self,
        client: anthropic_sdk.AsyncAnthropic,
        config: ModelConfig,
        model_id: str,
        system_instruction: str,
        prior_turns: Sequence[ConversationTurn],
    ) -> None:
        self._client = client
        self._config = config
        self._model_id = model_id
        self._system = system_instruction
        self._messages: list[dict[str, str]] = [
            {"role": "assistant" if t.role == "model" else "user", "content": t.text}
            for t in prior_turns
        ]

    async def send(self, prompt: str) -> str:
        start = time.monotonic()
        messages = [*self._messages, {"role": "user", "content": prompt}]
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self._model_id,
                    max_tokens=self._config.max_tokens,
                    system=self._system,
                    messages=messages,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except anthropic_sdk.APIStatusError as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}", status_code=exc.status_code) from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        if not response.content:
            raise ProviderError(self._config.name, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        content = "\n".join(text_blocks)
        self._messages = [*messages, {"role": "assistant", "content": content}]

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info(
            "Anthropic %s: %.2fs, %s tokens",
            self._model_id,
            time.monotonic() - start,
            token_count,
        )
        return content


class AnthropicProvider(TextCompletionProvider):
    """Anthropic Claude provider via anthropic SDK. Grounding is ignored."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def fallback_model(self) -> str:
        return self._config.fallback_model

    async def create_conversation(
        self,
        model_id: str,
        system_instruction: str,
        prior_turns: Sequence[ConversationTurn] = (),
        grounding: bool = False,
    ) -> Conversation:
        return AnthropicConversation(self._client, self._config, model_id, system_instruction, prior_turns)
