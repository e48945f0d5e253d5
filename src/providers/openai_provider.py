"""OpenAI provider using openai SDK with native async. Also serves OpenRouter via base_url."""

import asyncio
import logging
import os
import time
from collections.abc import Sequence

import openai
from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from src.models import ConversationTurn
from src.providers.base import Conversation, ProviderError, TextCompletionProvider

logger = logging.getLogger(__name__)


class OpenAIConversation(Conversation):
    """Chat-completions conversation. History is kept client-side."""

    def __init__(
        self,
        client: AsyncOpenAI,
        config: ModelConfig,
        model_id: str,
        system_instruction: str,
        prior_turns: Sequence[ConversationTurn],
    ) -> None:
        self._client = client
        self._config = config
        self._model_id = model_id
        self._messages: list[dict[str, str]] = [{"role": "system", "content": system_instruction}]
        for turn in prior_turns:
            role = "assistant" if turn.role == "model" else "user"
            self._messages.append({"role": role, "content": turn.text})

    async def send(self, prompt: str) -> str:
        start = time.monotonic()
        messages = [*self._messages, {"role": "user", "content": prompt}]
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model_id,
                    messages=messages,
                    max_tokens=self._config.max_tokens,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except openai.APIStatusError as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}", status_code=exc.status_code) from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        content = choice.message.content
        # Only a successful exchange becomes part of the history.
        self._messages = [*messages, {"role": "assistant", "content": content}]

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info(
            "OpenAI %s: %.2fs, %s tokens",
            self._model_id,
            time.monotonic() - start,
            token_count,
        )
        return content


class OpenAIProvider(TextCompletionProvider):
    """OpenAI (or OpenAI-compatible) provider via openai SDK.

    Grounding is not available through chat completions and is ignored.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

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
        if grounding:
            logger.debug("Provider %s has no search grounding; continuing without it", self._config.name)
        return OpenAIConversation(self._client, self._config, model_id, system_instruction, prior_turns)
