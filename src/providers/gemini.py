"""Gemini provider using google-genai SDK async chats, with Google Search grounding."""

import asyncio
import logging
import os
import time
from collections.abc import Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from src.models import ConversationTurn
from src.providers.base import Conversation, ProviderError, TextCompletionProvider

logger = logging.getLogger(__name__)


class GeminiConversation(Conversation):
    """One google-genai AsyncChat. The SDK keeps the turn history."""

    def __init__(self, chat, config: ModelConfig, model_id: str) -> None:
        self._chat = chat
        self._config = config
        self._model_id = model_id

    async def send(self, prompt: str) -> str:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._chat.send_message(prompt),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except genai_errors.APIError as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}", status_code=exc.code) from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info(
            "Gemini %s: %.2fs, %s tokens",
            self._model_id,
            time.monotonic() - start,
            token_count,
        )
        return response.text


class GeminiProvider(TextCompletionProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

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
        tools = [genai_types.Tool(google_search=genai_types.GoogleSearch())] if grounding else None
        history = [
            genai_types.Content(role=turn.role, parts=[genai_types.Part(text=turn.text)])
            for turn in prior_turns
        ]
        try:
            chat = self._client.aio.chats.create(
                model=model_id,
                config=genai_types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    max_output_tokens=self._config.max_tokens,
                    tools=tools,
                ),
                history=history,
            )
        except Exception as exc:
            raise ProviderError(self._config.name, f"Could not open chat: {exc}") from exc
        return GeminiConversation(chat, self._config, model_id)
