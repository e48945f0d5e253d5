"""Provider health checks — ping each seat's model before starting a debate."""

import asyncio
import logging

from src.providers.base import TextCompletionProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


async def _check_one(provider: TextCompletionProvider, model_id: str) -> tuple[str, bool, str]:
    """Ping a single model. Returns (model_id, ok, error_message)."""
    try:
        conversation = await provider.create_conversation(model_id, "You are a health check.")
        await asyncio.wait_for(conversation.send(_PING_PROMPT), timeout=_TIMEOUT_SEC)
        return model_id, True, ""
    except Exception as exc:
        return model_id, False, str(exc)


async def run_health_checks(
    provider: TextCompletionProvider,
    model_ids: list[str],
) -> dict[str, tuple[bool, str]]:
    """Ping all distinct models in parallel.

    Returns:
        Dict mapping model id -> (ok, error_message).
        error_message is "" when ok is True.
    """
    distinct = list(dict.fromkeys(model_ids))
    results = await asyncio.gather(*(_check_one(provider, m) for m in distinct))
    return {model_id: (ok, err) for model_id, ok, err in results}
