"""One persona bound to a completion provider: initialize, then speak with retry and fallback."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime

from src.models import AgentConfig, AgentRole, CouncilMessage
from src.providers.base import Conversation, TextCompletionProvider
from src.retry import RetryPolicy, is_rate_limit_error

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 4

CONCLUSION_SENTINEL = "[CONCLUSION_REACHED]"

_MODERATOR_DIRECTIVE = (
    "Evaluate the arguments. If the topic is thoroughly explored and a clear consensus or "
    f"solution is visible, output ONLY the text '{CONCLUSION_SENTINEL}'. Otherwise, summarize "
    "current points and ask a deepening question."
)
_DEBATER_DIRECTIVE = "Offer your unique perspective or rebut the previous point."


class AgentNotInitialized(RuntimeError):
    """speak() was called before initialize()."""

    def __init__(self, seat_id: str) -> None:
        self.seat_id = seat_id
        super().__init__(f"Agent '{seat_id}' not initialized")


def unreachable_placeholder(display_name: str) -> str:
    return f"*{display_name} is unreachable.*"


def default_directive(role: AgentRole) -> str:
    return _MODERATOR_DIRECTIVE if role is AgentRole.MODERATOR else _DEBATER_DIRECTIVE


def build_system_instruction(config: AgentConfig, shared_context: str, now: datetime | None = None) -> str:
    """Compose the persona's system instruction for a fresh conversation."""
    now = now or datetime.now()
    rules = [
        "- Stick strictly to your persona.",
        "- ANALYZE the provided context above. Your arguments must be grounded in or explicitly "
        "reference this material where relevant.",
        "- Provide sharp, insightful arguments.",
        "- Refer to other agents' points when rebutting.",
        "- Keep responses concise (under 150 words) unless asked for a synthesis.",
    ]
    if config.role is AgentRole.MODERATOR:
        rules.append("- As the Moderator, you must be neutral, objective, and synthesis-focused.")

    return "\n".join([
        f'You are {config.display_name}, acting as the "{config.role.value}" in a Council of AI debate.',
        "",
        "YOUR BIO:",
        config.system_prompt,
        "",
        "CONTEXT OF DEBATE:",
        shared_context,
        "",
        "INSTRUCTIONS:",
        *rules,
        "",
        "GLOBAL PARAMETERS:",
        f"- Current Date: {now.strftime('%Y-%m-%d %H:%M')}",
        "- Knowledge Cutoff: Ignored. Assume your internal training data is stale.",
        '- Search Requirement: You MUST use web search for any query about "current", "latest", or "best".',
    ])


def build_turn_prompt(
    history: Sequence[CouncilMessage],
    topic: str,
    directive: str,
    window: int = HISTORY_WINDOW,
) -> str:
    """Topic, the last ``window`` messages, and the directive. Older turns are dropped."""
    recent = list(history)[-window:] if window > 0 else []
    transcript = "\n".join(f"{m.speaker_id.upper()}: {m.content}" for m in recent)
    return (
        f"CURRENT TOPIC: {topic}\n\n"
        f"RECENT TRANSCRIPT:\n{transcript}\n\n"
        f"DIRECTIVE:\n{directive}"
    )


class Agent:
    """Single point of contact with the completion provider for one seat."""

    def __init__(
        self,
        config: AgentConfig,
        provider: TextCompletionProvider,
        retry_policy: RetryPolicy | None = None,
        history_window: int = HISTORY_WINDOW,
    ) -> None:
        self.config = config
        self._provider = provider
        self._retry = retry_policy or RetryPolicy()
        self._history_window = history_window
        self._conversation: Conversation | None = None

    @property
    def initialized(self) -> bool:
        return self._conversation is not None

    @property
    def unreachable_message(self) -> str:
        return unreachable_placeholder(self.config.display_name)

    def is_unreachable(self, text: str) -> bool:
        return text == self.unreachable_message

    async def initialize(self, shared_context: str = "") -> None:
        """Open a fresh grounded conversation seeded with the composed system instruction.

        Provider errors propagate; the engine treats them as fatal for the debate.
        """
        system_instruction = build_system_instruction(self.config, shared_context)
        self._conversation = await self._provider.create_conversation(
            self.config.model_id,
            system_instruction,
            prior_turns=[],
            grounding=True,
        )
        logger.debug("Agent %s initialized on %s", self.config.seat_id, self.config.model_id)

    def close(self) -> None:
        self._conversation = None

    async def speak(
        self,
        history: Sequence[CouncilMessage],
        topic: str,
        directive: str | None = None,
    ) -> str:
        """Produce this agent's next turn.

        Never raises for provider failures: after the retry budget and the
        fallback model are exhausted, returns the unreachable placeholder.

        Raises:
            AgentNotInitialized: If initialize() has not been called.
        """
        if self._conversation is None:
            raise AgentNotInitialized(self.config.seat_id)

        prompt = build_turn_prompt(
            history,
            topic,
            directive or default_directive(self.config.role),
            window=self._history_window,
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                text = await self._conversation.send(prompt)
                return text or "..."
            except Exception as exc:
                if not self._retry.should_retry(attempt):
                    logger.error(
                        "Agent %s failed after %d retries: %s",
                        self.config.display_name, self._retry.max_retries, exc,
                    )
                    break
                delay = self._retry.delay_for(attempt, exc)
                logger.warning(
                    "Agent %s hit %s (attempt %d/%d), retrying in %.1fs",
                    self.config.display_name,
                    "rate limit" if is_rate_limit_error(exc) else "error",
                    attempt, self._retry.max_attempts, delay,
                )
                await asyncio.sleep(delay)

        return await self._speak_with_fallback(prompt)

    async def _speak_with_fallback(self, prompt: str) -> str:
        fallback_model = self._provider.fallback_model()
        logger.info("Agent %s switching to fallback model %s", self.config.display_name, fallback_model)
        try:
            conversation = await self._provider.create_conversation(
                fallback_model,
                self.config.system_prompt,
                prior_turns=[],
            )
            text = await conversation.send(prompt)
        except Exception as exc:
            logger.error("Fallback failed for agent %s: %s", self.config.display_name, exc)
            return self.unreachable_message
        return f"{text or '...'} *(via backup {fallback_model})*"
