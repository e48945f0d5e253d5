"""Abstract base for all text completion providers and their conversations."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.models import ConversationTurn


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.status_code = status_code
        super().__init__(f"[{provider_name}] {message}")

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code == 429


class Conversation(ABC):
    """A provider-side chat session. Holds its own turn history."""

    @abstractmethod
    async def send(self, prompt: str) -> str:
        """Send one user turn and return the model's reply text.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...


class TextCompletionProvider(ABC):
    """Abstract base for all completion providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def fallback_model(self) -> str:
        """Return the cheaper model used when an agent exhausts its retries."""
        ...

    @abstractmethod
    async def create_conversation(
        self,
        model_id: str,
        system_instruction: str,
        prior_turns: Sequence[ConversationTurn] = (),
        grounding: bool = False,
    ) -> Conversation:
        """Open a fresh conversation.

        Args:
            model_id: Model identifier to bind the conversation to.
            system_instruction: Persona and rules for the whole conversation.
            prior_turns: Turns to seed the history with.
            grounding: Enable live web lookups where the provider supports it.

        Raises:
            ProviderError: If the conversation cannot be opened.
        """
        ...
