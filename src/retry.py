"""Retry policy for agent turns: attempt budget, backoff schedule, error classification."""

from dataclasses import dataclass

from config.config_loader import RetryConfig
from src.providers.base import ProviderError

_RATE_LIMIT_MARKERS = ("429", "rate limit", "rate_limit", "resource_exhausted", "quota")


def is_rate_limit_error(exc: BaseException) -> bool:
    """True for quota / rate-limit failures, which back off longer than generic errors."""
    if isinstance(exc, ProviderError) and exc.is_rate_limit:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff schedule for one speak() call.

    ``max_retries`` counts retries after the first attempt, so the call makes
    at most ``max_retries + 1`` attempts before the fallback model is tried.
    Delays double per retry: 1s, 2s, 4s for generic errors and 2s, 4s, 8s
    for rate limits with the default bases.
    """

    max_retries: int = 3
    base_delay_sec: float = 1.0
    rate_limit_base_delay_sec: float = 2.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_delay_sec=config.base_delay_sec,
            rate_limit_base_delay_sec=config.rate_limit_base_delay_sec,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt follows failed attempt number ``attempt`` (1-indexed)."""
        return attempt <= self.max_retries

    def delay_for(self, attempt: int, exc: BaseException) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-indexed)."""
        base = self.rate_limit_base_delay_sec if is_rate_limit_error(exc) else self.base_delay_sec
        return base * (2 ** (attempt - 1))
