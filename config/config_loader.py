"""Load settings.yaml into typed dataclasses. Reports which providers have API keys."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str             # debater seats
    moderator_model: str
    fallback_model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class CouncilConfig:
    max_rounds: int = 2
    history_window: int = 4
    pre_turn_delay_sec: float = 2.0
    post_turn_delay_sec: float = 1.0
    round_pause_sec: float = 2.0
    verdict_delay_sec: float = 2.0


@dataclass
class RetryConfig:
    max_retries: int = 3
    base_delay_sec: float = 1.0
    rate_limit_base_delay_sec: float = 2.0


@dataclass
class ResearchConfig:
    api_key_env: str = "SERPAPI_API_KEY"
    max_results: int = 5
    timeout_sec: int = 20
    queries: list[str] = field(default_factory=list)


@dataclass
class DefaultsConfig:
    provider: str
    output_dir: Path
    sessions_dir: Path


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    council: CouncilConfig = field(default_factory=CouncilConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    research: ResearchConfig = field(default_factory=ResearchConfig)
    available_providers: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs which providers lack API keys but does not raise — callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        provider=str(defaults_raw["provider"]),
        output_dir=Path(defaults_raw["output_dir"]),
        sessions_dir=Path(defaults_raw["sessions_dir"]),
    )

    council_raw = raw.get("council", {})
    council = CouncilConfig(
        max_rounds=int(council_raw.get("max_rounds", 2)),
        history_window=int(council_raw.get("history_window", 4)),
        pre_turn_delay_sec=float(council_raw.get("pre_turn_delay_sec", 2.0)),
        post_turn_delay_sec=float(council_raw.get("post_turn_delay_sec", 1.0)),
        round_pause_sec=float(council_raw.get("round_pause_sec", 2.0)),
        verdict_delay_sec=float(council_raw.get("verdict_delay_sec", 2.0)),
    )

    retry_raw = raw.get("retry", {})
    retry = RetryConfig(
        max_retries=int(retry_raw.get("max_retries", 3)),
        base_delay_sec=float(retry_raw.get("base_delay_sec", 1.0)),
        rate_limit_base_delay_sec=float(retry_raw.get("rate_limit_base_delay_sec", 2.0)),
    )

    research_raw = raw.get("research", {})
    research = ResearchConfig(
        api_key_env=str(research_raw.get("api_key_env", "SERPAPI_API_KEY")),
        max_results=int(research_raw.get("max_results", 5)),
        timeout_sec=int(research_raw.get("timeout_sec", 20)),
        queries=[str(q) for q in research_raw.get("queries", [])],
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            moderator_model=model_raw.get("moderator_model", model_raw["model"]),
            fallback_model=model_raw.get("fallback_model", model_raw["model"]),
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s — set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=models,
        council=council,
        retry=retry,
        research=research,
        available_providers=available_providers,
    )
