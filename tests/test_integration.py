"""Integration tests — real API calls, no mocks. Requires .env with GEMINI_API_KEY."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

load_dotenv()

pytestmark = pytest.mark.integration

if not os.environ.get("GEMINI_API_KEY", "").strip():
    pytestmark = pytest.mark.skip(reason="GEMINI_API_KEY not set")


async def test_full_debate_pipeline(tmp_path: Path):
    """Run a real 1-round debate on the default provider, verify no crash."""
    from config.config_loader import CouncilConfig, load_config
    from src.cli import _build_agent_configs, _build_provider, _build_search_provider
    from src.engine import DebateEngine
    from src.models import DebateResult, MessageKind, Phase
    from src.output import save_to_file
    from src.personas import default_seats
    from src.research import ResearchAggregator
    from src.retry import RetryPolicy

    config = load_config()
    provider = _build_provider(config, "gemini")
    search = _build_search_provider(config, enabled=True)
    agent_configs = _build_agent_configs(default_seats(), "moderator", config.models["gemini"])

    engine = DebateEngine(
        provider,
        research=ResearchAggregator(search, config.research.queries),
        config=CouncilConfig(max_rounds=1, pre_turn_delay_sec=0, post_turn_delay_sec=0, round_pause_sec=0),
        retry_policy=RetryPolicy.from_config(config.retry),
    )
    for agent_config in agent_configs:
        engine.add_agent(agent_config)

    await engine.start_debate("Should a Python developer learn Rust in 2025?", "Backend engineer, 5 years.")
    verdict = await engine.run()

    assert engine.status.phase is Phase.CONCLUDED
    assert verdict, "Verdict is empty"
    arguments = [m for m in engine.messages if m.kind is MessageKind.ARGUMENT]
    assert len(arguments) == 2
    for message in arguments:
        assert message.content, f"Empty content from {message.speaker_id}"

    result = DebateResult(
        topic=engine.topic,
        context=engine.user_context,
        agents=agent_configs,
        messages=list(engine.messages),
        verdict=verdict,
        total_duration_sec=1.0,
    )
    saved = save_to_file(result, tmp_path / "output")
    content = saved.read_text(encoding="utf-8")
    assert "Cognitive Court" in content
    assert "**Bench:**" in content
    assert len(content) > 500
