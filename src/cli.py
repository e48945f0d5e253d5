"""Click CLI — loads config, staffs the bench, runs the debate, prints and saves the verdict."""

import asyncio
import logging
import random
import sys
import time
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, ModelConfig, load_config
from src.engine import DebateEngine, InitializationFailure, VerdictUnavailable
from src.healthcheck import run_health_checks
from src.models import AgentConfig, CouncilMessage, DebateResult, UserProfile
from src.output import console, print_message, print_personas, print_verdict, save_to_file
from src.personas import (
    MODERATOR_PERSONA_ID,
    MODERATOR_SEAT,
    SKEPTIC_SEAT,
    VISIONARY_SEAT,
    SeatAssignment,
    auto_staff,
    build_agent_config,
    default_seats,
    get_persona,
    list_personas,
    randomize,
)
from src.providers.anthropic import AnthropicProvider
from src.providers.base import ProviderError, TextCompletionProvider
from src.providers.gemini import GeminiProvider
from src.providers.openai_provider import OpenAIProvider
from src.research import ResearchAggregator
from src.retry import RetryPolicy
from src.search import SearchError, SerpApiSearchProvider, WebSearchProvider
from src.store import JsonSessionStore, save_session_safely

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[TextCompletionProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

_VERDICT_ATTEMPTS = 2


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_provider(config: AppConfig, provider_name: str) -> TextCompletionProvider:
    """Instantiate the named provider.

    Raises:
        KeyError: Unknown provider name or SDK.
        ProviderError: Missing API key.
    """
    if provider_name not in config.models:
        raise KeyError(f"Unknown provider '{provider_name}'. Choose from: {', '.join(config.models)}")
    model_cfg = config.models[provider_name]
    if model_cfg.sdk not in PROVIDER_CLASSES:
        raise KeyError(f"Provider '{provider_name}' uses unsupported sdk '{model_cfg.sdk}'")
    return PROVIDER_CLASSES[model_cfg.sdk](model_cfg)


def _build_search_provider(config: AppConfig, enabled: bool) -> WebSearchProvider | None:
    if not enabled:
        return None
    try:
        return SerpApiSearchProvider(config.research)
    except SearchError as exc:
        logger.warning("Research disabled: %s", exc)
        return None


def _parse_subjects(subjects: str | None) -> list[str]:
    if not subjects:
        return []
    return [s.strip() for s in subjects.split(",") if s.strip()]


def _select_seats(
    visionary_id: str | None,
    skeptic_id: str | None,
    subjects: list[str],
    use_random: bool,
    rng: random.Random | None = None,
    moderator_id: str = MODERATOR_PERSONA_ID,
) -> SeatAssignment:
    """Staff the adversarial seats. Explicit ids > --random > subject matching > defaults.

    Raises:
        KeyError: Unknown persona id.
        ValueError: Both seats resolve to the same persona, or either one is
            the moderator's persona.
    """
    if use_random:
        base = randomize(rng)
    elif subjects:
        base = auto_staff(subjects)
    else:
        base = default_seats()

    visionary = get_persona(visionary_id) if visionary_id else base.visionary
    skeptic = get_persona(skeptic_id) if skeptic_id else base.skeptic

    if visionary.id == skeptic.id:
        if skeptic_id and not visionary_id:
            visionary = base.skeptic if base.skeptic.id != skeptic.id else base.visionary
        elif visionary_id and not skeptic_id:
            skeptic = base.visionary if base.visionary.id != visionary.id else base.skeptic
    if visionary.id == skeptic.id:
        raise ValueError(f"Visionary and skeptic must be different personas, both are '{visionary.id}'")
    if MODERATOR_PERSONA_ID in (visionary.id, skeptic.id):
        raise ValueError("The moderator persona cannot take an adversarial seat")
    if moderator_id in (visionary.id, skeptic.id):
        raise ValueError(f"Persona '{moderator_id}' already moderates and cannot also argue a side")
    return SeatAssignment(visionary=visionary, skeptic=skeptic)


def _build_agent_configs(seats: SeatAssignment, moderator_id: str, model_cfg: ModelConfig) -> list[AgentConfig]:
    return [
        build_agent_config(MODERATOR_SEAT, get_persona(moderator_id), model_cfg.moderator_model),
        build_agent_config(SKEPTIC_SEAT, seats.skeptic, model_cfg.model),
        build_agent_config(VISIONARY_SEAT, seats.visionary, model_cfg.model),
    ]


def _check_models(provider: TextCompletionProvider, model_ids: list[str]) -> None:
    """Ping the seats' models. Exits if none respond; asks to continue if some fail."""
    console.print("\n[bold]Checking models...[/bold]")
    results = asyncio.run(run_health_checks(provider, model_ids))

    failed: list[str] = []
    for model_id in sorted(results):
        ok, err = results[model_id]
        if ok:
            console.print(f"  [green]OK  [/green] {model_id}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {model_id}: {short_err}")
            failed.append(model_id)

    if not failed:
        console.print()
        return

    if len(failed) == len(results):
        console.print("\n[bold red]Error:[/bold red] No model passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed)} model(s) failed:[/yellow] {', '.join(failed)}")
    if not click.confirm("Continue? Failing seats will use the fallback model.", default=True):
        sys.exit(0)
    console.print()


async def _generate_verdict_with_retry(engine: DebateEngine) -> str | None:
    for attempt in range(1, _VERDICT_ATTEMPTS + 1):
        try:
            return await engine.generate_verdict()
        except VerdictUnavailable as exc:
            logger.warning("Verdict attempt %d/%d failed: %s", attempt, _VERDICT_ATTEMPTS, exc)
    return None


async def _run_single(
    topic: str,
    context: str,
    profile: UserProfile | None,
    agent_configs: list[AgentConfig],
    provider: TextCompletionProvider,
    search: WebSearchProvider | None,
    config: AppConfig,
    output_dir: Path,
) -> Path | None:
    """Run one debate end to end. Returns the saved report path, or None without a verdict."""
    engine = DebateEngine(
        provider,
        research=ResearchAggregator(search, config.research.queries),
        config=config.council,
        retry_policy=RetryPolicy.from_config(config.retry),
    )
    for agent_config in agent_configs:
        engine.add_agent(agent_config)
    agents = {a.seat_id: a for a in agent_configs}

    bench = ", ".join(f"{a.display_name} ({a.seat_id})" for a in agent_configs)
    console.print(f"\n[bold cyan]Cognitive Court[/bold cyan] — {config.council.max_rounds} rounds")
    console.print(f"Bench: {bench}")
    console.print(f"Topic: [italic]{topic[:80]}{'...' if len(topic) > 80 else ''}[/italic]\n")

    debate_start = time.monotonic()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Researching and seating the council...", total=None)
        await engine.start_debate(topic, context, profile)
        for message in engine.messages:
            print_message(message, agents)

        def on_message(message: CouncilMessage) -> None:
            if message.speaker_id != MODERATOR_SEAT:
                print_message(message, agents)
            progress.update(task, description=f"Round {engine.status.round_number} in session...")

        progress.update(task, description=f"Round {engine.status.round_number} in session...")
        try:
            verdict = await engine.run(on_message=on_message)
        except VerdictUnavailable as exc:
            logger.warning("Verdict failed: %s", exc)
            verdict = None
        if verdict is None:
            progress.update(task, description="Deliberating verdict...")
            verdict = await _generate_verdict_with_retry(engine)

    duration = time.monotonic() - debate_start
    store = JsonSessionStore(config.defaults.sessions_dir)
    session_id = save_session_safely(store, topic, context, agent_configs, list(engine.messages))
    engine.close()

    if verdict is None:
        console.print("[bold red]Error:[/bold red] The moderator could not produce a verdict.")
        return None

    print_verdict(verdict, duration, engine.completed_rounds)

    result = DebateResult(
        topic=topic,
        context=context,
        agents=agent_configs,
        messages=list(engine.messages),
        verdict=verdict,
        total_duration_sec=duration,
        session_id=session_id,
    )
    saved_path = save_to_file(result, output_dir)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


@click.command()
@click.argument("question", required=False)
@click.option("--file", "question_file", type=click.Path(exists=True), help="Read the topic from a text/.md file")
@click.option("--context", default="", help="Extra context for the council (your situation, constraints)")
@click.option("--visionary", "visionary_id", default=None, help="Persona id for the visionary seat")
@click.option("--skeptic", "skeptic_id", default=None, help="Persona id for the skeptic seat")
@click.option("--moderator", "moderator_id", default=MODERATOR_PERSONA_ID, show_default=True,
              help="Persona id for the moderator seat")
@click.option("--subjects", default=None, help="Comma-separated interests; auto-staffs the bench to match")
@click.option("--random", "use_random", is_flag=True, help="Pick two distinct personas at random")
@click.option("--bio", default="", help="Your background, used to tailor the verdict")
@click.option("--mode", default="Learn", show_default=True, help="Profile mode passed to the verdict")
@click.option("--provider", "provider_name", default=None, help="Completion provider (default: from config)")
@click.option("--no-research", is_flag=True, help="Skip the live web research brief")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False, help="Skip the model connectivity check")
@click.option("--list-personas", "show_personas", is_flag=True, help="Show the persona catalog and exit")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    question: str | None,
    question_file: str | None,
    context: str,
    visionary_id: str | None,
    skeptic_id: str | None,
    moderator_id: str,
    subjects: str | None,
    use_random: bool,
    bio: str,
    mode: str,
    provider_name: str | None,
    no_research: bool,
    output_path: str | None,
    skip_health_check: bool,
    show_personas: bool,
    verbose: bool,
) -> None:
    """Cognitive Court -- a visionary and a skeptic argue, a moderator rules.

    \b
    Examples:
      python -m src.cli "Should I learn Rust?"
      python -m src.cli "Should I learn Rust?" --subjects "Computer Science,Mathematics"
      python -m src.cli "Monorepo or polyrepo?" --visionary engineering_scale --skeptic kernel_reality
      python -m src.cli --file topic.md --random --no-research
      python -m src.cli --list-personas
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    if show_personas:
        print_personas(list_personas())
        return

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    if question_file:
        topic = Path(question_file).read_text(encoding="utf-8").strip()
    elif question:
        topic = question
    else:
        console.print("[bold red]Error:[/bold red] Provide a QUESTION argument or --file.")
        sys.exit(1)

    effective_provider = provider_name or config.defaults.provider
    effective_output = Path(output_path) if output_path else config.defaults.output_dir
    subject_list = _parse_subjects(subjects)

    try:
        provider = _build_provider(config, effective_provider)
        seats = _select_seats(visionary_id, skeptic_id, subject_list, use_random, moderator_id=moderator_id)
        agent_configs = _build_agent_configs(seats, moderator_id, config.models[effective_provider])
    except (KeyError, ValueError, ProviderError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    if not skip_health_check:
        _check_models(provider, [a.model_id for a in agent_configs])

    profile = UserProfile(subjects=subject_list, bio=bio, mode=mode) if (subject_list or bio) else None
    search = _build_search_provider(config, enabled=not no_research)

    try:
        saved = asyncio.run(
            _run_single(
                topic=topic,
                context=context,
                profile=profile,
                agent_configs=agent_configs,
                provider=provider,
                search=search,
                config=config,
                output_dir=effective_output,
            )
        )
    except InitializationFailure as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    if saved is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
