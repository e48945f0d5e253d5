"""Rich console output and markdown file save for debate results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from src.models import USER_SPEAKER_ID, AgentConfig, CouncilMessage, DebateResult, MessageKind, PersonaDefinition

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_SEAT_STYLES = {
    "visionary": "cyan",
    "skeptic": "magenta",
    "moderator": "green",
    USER_SPEAKER_ID: "yellow",
}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _speaker_label(message: CouncilMessage, agents: dict[str, AgentConfig]) -> str:
    agent = agents.get(message.speaker_id)
    if agent is None:
        return "You" if message.speaker_id == USER_SPEAKER_ID else message.speaker_id
    return f"{agent.display_name} ({agent.seat_id})"


def print_message(message: CouncilMessage, agents: dict[str, AgentConfig]) -> None:
    """Print one transcript entry as a panel."""
    style = _SEAT_STYLES.get(message.speaker_id, "white")
    console.print(
        Panel(
            message.content,
            title=f"[bold]{_speaker_label(message, agents)}[/bold]",
            subtitle=message.kind.value,
            border_style=style,
        )
    )


def print_verdict(verdict: str, duration_sec: float, rounds: int) -> None:
    """Print the verdict using Rich markdown."""
    console.print(Rule("[bold green]Cognitive Court Ruling[/bold green]"))
    console.print(Text(f"Duration: {duration_sec:.1f}s | Rounds: {rounds}", style="dim"))
    console.print(Markdown(verdict))


def print_personas(personas: list[PersonaDefinition]) -> None:
    table = Table(title="Persona Catalog")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Style")
    table.add_column("Fields", style="dim")
    table.add_column("Description")
    for p in personas:
        table.add_row(p.id, p.display_name, p.role.value, ", ".join(p.topic_affinity_tags), p.description)
    console.print(table)


def save_to_file(result: DebateResult, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the full debate transcript and verdict as a markdown file.

    Args:
        result: The completed DebateResult.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the topic.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(result.topic)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    agents = {a.seat_id: a for a in result.agents}
    bench = ", ".join(f"{a.display_name} as {a.seat_id} ({a.model_id})" for a in result.agents)
    argument_count = sum(1 for m in result.messages if m.kind is MessageKind.ARGUMENT)

    lines: list[str] = [
        f"# Cognitive Court: {result.topic[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Bench:** {bench}",
        f"**Turns:** {argument_count}",
        f"**Duration:** {result.total_duration_sec:.1f}s",
    ]
    if result.session_id:
        lines.append(f"**Session:** {result.session_id}")
    if result.context:
        lines += ["", "## Context", "", result.context]
    lines += ["", "---", "", "## Transcript", ""]

    for message in result.messages:
        if message.kind is MessageKind.VERDICT and message.content == result.verdict:
            continue
        lines.append(f"### {_speaker_label(message, agents)}")
        lines.append("")
        lines.append(message.content)
        lines.append("")

    lines += ["## Verdict", "", result.verdict, ""]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath
