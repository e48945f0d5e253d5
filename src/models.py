"""Pure dataclasses and enums for the Council debate engine. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum


class AgentRole(str, Enum):
    MODERATOR = "moderator"
    VISIONARY = "visionary"
    SKEPTIC = "skeptic"
    REALIST = "realist"


class Phase(str, Enum):
    OPENING = "opening"
    DEBATE = "debate"
    SYNTHESIS = "synthesis"
    CONCLUDED = "concluded"


class MessageKind(str, Enum):
    QUERY = "query"
    ARGUMENT = "argument"
    REBUTTAL = "rebuttal"
    SYNTHESIS = "synthesis"
    VERDICT = "verdict"


USER_SPEAKER_ID = "user"


@dataclass(frozen=True)
class PersonaDefinition:
    id: str
    display_name: str
    role: AgentRole        # the seat style this persona was written for
    topic_affinity_tags: tuple[str, ...]
    description: str
    system_prompt: str
    avatar_tag: str


@dataclass(frozen=True)
class AgentConfig:
    seat_id: str           # "moderator", "visionary" or "skeptic"
    role: AgentRole
    display_name: str
    avatar_tag: str
    system_prompt: str
    model_id: str
    topic_affinity_tags: tuple[str, ...] = ()
    persona_id: str = ""


@dataclass(frozen=True)
class CouncilMessage:
    id: str
    speaker_id: str        # seat id or "user"
    content: str
    created_at_millis: int
    kind: MessageKind
    references: tuple[str, ...] = ()


@dataclass
class DebateStatus:
    round_number: int = 0
    phase: Phase = Phase.OPENING
    current_speaker_id: str | None = None


@dataclass(frozen=True)
class ConversationTurn:
    role: str              # "user" or "model"
    text: str


@dataclass(frozen=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    date: str | None = None
    source: str | None = None


@dataclass
class UserProfile:
    subjects: list[str] = field(default_factory=list)
    bio: str = ""
    mode: str = "Learn"


@dataclass
class DebateResult:
    topic: str
    context: str
    agents: list[AgentConfig]
    messages: list[CouncilMessage]
    verdict: str
    total_duration_sec: float
    session_id: str | None = None


@dataclass
class SessionRecord:
    session_id: str
    topic: str
    context: str
    agents: list[AgentConfig]
    messages: list[CouncilMessage]
    saved_at: str
