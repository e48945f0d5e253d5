"""Session persistence. The engine never calls this; the caller saves after the verdict."""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from src.models import AgentConfig, AgentRole, CouncilMessage, MessageKind, SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    @abstractmethod
    def save(
        self,
        topic: str,
        context: str,
        agent_configs: list[AgentConfig],
        messages: list[CouncilMessage],
    ) -> str:
        """Persist a session and return its id."""
        ...

    @abstractmethod
    def load(self, session_id: str) -> SessionRecord:
        """Load a saved session. Raises KeyError if it does not exist."""
        ...


def _agent_from_dict(raw: dict) -> AgentConfig:
    return AgentConfig(
        seat_id=raw["seat_id"],
        role=AgentRole(raw["role"]),
        display_name=raw["display_name"],
        avatar_tag=raw["avatar_tag"],
        system_prompt=raw["system_prompt"],
        model_id=raw["model_id"],
        topic_affinity_tags=tuple(raw.get("topic_affinity_tags", ())),
        persona_id=raw.get("persona_id", ""),
    )


def _message_from_dict(raw: dict) -> CouncilMessage:
    return CouncilMessage(
        id=raw["id"],
        speaker_id=raw["speaker_id"],
        content=raw["content"],
        created_at_millis=int(raw["created_at_millis"]),
        kind=MessageKind(raw["kind"]),
        references=tuple(raw.get("references", ())),
    )


class JsonSessionStore(SessionStore):
    """One ``<session_id>.json`` file per session under ``sessions_dir``."""

    def __init__(self, sessions_dir: Path) -> None:
        self._dir = sessions_dir

    def _path(self, session_id: str) -> Path:
        return self._dir / f"{session_id}.json"

    def save(
        self,
        topic: str,
        context: str,
        agent_configs: list[AgentConfig],
        messages: list[CouncilMessage],
    ) -> str:
        self._dir.mkdir(parents=True, exist_ok=True)
        session_id = uuid.uuid4().hex
        payload = {
            "session_id": session_id,
            "topic": topic,
            "context": context,
            "agents": [asdict(a) for a in agent_configs],
            "messages": [asdict(m) for m in messages],
            "saved_at": datetime.now().isoformat(timespec="seconds"),
        }
        # str-valued enums serialize as their values
        self._path(session_id).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Session saved: %s", session_id)
        return session_id

    def load(self, session_id: str) -> SessionRecord:
        path = self._path(session_id)
        if not path.exists():
            raise KeyError(f"Unknown session: {session_id}")
        raw = json.loads(path.read_text(encoding="utf-8"))
        return SessionRecord(
            session_id=raw["session_id"],
            topic=raw["topic"],
            context=raw["context"],
            agents=[_agent_from_dict(a) for a in raw["agents"]],
            messages=[_message_from_dict(m) for m in raw["messages"]],
            saved_at=raw["saved_at"],
        )


def save_session_safely(
    store: SessionStore,
    topic: str,
    context: str,
    agent_configs: list[AgentConfig],
    messages: list[CouncilMessage],
) -> str | None:
    """Save, logging instead of raising. Returns the session id, or None on failure."""
    try:
        return store.save(topic, context, agent_configs, messages)
    except Exception as exc:
        logger.error("Failed to save council session: %s", exc)
        return None
