"""Debate orchestration: research, agent initialization, round-limited turns, verdict."""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable

from config.config_loader import CouncilConfig
from src.agent import CONCLUSION_SENTINEL, Agent, AgentNotInitialized
from src.models import (
    USER_SPEAKER_ID,
    AgentConfig,
    AgentRole,
    CouncilMessage,
    DebateStatus,
    MessageKind,
    Phase,
    UserProfile,
)
from src.personas import MODERATOR_SEAT, SKEPTIC_SEAT, VISIONARY_SEAT
from src.providers.base import TextCompletionProvider
from src.research import ResearchAggregator
from src.retry import RetryPolicy
from src.verdict import VERDICT_TOPIC, build_verdict_directive, find_urls

logger = logging.getLogger(__name__)

# Pro-position seat always speaks first in a round.
TURN_ORDER = (VISIONARY_SEAT, SKEPTIC_SEAT)


class InitializationFailure(RuntimeError):
    """An agent could not be initialized; the debate cannot start."""


class VerdictUnavailable(RuntimeError):
    """The moderator could not produce a verdict. generate_verdict() may be retried."""


def _now_millis() -> int:
    return int(time.time() * 1000)


def _new_message(speaker_id: str, content: str, kind: MessageKind) -> CouncilMessage:
    return CouncilMessage(
        id=uuid.uuid4().hex,
        speaker_id=speaker_id,
        content=content,
        created_at_millis=_now_millis(),
        kind=kind,
        references=find_urls(content),
    )


def compose_shared_context(topic: str, user_context: str, brief: str) -> str:
    return (
        f"TOPIC: {topic}\n"
        f"USER CONTEXT: {user_context}\n\n"
        "=== DEEP RESEARCH BRIEF (LIVE WEB DATA) ===\n"
        "(You must prioritize this data over your internal training set)\n"
        f"{brief}\n"
        "==========================================="
    )


class DebateEngine:
    """Owns one debate session: the agents, the append-only log, and the status.

    Nothing outside the engine mutates the log or the status, so no locking is
    needed. Sessions share only the provider clients.
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        research: ResearchAggregator | None = None,
        config: CouncilConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._provider = provider
        self._research = research or ResearchAggregator(None)
        self._config = config or CouncilConfig()
        self._retry = retry_policy or RetryPolicy()
        self._agents: dict[str, Agent] = {}
        self._messages: list[CouncilMessage] = []
        self.status = DebateStatus()
        self.topic = ""
        self.user_context = ""
        self.user_profile: UserProfile | None = None
        self.verdict: str | None = None
        self._running = False
        self._completed_rounds = 0
        self._next_seat = 0

    # --- roster and read-only views ---

    def add_agent(self, config: AgentConfig) -> Agent:
        agent = Agent(config, self._provider, self._retry, history_window=self._config.history_window)
        self._agents[config.seat_id] = agent
        return agent

    @property
    def agents(self) -> dict[str, Agent]:
        return dict(self._agents)

    @property
    def messages(self) -> tuple[CouncilMessage, ...]:
        return tuple(self._messages)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def completed_rounds(self) -> int:
        return self._completed_rounds

    def turn_order(self) -> list[str]:
        """Seats in speaking order: debaters first, moderator last."""
        order = [s for s in TURN_ORDER if s in self._agents]
        order += [s for s, a in self._agents.items() if s not in order and a.config.role is not AgentRole.MODERATOR]
        if MODERATOR_SEAT in self._agents:
            order.append(MODERATOR_SEAT)
        return order

    # --- running flag ---

    def start(self) -> None:
        if self.status.phase is Phase.DEBATE:
            self._running = True

    def pause(self) -> None:
        self._running = False

    def resume(self) -> None:
        self.start()

    # --- lifecycle ---

    async def start_debate(
        self,
        topic: str,
        user_context: str = "",
        user_profile: UserProfile | None = None,
    ) -> None:
        """Research, seed the log with the user's query, and initialize every agent.

        Raises:
            InitializationFailure: If any agent fails to initialize.
        """
        self.topic = topic
        self.user_context = user_context
        self.user_profile = user_profile
        self._messages = []
        self.verdict = None
        self._running = False
        self._completed_rounds = 0
        self._next_seat = 0
        self.status = DebateStatus(round_number=0, phase=Phase.OPENING)

        brief = await self._research.gather(topic)
        shared_context = compose_shared_context(topic, user_context, brief)

        self._messages.append(
            _new_message(USER_SPEAKER_ID, f"Topic: {topic}\nContext: {user_context}", MessageKind.QUERY)
        )

        logger.info("Initializing %d agents", len(self._agents))
        results = await asyncio.gather(
            *(agent.initialize(shared_context) for agent in self._agents.values()),
            return_exceptions=True,
        )
        for seat_id, result in zip(self._agents, results):
            if isinstance(result, BaseException):
                raise InitializationFailure(f"Agent '{seat_id}' failed to initialize: {result}") from result

        self.status.phase = Phase.DEBATE
        self.status.round_number = 1

    def add_user_message(self, content: str) -> CouncilMessage:
        message = _new_message(USER_SPEAKER_ID, content, MessageKind.QUERY)
        self._messages.append(message)
        return message

    async def run(
        self,
        on_message: Callable[[CouncilMessage], None] | None = None,
    ) -> str | None:
        """Drive turns until paused or the round cap is hit, then produce the verdict.

        Returns the verdict once produced, or None if the loop was paused first.
        """
        self.start()
        while self._running and self.status.phase is Phase.DEBATE:
            if self._completed_rounds >= self._config.max_rounds:
                logger.info("Round cap (%d) reached, moving to verdict", self._config.max_rounds)
                self._running = False
                break

            seat_id = TURN_ORDER[self._next_seat]
            message = await self.process_turn(seat_id)
            if message is not None and on_message:
                on_message(message)

            self._next_seat += 1
            if self._next_seat == len(TURN_ORDER):
                self._next_seat = 0
                self._completed_rounds += 1
                logger.info("Round %d complete", self.status.round_number)
                if self._completed_rounds < self._config.max_rounds:
                    self.status.round_number += 1
                await asyncio.sleep(self._config.round_pause_sec)

        if self.status.phase is Phase.DEBATE and self._completed_rounds >= self._config.max_rounds:
            self.status.phase = Phase.SYNTHESIS
        if self.status.phase is Phase.SYNTHESIS:
            verdict = await self.generate_verdict()
            if on_message:
                on_message(self._messages[-1])
            return verdict
        return self.verdict

    async def process_turn(self, seat_id: str) -> CouncilMessage | None:
        """One agent's turn. Returns the appended message, or None if the turn was skipped.

        Raises:
            KeyError: If no agent sits in ``seat_id``.
            AgentNotInitialized: If start_debate() has not initialized the agent.
        """
        agent = self._agents[seat_id]
        self.status.current_speaker_id = seat_id
        await asyncio.sleep(self._config.pre_turn_delay_sec)

        is_moderator = agent.config.role is AgentRole.MODERATOR
        message: CouncilMessage | None = None
        try:
            content = await agent.speak(self._messages, self.topic)
        except AgentNotInitialized:
            self.status.current_speaker_id = None
            raise
        except Exception as exc:
            logger.error("Turn error for %s: %s", seat_id, exc)
        else:
            if is_moderator and content.strip() == CONCLUSION_SENTINEL:
                logger.info("Moderator signalled conclusion, moving to verdict")
                self._running = False
                self.status.phase = Phase.SYNTHESIS
            else:
                kind = MessageKind.VERDICT if is_moderator else MessageKind.ARGUMENT
                message = _new_message(agent.config.seat_id, content, kind)
                self._messages.append(message)

        self.status.current_speaker_id = None
        await asyncio.sleep(self._config.post_turn_delay_sec)
        return message

    async def generate_verdict(self) -> str:
        """Have the moderator write the final document. Idempotent once it succeeds.

        Raises:
            ValueError: If no moderator is seated.
            VerdictUnavailable: If the moderator was unreachable; safe to retry.
        """
        if self.verdict is not None:
            return self.verdict

        moderator = self._agents.get(MODERATOR_SEAT)
        if moderator is None:
            raise ValueError("No moderator found for verdict generation")

        self._running = False
        self.status.phase = Phase.SYNTHESIS
        self.status.current_speaker_id = MODERATOR_SEAT
        try:
            await asyncio.sleep(self._config.verdict_delay_sec)
            content = await moderator.speak(
                self._messages,
                VERDICT_TOPIC,
                build_verdict_directive(self.user_profile),
            )
            if not content.strip() or moderator.is_unreachable(content):
                raise VerdictUnavailable(f"Moderator {moderator.config.display_name} could not produce a verdict")

            self._messages.append(_new_message(MODERATOR_SEAT, content, MessageKind.VERDICT))
            self.verdict = content
            self.status.phase = Phase.CONCLUDED
            logger.info("Verdict produced (%d chars)", len(content))
            return content
        finally:
            self.status.current_speaker_id = None

    async def force_verdict(self) -> str:
        """Stop the debate now and go straight to the verdict."""
        self.pause()
        return await self.generate_verdict()

    def close(self) -> None:
        """End the session and drop every agent's conversation."""
        self._running = False
        for agent in self._agents.values():
            agent.close()
