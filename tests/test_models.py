"""Tests for src/models.py dataclasses."""

import dataclasses

import pytest

from src.models import (
    AgentRole,
    CouncilMessage,
    DebateResult,
    DebateStatus,
    MessageKind,
    Phase,
    SearchResult,
    UserProfile,
)


def test_enum_values_are_wire_strings():
    assert AgentRole.VISIONARY.value == "visionary"
    assert Phase("synthesis") is Phase.SYNTHESIS
    assert MessageKind("verdict") is MessageKind.VERDICT
    assert AgentRole.MODERATOR == "moderator"


def test_debate_status_defaults():
    status = DebateStatus()
    assert status.round_number == 0
    assert status.phase is Phase.OPENING
    assert status.current_speaker_id is None


def test_message_is_immutable():
    msg = CouncilMessage(id="m1", speaker_id="user", content="Hi", created_at_millis=1, kind=MessageKind.QUERY)
    assert msg.references == ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        msg.content = "changed"  # type: ignore[misc]


def test_search_result_optional_fields():
    r = SearchResult(title="T", link="https://example.com", snippet="S")
    assert r.date is None
    assert r.source is None


def test_user_profile_defaults_not_shared():
    a, b = UserProfile(), UserProfile()
    a.subjects.append("Physics")
    assert b.subjects == []
    assert a.mode == "Learn"


def test_debate_result_fields(bench):
    result = DebateResult(
        topic="Rust?",
        context="",
        agents=bench,
        messages=[],
        verdict="# Strategic Roadmap",
        total_duration_sec=5.0,
    )
    assert result.session_id is None
    assert len(result.agents) == 3
    assert result.total_duration_sec == 5.0
