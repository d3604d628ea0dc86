"""Tests for the session status transition table."""

import itertools

import pytest

from athena.models.session import SessionStatus
from athena.services.session_lifecycle import TRANSITIONS, TransitionActor, transition_actor

ALLOWED = {
    (SessionStatus.PENDING, SessionStatus.CONFIRMED): TransitionActor.PARTICIPANT,
    (SessionStatus.PENDING, SessionStatus.CANCELLED): TransitionActor.PARTICIPANT,
    (SessionStatus.CONFIRMED, SessionStatus.CANCELLED): TransitionActor.PARTICIPANT,
    (SessionStatus.CONFIRMED, SessionStatus.IN_PROGRESS): TransitionActor.SYSTEM,
    (SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED): TransitionActor.SYSTEM,
}


@pytest.mark.unit
class TestTransitionTable:
    @pytest.mark.parametrize(
        "current, target", list(itertools.product(SessionStatus, repeat=2))
    )
    def test_every_pair(self, current, target):
        assert transition_actor(current, target) == ALLOWED.get((current, target))

    def test_terminal_statuses_have_no_exits(self):
        assert SessionStatus.COMPLETED not in TRANSITIONS
        assert SessionStatus.CANCELLED not in TRANSITIONS

    def test_accepts_plain_strings(self):
        assert transition_actor("pending", "confirmed") == TransitionActor.PARTICIPANT
