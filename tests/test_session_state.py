from datetime import datetime, timedelta, timezone

import pytest

from live_quiz.core.errors import InvalidTransition, SessionClosed, SessionNotStarted
from live_quiz.core.models import Session, SessionStatus
from live_quiz.core.services.session_state import SessionStateMachine

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _machine(time_limit_seconds=60):
    return SessionStateMachine(
        Session(session_id="s1", quiz_id="quiz", question_ids=("q1",), time_limit_seconds=time_limit_seconds)
    )


def test_waiting_session_rejects_answers_but_accepts_joins():
    machine = _machine()
    assert machine.status is SessionStatus.WAITING
    machine.ensure_can_join()
    with pytest.raises(SessionNotStarted):
        machine.ensure_can_answer()


def test_start_records_timestamp_and_cannot_repeat():
    machine = _machine()
    machine.start(T0)
    assert machine.status is SessionStatus.ACTIVE
    assert machine.session.started_at == T0
    with pytest.raises(InvalidTransition):
        machine.start(T0)


def test_end_is_idempotent_once_completed():
    machine = _machine()
    with pytest.raises(InvalidTransition):
        machine.end(T0)
    machine.start(T0)
    assert machine.end(T0 + timedelta(seconds=5)) is True
    assert machine.end(T0 + timedelta(seconds=6)) is False
    assert machine.session.ended_at == T0 + timedelta(seconds=5)


def test_completed_session_is_closed_for_everything():
    machine = _machine()
    machine.start(T0)
    machine.end(T0)
    with pytest.raises(SessionClosed):
        machine.ensure_can_answer()
    with pytest.raises(SessionClosed):
        machine.ensure_can_join()
    with pytest.raises(InvalidTransition):
        machine.start(T0)


def test_expiry_completes_at_the_deadline():
    machine = _machine(time_limit_seconds=60)
    machine.start(T0)
    assert machine.check_expiry(T0 + timedelta(seconds=59)) is False
    assert machine.remaining_seconds(T0 + timedelta(seconds=45)) == 15.0
    assert machine.check_expiry(T0 + timedelta(seconds=60)) is True
    assert machine.status is SessionStatus.COMPLETED
    assert machine.session.ended_at == T0 + timedelta(seconds=60)
    assert machine.remaining_seconds(T0 + timedelta(seconds=90)) == 0.0


def test_no_limit_never_expires():
    machine = _machine(time_limit_seconds=None)
    machine.start(T0)
    assert machine.check_expiry(T0 + timedelta(days=1)) is False
    assert machine.remaining_seconds(T0) is None


def test_remaining_time_before_start_is_full_limit():
    assert _machine(time_limit_seconds=90).remaining_seconds(T0) == 90.0
