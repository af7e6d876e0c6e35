import pytest

from live_quiz.core.errors import InvalidTransition, SessionNotFound
from live_quiz.core.models import SessionStatus
from live_quiz.core.session_registry import SessionRegistry
from live_quiz.core.settings import SessionSettings


def test_sessions_are_independent(clock, two_questions):
    registry = SessionRegistry(default_settings=SessionSettings(time_limit_seconds=60), clock=clock)
    first = registry.create_session(two_questions, quiz_id="quiz-a")
    second = registry.create_session(two_questions, quiz_id="quiz-b")

    first.join("A")
    first.start()
    clock.advance(1)
    first.submit_answer("A", "q1", "Paris", elapsed_seconds=1)

    assert registry.get(first.session_id) is first
    assert second.snapshot().status is SessionStatus.WAITING
    assert second.snapshot().participants == ()
    assert {c.session_id for c in registry.list_sessions()} == {first.session_id, second.session_id}


def test_unknown_session(clock):
    registry = SessionRegistry(clock=clock)
    with pytest.raises(SessionNotFound):
        registry.get("missing")


def test_tick_all_expires_running_sessions(clock, two_questions):
    registry = SessionRegistry(default_settings=SessionSettings(time_limit_seconds=30), clock=clock)
    running = registry.create_session(two_questions)
    waiting = registry.create_session(two_questions)
    running.start()

    clock.advance(31)
    registry.tick_all()

    assert running.status is SessionStatus.COMPLETED
    assert waiting.status is SessionStatus.WAITING


def test_archive_only_completed_sessions(clock, two_questions):
    received = []
    registry = SessionRegistry(clock=clock, listeners=[received.append])
    controller = registry.create_session(two_questions)
    controller.start()

    with pytest.raises(InvalidTransition):
        registry.archive(controller.session_id)

    controller.end()
    final = registry.archive(controller.session_id)
    assert final.status is SessionStatus.COMPLETED
    assert received[-1].status is SessionStatus.COMPLETED
    with pytest.raises(SessionNotFound):
        registry.get(controller.session_id)


def test_invalid_quiz_is_rejected(clock):
    registry = SessionRegistry(clock=clock)
    with pytest.raises(ValueError):
        registry.create_session([])
