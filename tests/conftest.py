from datetime import datetime, timedelta, timezone

import pytest

from live_quiz.core.models import QuizQuestion
from live_quiz.core.session_controller import SessionController
from live_quiz.core.settings import SessionSettings

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock so timing-dependent behaviour is deterministic."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def two_questions():
    return [
        QuizQuestion(question_id="q1", text="Capital of France?", correct_answer="Paris", options=("Paris", "Rome")),
        QuizQuestion(question_id="q2", text="Six times seven?", correct_answer="42"),
    ]


@pytest.fixture
def four_questions():
    return [
        QuizQuestion(question_id=f"q{i}", text=f"Question {i}", correct_answer=f"a{i}", points=i)
        for i in range(1, 5)
    ]


@pytest.fixture
def make_controller(clock, two_questions):
    def factory(questions=None, time_limit_seconds=60, **settings_kwargs):
        settings = SessionSettings(time_limit_seconds=time_limit_seconds, **settings_kwargs)
        return SessionController(
            questions or two_questions,
            quiz_id="quiz-1",
            session_id="session-1",
            settings=settings,
            clock=clock,
        )

    return factory
