from datetime import datetime, timedelta, timezone
import itertools

import pytest

from live_quiz.core.errors import DuplicateAnswer, UnknownParticipant, UnknownQuestion
from live_quiz.core.models import AnswerSubmission
from live_quiz.core.services.quiz_repository import QuizRepository
from live_quiz.core.services.score_accumulator import ScoreAccumulator

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _submission(participant_id, question_id, value, offset, elapsed):
    return AnswerSubmission(
        participant_id=participant_id,
        question_id=question_id,
        value=value,
        submitted_at=T0 + timedelta(seconds=offset),
        elapsed_seconds=elapsed,
    )


@pytest.fixture
def accumulator(two_questions):
    acc = ScoreAccumulator(QuizRepository(two_questions))
    acc.register_participant("A")
    acc.register_participant("B")
    return acc


def test_paris_scenario_scores_and_streaks(accumulator):
    accumulator.record_answer(accumulator.grade(_submission("A", "q1", "Paris", 5, 5.0)))
    state = accumulator.record_answer(accumulator.grade(_submission("A", "q2", "41", 15, 10.0)))

    assert state.points == 1
    assert state.correct_count == 1
    assert state.incorrect_count == 1
    assert state.current_streak == 0
    assert state.longest_streak == 1
    assert state.longest_streak_reached_at == T0 + timedelta(seconds=5)
    assert state.average_elapsed == pytest.approx(7.5)

    accumulator.record_answer(accumulator.grade(_submission("B", "q1", "Rome", 3, 3.0)))
    state_b = accumulator.record_answer(accumulator.grade(_submission("B", "q2", "42", 7, 4.0)))
    assert state_b.points == 1
    assert state_b.current_streak == 1


def test_grading_is_case_and_whitespace_insensitive(accumulator):
    record = accumulator.grade(_submission("A", "q1", "  paRIS ", 1, 1.0))
    assert record.is_correct
    assert record.points_awarded == 1


def test_incorrect_answer_awards_no_points(accumulator):
    record = accumulator.grade(_submission("A", "q1", "Lyon", 1, 1.0))
    assert not record.is_correct
    assert record.points_awarded == 0


@pytest.mark.parametrize("first_value", ["Paris", "Rome"])
def test_duplicate_is_rejected_whatever_the_first_outcome(accumulator, first_value):
    accumulator.record_answer(accumulator.grade(_submission("A", "q1", first_value, 1, 1.0)))
    before = accumulator.state_for("A")

    with pytest.raises(DuplicateAnswer):
        accumulator.record_answer(accumulator.grade(_submission("A", "q1", "Paris", 2, 1.0)))

    assert accumulator.state_for("A") == before
    assert accumulator.answer_count() == 1


def test_out_of_order_questions_are_allowed(accumulator):
    accumulator.record_answer(accumulator.grade(_submission("A", "q2", "42", 1, 1.0)))
    state = accumulator.record_answer(accumulator.grade(_submission("A", "q1", "Paris", 2, 1.0)))
    assert state.correct_count == 2
    assert state.longest_streak == 2


def test_unknown_question_and_participant(accumulator):
    with pytest.raises(UnknownQuestion):
        accumulator.grade(_submission("A", "q9", "x", 1, 1.0))

    record = accumulator.grade(_submission("Z", "q1", "Paris", 1, 1.0))
    with pytest.raises(UnknownParticipant):
        accumulator.record_answer(record)


def test_other_participants_are_untouched(accumulator):
    before = accumulator.state_for("B")
    accumulator.record_answer(accumulator.grade(_submission("A", "q1", "Paris", 1, 1.0)))
    assert accumulator.state_for("B") == before


def test_replay_is_independent_of_cross_participant_interleaving(two_questions, four_questions):
    quiz = QuizRepository(four_questions)
    a_stream = [
        ("A", "q1", "a1", 1, 2.0),
        ("A", "q2", "wrong", 2, 3.0),
        ("A", "q3", "a3", 3, 1.0),
        ("A", "q4", "a4", 4, 1.5),
    ]
    b_stream = [
        ("B", "q2", "a2", 1, 4.0),
        ("B", "q1", "a1", 2, 2.0),
        ("B", "q4", "nope", 3, 6.0),
    ]
    grader = ScoreAccumulator(quiz)
    a_records = [grader.grade(_submission(*row)) for row in a_stream]
    b_records = [grader.grade(_submission(*row)) for row in b_stream]

    results = set()
    # Every interleaving that preserves each participant's own order.
    for positions in itertools.combinations(range(len(a_records) + len(b_records)), len(a_records)):
        a_iter, b_iter = iter(a_records), iter(b_records)
        merged = [next(a_iter) if i in positions else next(b_iter) for i in range(len(a_records) + len(b_records))]
        replayed = ScoreAccumulator.replay(quiz, ["A", "B"], merged)
        results.add(tuple(sorted(replayed.states().items())))

    assert len(results) == 1
    states = dict(next(iter(results)))
    assert states["A"].points == 1 + 3 + 4
    assert states["A"].longest_streak == 2
    assert states["B"].points == 2 + 1
    assert states["B"].current_streak == 0


def test_replay_matches_live_accumulation(accumulator, two_questions):
    for row in [("A", "q1", "Paris", 1, 5.0), ("B", "q1", "Rome", 2, 3.0), ("A", "q2", "41", 3, 10.0)]:
        accumulator.record_answer(accumulator.grade(_submission(*row)))

    replayed = ScoreAccumulator.replay(QuizRepository(two_questions), ["A", "B"], accumulator.records())
    assert replayed.states() == accumulator.states()
