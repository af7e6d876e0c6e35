"""Service for accumulating participant scores from the answer stream."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from live_quiz.core.answer_validator import answers_match
from live_quiz.core.errors import DuplicateAnswer, UnknownParticipant
from live_quiz.core.models import AnswerRecord, AnswerSubmission, ParticipantScoreState
from live_quiz.core.services.quiz_repository import QuizRepository


@dataclass(slots=True)
class ScoreEntry:
    """Mutable accumulator entry used internally."""

    participant_id: str
    points: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    elapsed_times: list[float] = field(default_factory=list)
    answer_outcomes: list[bool] = field(default_factory=list)
    answered_question_ids: set[str] = field(default_factory=set)
    current_streak: int = 0
    longest_streak: int = 0
    longest_streak_reached_at: datetime | None = None

    def to_state(self) -> ParticipantScoreState:
        return ParticipantScoreState(
            participant_id=self.participant_id,
            points=self.points,
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            elapsed_times=tuple(self.elapsed_times),
            answer_outcomes=tuple(self.answer_outcomes),
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
            longest_streak_reached_at=self.longest_streak_reached_at,
        )


class ScoreAccumulator:
    """Folds accepted answer records into per-participant score state.

    The state after any sequence of ``record_answer`` calls depends only on
    the order of records within each participant's own stream, so replaying
    the same records always yields the same result.
    """

    def __init__(self, quiz: QuizRepository) -> None:
        self._quiz = quiz
        self._scores: dict[str, ScoreEntry] = {}
        self._records: list[AnswerRecord] = []

    @classmethod
    def replay(
        cls,
        quiz: QuizRepository,
        participant_ids: Iterable[str],
        records: Iterable[AnswerRecord],
    ) -> ScoreAccumulator:
        accumulator = cls(quiz)
        for participant_id in participant_ids:
            accumulator.register_participant(participant_id)
        for record in records:
            accumulator.record_answer(record)
        return accumulator

    def register_participant(self, participant_id: str) -> ParticipantScoreState:
        entry = self._scores.get(participant_id)
        if entry is None:
            entry = ScoreEntry(participant_id=participant_id)
            self._scores[participant_id] = entry
        return entry.to_state()

    def grade(self, submission: AnswerSubmission) -> AnswerRecord:
        """Grade a submission against the answer key. Does not record it."""
        question = self._quiz.get_question(submission.question_id)
        is_correct = answers_match(submission.value, question.correct_answer)
        return AnswerRecord(
            participant_id=submission.participant_id,
            question_id=submission.question_id,
            value=submission.value,
            submitted_at=submission.submitted_at,
            elapsed_seconds=submission.elapsed_seconds,
            is_correct=is_correct,
            points_awarded=question.points if is_correct else 0,
        )

    def check_answer(self, participant_id: str, question_id: str) -> None:
        """Raise if a record for this pair would be rejected."""
        entry = self._scores.get(participant_id)
        if entry is None:
            raise UnknownParticipant(f"Participant '{participant_id}' has not joined this session.")
        self._quiz.get_question(question_id)
        if question_id in entry.answered_question_ids:
            raise DuplicateAnswer(
                f"Participant '{participant_id}' already answered question '{question_id}'."
            )

    def record_answer(self, record: AnswerRecord) -> ParticipantScoreState:
        """Apply one accepted record and return the participant's new state."""
        self.check_answer(record.participant_id, record.question_id)
        entry = self._scores[record.participant_id]

        entry.answered_question_ids.add(record.question_id)
        entry.elapsed_times.append(record.elapsed_seconds)
        entry.answer_outcomes.append(record.is_correct)
        if record.is_correct:
            entry.correct_count += 1
            entry.points += record.points_awarded
            entry.current_streak += 1
            if entry.current_streak > entry.longest_streak:
                entry.longest_streak = entry.current_streak
                entry.longest_streak_reached_at = record.submitted_at
        else:
            entry.incorrect_count += 1
            entry.current_streak = 0

        self._records.append(record)
        return entry.to_state()

    def state_for(self, participant_id: str) -> ParticipantScoreState:
        entry = self._scores.get(participant_id)
        if entry is None:
            raise UnknownParticipant(f"Participant '{participant_id}' has not joined this session.")
        return entry.to_state()

    def states(self) -> dict[str, ParticipantScoreState]:
        return {pid: entry.to_state() for pid, entry in self._scores.items()}

    def records(self) -> list[AnswerRecord]:
        return list(self._records)

    def answer_count(self) -> int:
        return len(self._records)
