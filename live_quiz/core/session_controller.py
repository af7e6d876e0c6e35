"""Composition root for one live session.

All events for a session go through a single lock, so they are applied one at
a time in arrival order. Each event first lets the state machine evaluate the
time limit, then is gated, validated and applied; only then is a new snapshot
published. A rejected event raises a :class:`SessionError` and changes
nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
import logging
from threading import Lock
from typing import Any, TypeVar
from uuid import uuid4

from live_quiz.core.answer_validator import validate_answer
from live_quiz.core.errors import SessionError, ValidationError
from live_quiz.core.models import (
    AnswerRecord,
    Participant,
    QuizQuestion,
    Session,
    SessionSnapshot,
    SessionStatus,
    utc_now,
)
from live_quiz.core.services.leaderboard import LeaderboardRanker
from live_quiz.core.services.metrics_engine import MetricsEngine
from live_quiz.core.services.participant_roster import ParticipantRoster
from live_quiz.core.services.quiz_repository import QuizRepository
from live_quiz.core.services.score_accumulator import ScoreAccumulator
from live_quiz.core.services.session_state import SessionStateMachine
from live_quiz.core.settings import SessionSettings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
SnapshotListener = Callable[[SessionSnapshot], None]
T = TypeVar("T")


# --- Events ---

@dataclass(frozen=True, slots=True)
class JoinEvent:
    participant_id: str
    display_name: str = ""


@dataclass(frozen=True, slots=True)
class StartEvent:
    pass


@dataclass(frozen=True, slots=True)
class EndEvent:
    pass


@dataclass(frozen=True, slots=True)
class AnswerEvent:
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TickEvent:
    pass


SessionEvent = JoinEvent | StartEvent | EndEvent | AnswerEvent | TickEvent


@dataclass(frozen=True, slots=True)
class EventResult:
    """Outcome of a dispatched event. ``error`` is set when it was rejected."""

    ok: bool
    snapshot: SessionSnapshot
    value: object | None = None
    error: SessionError | None = None


class SessionController:
    """Facade over roster, state machine, accumulator, ranker and metrics."""

    def __init__(
        self,
        questions: list[QuizQuestion],
        quiz_id: str = "",
        session_id: str | None = None,
        settings: SessionSettings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._lock = Lock()
        self._clock = clock
        self._settings = settings or SessionSettings()

        # Services
        self._quiz = QuizRepository(questions)
        self._roster = ParticipantRoster()
        self._accumulator = ScoreAccumulator(self._quiz)
        self._ranker = LeaderboardRanker()
        self._metrics = MetricsEngine(self._settings)
        self._state = SessionStateMachine(
            Session(
                session_id=session_id or uuid4().hex,
                quiz_id=quiz_id,
                question_ids=self._quiz.get_question_ids(),
                time_limit_seconds=self._settings.time_limit_seconds,
            )
        )

        self._last_answer_at: dict[str, datetime] = {}
        self._listeners: list[SnapshotListener] = []
        self._version = 0
        self._snapshot = self._build_snapshot(self._clock())

    # --- Read-only views ---

    @property
    def session_id(self) -> str:
        return self._state.session.session_id

    @property
    def quiz_id(self) -> str:
        return self._state.session.quiz_id

    @property
    def status(self) -> SessionStatus:
        return self._snapshot.status

    def snapshot(self) -> SessionSnapshot:
        """Return the last published snapshot. Safe to call from any thread."""
        return self._snapshot

    def get_questions(self) -> list[QuizQuestion]:
        return self._quiz.get_questions()

    def records(self) -> list[AnswerRecord]:
        with self._lock:
            return self._accumulator.records()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener for published snapshots. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # --- Events ---

    def join(self, participant_id: str, display_name: str = "") -> Participant:
        def action(now: datetime) -> Participant:
            self._state.ensure_can_join()
            participant, is_new = self._roster.register(participant_id, display_name, now)
            if is_new:
                self._accumulator.register_participant(participant.participant_id)
                logger.info(
                    "Participant %s (%s) joined session %s",
                    participant.participant_id,
                    participant.display_name,
                    self.session_id,
                )
            return participant

        return self._apply("join", action)

    def start(self) -> SessionSnapshot:
        self._apply("start", self._state.start)
        return self._snapshot

    def end(self) -> SessionSnapshot:
        """End the session. Ending an already completed session is a no-op."""
        self._apply("end", self._state.end)
        return self._snapshot

    def tick(self) -> SessionSnapshot:
        """Refresh remaining time and fire the time limit if it has passed."""
        self._apply("tick", lambda now: None)
        return self._snapshot

    def submit_answer(
        self,
        participant_id: str,
        question_id: str,
        value: Any,
        elapsed_seconds: float | None = None,
    ) -> AnswerRecord:
        return self.submit_payload(
            {
                "participant_id": participant_id,
                "question_id": question_id,
                "value": value,
                "elapsed_seconds": elapsed_seconds,
            }
        )

    def submit_payload(self, payload: Mapping[str, Any]) -> AnswerRecord:
        def action(now: datetime) -> AnswerRecord:
            self._state.ensure_can_answer()
            submission = validate_answer(payload, now, self._default_elapsed(now))
            self._roster.get(submission.participant_id)
            self._accumulator.check_answer(submission.participant_id, submission.question_id)
            available = self._seconds_since_marker(submission.participant_id, now)
            if submission.elapsed_seconds > available:
                raise ValidationError(
                    f"'elapsed_seconds' ({submission.elapsed_seconds:g}) exceeds the "
                    f"{available:g}s since the question became available."
                )
            record = self._accumulator.grade(submission)
            self._accumulator.record_answer(record)
            self._last_answer_at[record.participant_id] = record.submitted_at
            logger.debug(
                "Session %s: %s answered %s (%s, %.2fs)",
                self.session_id,
                record.participant_id,
                record.question_id,
                "correct" if record.is_correct else "incorrect",
                record.elapsed_seconds,
            )
            return record

        return self._apply("answer", action)

    def dispatch(self, event: SessionEvent) -> EventResult:
        """Apply an event and report the outcome instead of raising."""
        try:
            if isinstance(event, JoinEvent):
                value: object | None = self.join(event.participant_id, event.display_name)
            elif isinstance(event, StartEvent):
                value = self.start()
            elif isinstance(event, EndEvent):
                value = self.end()
            elif isinstance(event, AnswerEvent):
                value = self.submit_payload(event.payload)
            elif isinstance(event, TickEvent):
                value = self.tick()
            else:
                raise ValidationError(f"Unsupported event: {type(event).__name__}")
        except SessionError as exc:
            return EventResult(ok=False, snapshot=self._snapshot, error=exc)
        return EventResult(ok=True, snapshot=self._snapshot, value=value)

    # --- Internals ---

    def _seconds_since_marker(self, participant_id: str, now: datetime) -> float:
        """Time since the participant could last have seen a question.

        The marker is the latest of session start, join time and previous answer.
        """
        markers = [self._state.session.started_at, self._last_answer_at.get(participant_id)]
        if self._roster.contains(participant_id):
            markers.append(self._roster.get(participant_id).joined_at)
        present = [marker for marker in markers if marker is not None]
        if not present:
            return 0.0
        return max(0.0, (now - max(present)).total_seconds())

    def _default_elapsed(self, now: datetime) -> Callable[[str], float]:
        return lambda participant_id: self._seconds_since_marker(participant_id, now)

    def _apply(self, name: str, action: Callable[[datetime], T]) -> T:
        snapshot: SessionSnapshot | None = None
        listeners: list[SnapshotListener] = []
        try:
            with self._lock:
                listeners = list(self._listeners)
                now = self._clock()
                expired = self._state.check_expiry(now)
                try:
                    result = action(now)
                except SessionError as exc:
                    logger.warning("Session %s rejected %s: %s", self.session_id, name, exc.message)
                    if expired:
                        snapshot = self._publish(now)
                    raise
                except Exception as exc:
                    logger.exception("Session %s failed to process %s", self.session_id, name)
                    if expired:
                        snapshot = self._publish(now)
                    raise ValidationError("The request could not be processed.") from exc
                snapshot = self._publish(now)
        finally:
            # Listeners run outside the lock so they may call back into the controller.
            if snapshot is not None:
                self._notify(listeners, snapshot)
        return result

    def _publish(self, now: datetime) -> SessionSnapshot:
        self._version += 1
        self._snapshot = self._build_snapshot(now)
        return self._snapshot

    def _notify(self, listeners: list[SnapshotListener], snapshot: SessionSnapshot) -> None:
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for session %s", self.session_id)

    def _build_snapshot(self, now: datetime) -> SessionSnapshot:
        participants = self._roster.get_participants()
        states = self._accumulator.states()
        question_count = self._quiz.get_question_count()
        leaderboard = self._ranker.rank(states, participants, question_count)
        metrics = self._metrics.evaluate(states, participants, question_count, leaderboard)
        session = self._state.session
        return SessionSnapshot(
            session_id=session.session_id,
            quiz_id=session.quiz_id,
            status=session.status,
            participants=tuple(participants),
            leaderboard=tuple(leaderboard),
            metrics=metrics,
            remaining_seconds=self._state.remaining_seconds(now),
            question_count=question_count,
            generated_at=now,
            version=self._version,
        )
