"""Domain models for the live quiz session engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


class SessionStatus(str, Enum):
    """Lifecycle states of a live session. Transitions only move forward."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


class BadgeKind(str, Enum):
    SPEED_DEMON = "speed_demon"
    PERFECTIONIST = "perfectionist"
    STREAK_MASTER = "streak_master"
    LIGHTNING_ROUND = "lightning_round"
    COMEBACK_KID = "comeback_kid"
    STEADY_EDDIE = "steady_eddie"
    PHOTO_FINISH = "photo_finish"
    CLOSE_CALL = "close_call"


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    """A question as supplied by the quiz definition. Never mutated by a session."""

    question_id: str
    text: str
    correct_answer: str
    options: tuple[str, ...] = ()
    points: int = 1


@dataclass(slots=True)
class Session:
    """Lifecycle data of one live run of a quiz."""

    session_id: str
    quiz_id: str
    question_ids: tuple[str, ...]
    time_limit_seconds: int | None = None
    status: SessionStatus = SessionStatus.WAITING
    started_at: datetime | None = None
    ended_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Participant:
    """Someone who joined the session. Identity is trusted as supplied."""

    participant_id: str
    display_name: str
    joined_at: datetime
    join_order: int

    def to_document(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "display_name": self.display_name,
            "joined_at": _iso(self.joined_at),
            "join_order": self.join_order,
        }


@dataclass(frozen=True, slots=True)
class AnswerSubmission:
    """A validated but not yet graded answer."""

    participant_id: str
    question_id: str
    value: str
    submitted_at: datetime
    elapsed_seconds: float


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """An accepted, graded answer. Immutable once recorded."""

    participant_id: str
    question_id: str
    value: str
    submitted_at: datetime
    elapsed_seconds: float
    is_correct: bool
    points_awarded: int

    def to_document(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "question_id": self.question_id,
            "value": self.value,
            "submitted_at": _iso(self.submitted_at),
            "elapsed_seconds": self.elapsed_seconds,
            "is_correct": self.is_correct,
            "points_awarded": self.points_awarded,
        }


@dataclass(frozen=True, slots=True)
class ParticipantScoreState:
    """Immutable view of one participant's accumulated score."""

    participant_id: str
    points: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    elapsed_times: tuple[float, ...] = ()
    answer_outcomes: tuple[bool, ...] = ()
    current_streak: int = 0
    longest_streak: int = 0
    longest_streak_reached_at: datetime | None = None

    @property
    def answered_count(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def total_elapsed(self) -> float:
        return sum(self.elapsed_times)

    @property
    def average_elapsed(self) -> float | None:
        if not self.elapsed_times:
            return None
        return sum(self.elapsed_times) / len(self.elapsed_times)


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    rank: int
    participant_id: str
    display_name: str
    points: int
    percentage: int
    correct: int
    total: int
    question_count: int
    average_time: float | None

    def to_document(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "participant_id": self.participant_id,
            "display_name": self.display_name,
            "points": self.points,
            "percentage": self.percentage,
            "correct": self.correct,
            "total": self.total,
            "question_count": self.question_count,
            "average_time": self.average_time,
        }


@dataclass(frozen=True, slots=True)
class Badge:
    """A derived achievement. Session-level badges name no participants."""

    kind: BadgeKind
    label: str
    participant_ids: tuple[str, ...] = ()
    value: float | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "label": self.label,
            "participant_ids": list(self.participant_ids),
            "value": self.value,
        }


@dataclass(frozen=True, slots=True)
class SessionStatistics:
    total_participants: int = 0
    completed_count: int = 0
    completion_rate: int = 0
    average_percentage: int = 0
    median_percentage: int = 0
    highest_percentage: int = 0
    lowest_percentage: int = 0
    perfect_scores: int = 0
    average_time: float | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "total_participants": self.total_participants,
            "completed_count": self.completed_count,
            "completion_rate": self.completion_rate,
            "average_percentage": self.average_percentage,
            "median_percentage": self.median_percentage,
            "highest_percentage": self.highest_percentage,
            "lowest_percentage": self.lowest_percentage,
            "perfect_scores": self.perfect_scores,
            "average_time": self.average_time,
        }


@dataclass(frozen=True, slots=True)
class SessionMetrics:
    badges: tuple[Badge, ...] = ()
    lightning_round: bool = False
    statistics: SessionStatistics = field(default_factory=SessionStatistics)

    def badge(self, kind: BadgeKind) -> Badge | None:
        return next((b for b in self.badges if b.kind is kind), None)

    def to_document(self) -> dict[str, Any]:
        return {
            "badges": [badge.to_document() for badge in self.badges],
            "lightning_round": self.lightning_round,
            "statistics": self.statistics.to_document(),
        }


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Complete, read-only view of a session at one instant."""

    session_id: str
    quiz_id: str
    status: SessionStatus
    participants: tuple[Participant, ...]
    leaderboard: tuple[LeaderboardRow, ...]
    metrics: SessionMetrics
    remaining_seconds: float | None
    question_count: int
    generated_at: datetime
    version: int = 0

    def to_document(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "quiz_id": self.quiz_id,
            "status": self.status.value,
            "participants": [p.to_document() for p in self.participants],
            "leaderboard": [row.to_document() for row in self.leaderboard],
            "metrics": self.metrics.to_document(),
            "remaining_seconds": self.remaining_seconds,
            "question_count": self.question_count,
            "generated_at": _iso(self.generated_at),
            "version": self.version,
        }
