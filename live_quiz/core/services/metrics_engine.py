"""Badge and statistics derivation.

Every function here is a pure function of the accumulated score states and
the participant list: calling it twice on the same input returns the same
badge, and nothing is cached between calls. Participant-level badges return
``Badge | None``; the session-level Lightning Round is reported both as a
badge and as a flag on :class:`SessionMetrics`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import math
import statistics

from live_quiz.core.models import (
    Badge,
    BadgeKind,
    LeaderboardRow,
    Participant,
    ParticipantScoreState,
    SessionMetrics,
    SessionStatistics,
)
from live_quiz.core.services.leaderboard import round_half_up
from live_quiz.core.settings import SessionSettings

BADGE_LABELS: dict[BadgeKind, str] = {
    BadgeKind.SPEED_DEMON: "Speed Demon",
    BadgeKind.PERFECTIONIST: "Perfectionist",
    BadgeKind.STREAK_MASTER: "Streak Master",
    BadgeKind.LIGHTNING_ROUND: "Lightning Round",
    BadgeKind.COMEBACK_KID: "Comeback Kid",
    BadgeKind.STEADY_EDDIE: "Steady Eddie",
    BadgeKind.PHOTO_FINISH: "Photo Finish",
    BadgeKind.CLOSE_CALL: "Close Call",
}

ScoreStates = Mapping[str, ParticipantScoreState]


def _badge(kind: BadgeKind, participant_ids: tuple[str, ...] = (), value: float | None = None) -> Badge:
    return Badge(kind=kind, label=BADGE_LABELS[kind], participant_ids=participant_ids, value=value)


def _join_key(participant: Participant) -> tuple:
    return (participant.joined_at, participant.join_order)


def _with_states(states: ScoreStates, participants: Sequence[Participant]):
    for participant in participants:
        state = states.get(participant.participant_id)
        if state is not None:
            yield participant, state


def speed_demon(
    states: ScoreStates,
    participants: Sequence[Participant],
    question_count: int,
    min_fraction: float,
) -> Badge | None:
    """Lowest average response time among participants who answered enough questions."""
    required = max(1, math.ceil(question_count * min_fraction))
    candidates = [
        (state.average_elapsed, _join_key(participant), participant.participant_id)
        for participant, state in _with_states(states, participants)
        if state.answered_count >= required
    ]
    if not candidates:
        return None
    average, _, participant_id = min(candidates)
    return _badge(BadgeKind.SPEED_DEMON, (participant_id,), round(average, 3))


def perfectionists(
    states: ScoreStates,
    participants: Sequence[Participant],
    question_count: int,
) -> Badge | None:
    if question_count <= 0:
        return None
    winners = tuple(
        participant.participant_id
        for participant, state in sorted(_with_states(states, participants), key=lambda item: _join_key(item[0]))
        if state.correct_count == question_count
    )
    if not winners:
        return None
    return _badge(BadgeKind.PERFECTIONIST, winners, 100.0)


def streak_master(states: ScoreStates, participants: Sequence[Participant]) -> Badge | None:
    """Longest streak; equal streaks go to whoever reached that length first."""
    candidates = [
        (-state.longest_streak, state.longest_streak_reached_at, _join_key(participant), participant.participant_id)
        for participant, state in _with_states(states, participants)
        if state.longest_streak > 0
    ]
    if not candidates:
        return None
    negative_streak, _, _, participant_id = min(candidates)
    return _badge(BadgeKind.STREAK_MASTER, (participant_id,), float(-negative_streak))


def median_elapsed(states: ScoreStates) -> float | None:
    times = [elapsed for state in states.values() for elapsed in state.elapsed_times]
    if not times:
        return None
    return statistics.median(times)


def lightning_round(states: ScoreStates, threshold_seconds: float) -> Badge | None:
    median = median_elapsed(states)
    if median is None or median >= threshold_seconds:
        return None
    return _badge(BadgeKind.LIGHTNING_ROUND, (), round(median, 3))


def comeback_kid(
    states: ScoreStates,
    participants: Sequence[Participant],
    min_answers: int,
) -> Badge | None:
    """Biggest gain in correct answers between the first and second half of a participant's answers."""
    candidates = []
    for participant, state in _with_states(states, participants):
        outcomes = state.answer_outcomes
        if len(outcomes) < min_answers:
            continue
        half = len(outcomes) // 2
        improvement = sum(outcomes[half:]) - sum(outcomes[:half])
        if improvement > 0:
            candidates.append((-improvement, _join_key(participant), participant.participant_id))
    if not candidates:
        return None
    negative_improvement, _, participant_id = min(candidates)
    return _badge(BadgeKind.COMEBACK_KID, (participant_id,), float(-negative_improvement))


def steady_eddie(
    states: ScoreStates,
    participants: Sequence[Participant],
    min_answers: int,
) -> Badge | None:
    candidates = [
        (statistics.pvariance(state.elapsed_times), _join_key(participant), participant.participant_id)
        for participant, state in _with_states(states, participants)
        if len(state.elapsed_times) >= max(2, min_answers)
    ]
    if not candidates:
        return None
    variance, _, participant_id = min(candidates)
    return _badge(BadgeKind.STEADY_EDDIE, (participant_id,), round(variance, 3))


def photo_finish(
    states: ScoreStates,
    leaderboard: Sequence[LeaderboardRow],
    window_seconds: float,
) -> Badge | None:
    """Leader wins on tie-breaks alone, with total times within the window."""
    if len(leaderboard) < 2:
        return None
    leader, runner_up = leaderboard[0], leaderboard[1]
    if leader.total == 0 or runner_up.total == 0 or leader.points != runner_up.points:
        return None
    leader_state = states.get(leader.participant_id)
    runner_state = states.get(runner_up.participant_id)
    if leader_state is None or runner_state is None:
        return None
    gap = abs(leader_state.total_elapsed - runner_state.total_elapsed)
    if gap > window_seconds:
        return None
    return _badge(BadgeKind.PHOTO_FINISH, (leader.participant_id,), round(gap, 3))


def close_call(leaderboard: Sequence[LeaderboardRow], window_percent: float) -> Badge | None:
    """Runner-up finished within ``window_percent`` points of the leader's score."""
    if len(leaderboard) < 2:
        return None
    leader, runner_up = leaderboard[0], leaderboard[1]
    if runner_up.total == 0:
        return None
    gap = abs(leader.percentage - runner_up.percentage)
    if gap > window_percent:
        return None
    return _badge(BadgeKind.CLOSE_CALL, (runner_up.participant_id,), float(gap))


def session_statistics(leaderboard: Sequence[LeaderboardRow]) -> SessionStatistics:
    if not leaderboard:
        return SessionStatistics()
    scores = [row.percentage for row in leaderboard]
    times = [row.average_time for row in leaderboard if row.average_time is not None]
    completed = sum(1 for row in leaderboard if row.question_count and row.total >= row.question_count)
    total = len(leaderboard)
    return SessionStatistics(
        total_participants=total,
        completed_count=completed,
        completion_rate=round_half_up(completed / total * 100),
        average_percentage=round_half_up(sum(scores) / total),
        median_percentage=round_half_up(statistics.median(scores)),
        highest_percentage=max(scores),
        lowest_percentage=min(scores),
        perfect_scores=sum(1 for score in scores if score == 100),
        average_time=round(statistics.fmean(times), 2) if times else None,
    )


class MetricsEngine:
    """Evaluates every badge for a session from accumulator state."""

    def __init__(self, settings: SessionSettings | None = None) -> None:
        self._settings = settings or SessionSettings()

    def evaluate(
        self,
        states: ScoreStates,
        participants: Sequence[Participant],
        question_count: int,
        leaderboard: Sequence[LeaderboardRow],
    ) -> SessionMetrics:
        settings = self._settings
        lightning = lightning_round(states, settings.lightning_threshold_seconds)
        candidates = (
            speed_demon(states, participants, question_count, settings.speed_demon_min_fraction),
            perfectionists(states, participants, question_count),
            streak_master(states, participants),
            lightning,
            comeback_kid(states, participants, settings.comeback_min_answers),
            steady_eddie(states, participants, settings.steady_min_answers),
            photo_finish(states, leaderboard, settings.photo_finish_window_seconds),
            close_call(leaderboard, settings.close_call_window_percent),
        )
        return SessionMetrics(
            badges=tuple(badge for badge in candidates if badge is not None),
            lightning_round=lightning is not None,
            statistics=session_statistics(leaderboard),
        )
