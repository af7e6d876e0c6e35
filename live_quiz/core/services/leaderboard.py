"""Service for ranking participants into a leaderboard."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import math

from live_quiz.core.models import LeaderboardRow, Participant, ParticipantScoreState


def round_half_up(value: float) -> int:
    """Round .5 upwards; ``round`` would round half to even."""
    return math.floor(value + 0.5)


def percentage(correct: int, question_count: int) -> int:
    if question_count <= 0:
        return 0
    return round_half_up(correct / question_count * 100)


def ranking_key(state: ParticipantScoreState, participant: Participant) -> tuple:
    """Sort key giving a total order: the join order is unique per session."""
    average = state.average_elapsed
    return (
        -state.points,
        -state.correct_count,
        math.inf if average is None else average,
        participant.joined_at,
        participant.join_order,
    )


class LeaderboardRanker:
    """Builds a leaderboard from scratch on every call."""

    def rank(
        self,
        states: Mapping[str, ParticipantScoreState],
        participants: Iterable[Participant],
        question_count: int,
    ) -> list[LeaderboardRow]:
        entries = [
            (states.get(p.participant_id) or ParticipantScoreState(participant_id=p.participant_id), p)
            for p in participants
        ]
        entries.sort(key=lambda item: ranking_key(*item))

        return [
            LeaderboardRow(
                rank=position,
                participant_id=participant.participant_id,
                display_name=participant.display_name,
                points=state.points,
                percentage=percentage(state.correct_count, question_count),
                correct=state.correct_count,
                total=state.answered_count,
                question_count=question_count,
                average_time=state.average_elapsed,
            )
            for position, (state, participant) in enumerate(entries, start=1)
        ]
