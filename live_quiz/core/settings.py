"""Per-session tunables with defaults taken from the constants modules."""

from __future__ import annotations

from dataclasses import dataclass

from live_quiz.constants.session_constants import (
    CLOSE_CALL_WINDOW_PERCENT,
    COMEBACK_KID_MIN_ANSWERS,
    DEFAULT_TIME_LIMIT_SECONDS,
    LIGHTNING_ROUND_THRESHOLD_SECONDS,
    PHOTO_FINISH_WINDOW_SECONDS,
    SPEED_DEMON_MIN_ANSWERED_FRACTION,
    STEADY_EDDIE_MIN_ANSWERS,
)


@dataclass(frozen=True, slots=True)
class SessionSettings:
    time_limit_seconds: int | None = DEFAULT_TIME_LIMIT_SECONDS
    lightning_threshold_seconds: float = LIGHTNING_ROUND_THRESHOLD_SECONDS
    speed_demon_min_fraction: float = SPEED_DEMON_MIN_ANSWERED_FRACTION
    photo_finish_window_seconds: float = PHOTO_FINISH_WINDOW_SECONDS
    comeback_min_answers: int = COMEBACK_KID_MIN_ANSWERS
    steady_min_answers: int = STEADY_EDDIE_MIN_ANSWERS
    close_call_window_percent: int = CLOSE_CALL_WINDOW_PERCENT

    def __post_init__(self) -> None:
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise ValueError("time_limit_seconds must be positive or None.")
        if not 0.0 <= self.speed_demon_min_fraction <= 1.0:
            raise ValueError("speed_demon_min_fraction must be between 0 and 1.")
        if self.lightning_threshold_seconds <= 0:
            raise ValueError("lightning_threshold_seconds must be positive.")
        if self.close_call_window_percent < 0:
            raise ValueError("close_call_window_percent cannot be negative.")
