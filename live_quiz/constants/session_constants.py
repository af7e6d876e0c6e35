"""Session-related constants shared across the engine and server layers."""

DEFAULT_TIME_LIMIT_SECONDS: int | None = 600
DEFAULT_QUESTION_POINTS: int = 1
LIGHTNING_ROUND_THRESHOLD_SECONDS: float = 5.0
SPEED_DEMON_MIN_ANSWERED_FRACTION: float = 0.5
PHOTO_FINISH_WINDOW_SECONDS: float = 10.0
COMEBACK_KID_MIN_ANSWERS: int = 4
STEADY_EDDIE_MIN_ANSWERS: int = 2
CLOSE_CALL_WINDOW_PERCENT: int = 5
