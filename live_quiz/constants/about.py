"""Static metadata describing the live quiz engine."""

APP_NAME = "Live Quiz"
APP_VERSION = "0.1.0"
APP_ABOUT_TEXT = (
    "Live Quiz runs training quiz sessions: participants join, answer questions at their own pace, "
    "and trainers follow a live leaderboard with Speed Demon, Perfectionist and Streak Master awards."
)
