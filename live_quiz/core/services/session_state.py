"""Service owning the session lifecycle: waiting, active, completed."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging

from live_quiz.core.errors import InvalidTransition, SessionClosed, SessionNotStarted
from live_quiz.core.models import Session, SessionStatus

logger = logging.getLogger(__name__)


class SessionStateMachine:
    """Gatekeeper for session events.

    Status only moves forward. Callers pass ``now`` explicitly so expiry is
    evaluated at the same instant as the event being processed.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    def is_active(self) -> bool:
        return self._session.status is SessionStatus.ACTIVE

    def is_completed(self) -> bool:
        return self._session.status is SessionStatus.COMPLETED

    def deadline(self) -> datetime | None:
        session = self._session
        if session.started_at is None or session.time_limit_seconds is None:
            return None
        return session.started_at + timedelta(seconds=session.time_limit_seconds)

    def start(self, now: datetime) -> None:
        status = self._session.status
        if status is not SessionStatus.WAITING:
            raise InvalidTransition(f"Cannot start a session that is {status.value}.")
        self._session.status = SessionStatus.ACTIVE
        self._session.started_at = now
        logger.info("Session %s started", self._session.session_id)

    def end(self, now: datetime) -> bool:
        """Complete the session. Returns False if it was already completed."""
        status = self._session.status
        if status is SessionStatus.COMPLETED:
            return False
        if status is not SessionStatus.ACTIVE:
            raise InvalidTransition(f"Cannot end a session that is {status.value}.")
        self._complete(now)
        logger.info("Session %s ended by trainer", self._session.session_id)
        return True

    def check_expiry(self, now: datetime) -> bool:
        """Complete the session if its time limit has run out."""
        deadline = self.deadline()
        if not self.is_active() or deadline is None or now < deadline:
            return False
        self._complete(deadline)
        logger.info("Session %s reached its time limit", self._session.session_id)
        return True

    def ensure_can_join(self) -> None:
        if self.is_completed():
            raise SessionClosed("The session has ended; new participants cannot join.")

    def ensure_can_answer(self) -> None:
        status = self._session.status
        if status is SessionStatus.WAITING:
            raise SessionNotStarted()
        if status is SessionStatus.COMPLETED:
            raise SessionClosed("The session has ended; answers are no longer accepted.")

    def elapsed_seconds(self, now: datetime) -> float:
        session = self._session
        if session.started_at is None:
            return 0.0
        until = session.ended_at or now
        return max(0.0, (until - session.started_at).total_seconds())

    def remaining_seconds(self, now: datetime) -> float | None:
        limit = self._session.time_limit_seconds
        if limit is None:
            return None
        status = self._session.status
        if status is SessionStatus.WAITING:
            return float(limit)
        if status is SessionStatus.COMPLETED:
            return 0.0
        return max(0.0, limit - self.elapsed_seconds(now))

    def _complete(self, ended_at: datetime) -> None:
        self._session.status = SessionStatus.COMPLETED
        self._session.ended_at = ended_at
