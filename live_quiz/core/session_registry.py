"""Registry of concurrently running sessions."""

from __future__ import annotations

import logging
from threading import Lock

from live_quiz.core.errors import InvalidTransition, SessionNotFound
from live_quiz.core.models import QuizQuestion, SessionSnapshot, SessionStatus, utc_now
from live_quiz.core.session_controller import Clock, SessionController, SnapshotListener
from live_quiz.core.settings import SessionSettings

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns one controller per session.

    The registry lock only guards the session dictionary; events for a session
    are serialized by that session's controller, so sessions never wait on
    each other.
    """

    def __init__(
        self,
        default_settings: SessionSettings | None = None,
        clock: Clock = utc_now,
        listeners: list[SnapshotListener] | None = None,
    ) -> None:
        self._lock = Lock()
        self._sessions: dict[str, SessionController] = {}
        self._default_settings = default_settings or SessionSettings()
        self._clock = clock
        self._listeners = list(listeners or [])

    @property
    def default_settings(self) -> SessionSettings:
        return self._default_settings

    def create_session(
        self,
        questions: list[QuizQuestion],
        quiz_id: str = "",
        settings: SessionSettings | None = None,
    ) -> SessionController:
        controller = SessionController(
            questions,
            quiz_id=quiz_id,
            settings=settings or self._default_settings,
            clock=self._clock,
        )
        for listener in self._listeners:
            controller.subscribe(listener)
        with self._lock:
            self._sessions[controller.session_id] = controller
        logger.info(
            "Created session %s for quiz %s with %d questions",
            controller.session_id,
            quiz_id or "<unnamed>",
            len(questions),
        )
        return controller

    def get(self, session_id: str) -> SessionController:
        with self._lock:
            controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFound(f"Session '{session_id}' does not exist.")
        return controller

    def list_sessions(self) -> list[SessionController]:
        with self._lock:
            return list(self._sessions.values())

    def tick_all(self) -> None:
        """Deliver a timer tick to every session that has not completed."""
        for controller in self.list_sessions():
            if controller.status is not SessionStatus.COMPLETED:
                controller.tick()

    def archive(self, session_id: str) -> SessionSnapshot:
        """Remove a completed session and return its final snapshot."""
        controller = self.get(session_id)
        controller.tick()
        snapshot = controller.snapshot()
        if snapshot.status is not SessionStatus.COMPLETED:
            raise InvalidTransition("Only completed sessions can be archived.")
        with self._lock:
            self._sessions.pop(session_id, None)
        logger.info("Archived session %s", session_id)
        return snapshot
