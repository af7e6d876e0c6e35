"""Rejections raised by the session engine.

Every error is recoverable: the session is left exactly as it was before the
rejected event, and ``message`` is safe to show to the person who caused it.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for rejected session events."""

    default_message = "The request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTransition(SessionError):
    default_message = "That action is not allowed in the current session state."


class SessionNotStarted(SessionError):
    default_message = "The session has not started yet."


class SessionClosed(SessionError):
    default_message = "The session has ended."


class DuplicateAnswer(SessionError):
    default_message = "This question has already been answered."


class UnknownParticipant(SessionError):
    default_message = "You have not joined this session."


class UnknownQuestion(SessionError):
    default_message = "That question is not part of this session."


class ValidationError(SessionError):
    default_message = "The submitted data is invalid."


class SessionNotFound(SessionError):
    default_message = "No session exists with that identifier."
