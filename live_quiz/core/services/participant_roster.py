"""Service for tracking who joined a session and in which order."""

from __future__ import annotations

from datetime import datetime

from live_quiz.core.errors import UnknownParticipant, ValidationError
from live_quiz.core.models import Participant


class ParticipantRoster:
    """Participants keyed by id. Entries are never removed during a session."""

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def register(self, participant_id: str, display_name: str, joined_at: datetime) -> tuple[Participant, bool]:
        """Register a participant. Returns the entry and whether it is new.

        Joining twice with the same id returns the original entry untouched.
        """
        participant_id = (participant_id or "").strip()
        if not participant_id:
            raise ValidationError("Participant id cannot be empty.")

        entry = self._participants.get(participant_id)
        if entry is not None:
            return entry, False

        name = (display_name or "").strip() or participant_id
        entry = Participant(
            participant_id=participant_id,
            display_name=name,
            joined_at=joined_at,
            join_order=len(self._participants),
        )
        self._participants[participant_id] = entry
        return entry, True

    def get(self, participant_id: str) -> Participant:
        entry = self._participants.get(participant_id)
        if entry is None:
            raise UnknownParticipant(f"Participant '{participant_id}' has not joined this session.")
        return entry

    def contains(self, participant_id: str) -> bool:
        return participant_id in self._participants

    def get_participants(self) -> list[Participant]:
        """Return participants in join order."""
        return sorted(self._participants.values(), key=lambda p: p.join_order)

    def count(self) -> int:
        return len(self._participants)
