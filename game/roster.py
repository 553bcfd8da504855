"""Roster: connected participants and their per-game attributes."""

import logging
import random
from enum import Enum
from typing import Optional

from game.events import EventKind, Outbox
from game.rules import Phase
from game.state import Participant, Position

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
    """Why a join request was declined."""

    GAME_IN_PROGRESS = "game_in_progress"
    NAME_TAKEN = "name_taken"
    NAME_REQUIRED = "name_required"


_REJECT_MESSAGES = {
    RejectReason.GAME_IN_PROGRESS: "Cannot join: a game is already in progress",
    RejectReason.NAME_TAKEN: "Cannot join: that name is already taken",
    RejectReason.NAME_REQUIRED: "A name is required",
}


class JoinRejected(ValueError):
    """Raised when a join request fails a guard. No state was changed."""

    def __init__(self, reason: RejectReason):
        super().__init__(_REJECT_MESSAGES[reason])
        self.reason = reason


class Roster:
    """Mapping from connection identity to Participant."""

    def __init__(self, outbox: Outbox, rng: Optional[random.Random] = None):
        self.outbox = outbox
        self.rng = rng or random.Random()
        self._participants: dict[str, Participant] = {}

    # -- membership ------------------------------------------------------

    def join(self, identity: str, name: str, phase: Phase) -> Participant:
        """Add a participant. Raises JoinRejected outside LOBBY or on a duplicate name."""
        name = (name or "").strip()
        if not name:
            raise JoinRejected(RejectReason.NAME_REQUIRED)
        if phase != Phase.LOBBY:
            raise JoinRejected(RejectReason.GAME_IN_PROGRESS)
        if self.name_taken(name):
            raise JoinRejected(RejectReason.NAME_TAKEN)

        hue = self.rng.randrange(360)
        participant = Participant(
            id=identity,
            name=name,
            color=f"hsl({hue}, 100%, 60%)",
            position=Position(x=100 + self.rng.random() * 800, y=500),
        )
        self._participants[identity] = participant
        logger.info("%s joined (%d participants)", name, self.count())

        self.outbox.to_display(EventKind.PARTICIPANT_ADDED, participant.to_dict())
        self.broadcast_summary()
        return participant

    def leave(self, identity: str) -> Optional[Participant]:
        """Remove a participant in any phase. Returns None if identity is unknown."""
        participant = self._participants.pop(identity, None)
        if participant is None:
            return None
        logger.info("%s left (%d participants)", participant.name, self.count())
        self.outbox.to_display(EventKind.PARTICIPANT_REMOVED, {"id": identity})
        self.broadcast_summary()
        return participant

    def name_taken(self, name: str) -> bool:
        folded = name.casefold()
        return any(p.name.casefold() == folded for p in self._participants.values())

    def broadcast_summary(self) -> None:
        players = [{"name": p.name, "color": p.color} for p in self._participants.values()]
        self.outbox.broadcast(EventKind.ROSTER_UPDATED, {"players": players, "count": len(players)})

    # -- game attributes -------------------------------------------------

    def eliminate(self, identity: str) -> bool:
        """Mark a participant eliminated. Returns True only when this call changed state."""
        participant = self._participants.get(identity)
        if participant is None or not participant.alive:
            return False
        participant.alive = False
        alive_count = self.alive_count()
        logger.info("%s eliminated (%d remaining)", participant.name, alive_count)

        self.outbox.send_to(identity, EventKind.YOU_WERE_ELIMINATED, {"message": "You have been eliminated!"})
        self.outbox.to_display(
            EventKind.PARTICIPANT_ELIMINATED,
            {"id": identity, "name": participant.name, "alive_count": alive_count},
        )
        return True

    def reset_all(self) -> None:
        """Revive everyone with a zero score and a fresh position. Nobody is removed."""
        for participant in self._participants.values():
            participant.alive = True
            participant.score = 0
            participant.position = Position(
                x=100 + self.rng.random() * 400,
                y=200 + self.rng.random() * 300,
            )
        self.broadcast_summary()

    # -- queries ---------------------------------------------------------

    def get(self, identity: str) -> Optional[Participant]:
        return self._participants.get(identity)

    def is_alive(self, identity: str) -> bool:
        participant = self._participants.get(identity)
        return participant is not None and participant.alive

    def all(self) -> list[Participant]:
        return list(self._participants.values())

    def alive(self) -> list[Participant]:
        return [p for p in self._participants.values() if p.alive]

    def alive_count(self) -> int:
        return sum(1 for p in self._participants.values() if p.alive)

    def count(self) -> int:
        return len(self._participants)

    def __contains__(self, identity: str) -> bool:
        return identity in self._participants

    def __len__(self) -> int:
        return len(self._participants)
