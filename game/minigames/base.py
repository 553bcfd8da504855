"""Common contract for all minigames."""

import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Optional

from game.events import Outbox
from game.roster import Roster
from game.rules import MinigameKind, MINIGAME_NAMES
from game.state import Participant

logger = logging.getLogger(__name__)


class Minigame(ABC):
    """
    One round of play. Constructed fresh for every round and discarded when it ends.

    start(), update() and handle_input() return True exactly once: on the call that
    completes the round. After that the instance is inert.
    """

    kind: MinigameKind

    def __init__(self, roster: Roster, outbox: Outbox, rng: Optional[random.Random] = None):
        self.roster = roster
        self.outbox = outbox
        self.rng = rng or random.Random()
        self.finished = False
        # Alive participants at start(); later joiners and earlier eliminations are excluded
        self.participant_ids: list[str] = []

    @property
    def name(self) -> str:
        return MINIGAME_NAMES[self.kind]

    def start(self) -> bool:
        self.finished = False
        self.participant_ids = [p.id for p in self.roster.alive()]
        logger.info("%s started with %d participants", self.name, len(self.participant_ids))
        return self._begin()

    def update(self) -> bool:
        if self.finished:
            return False
        return self._step()

    def handle_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if self.finished or identity not in self.participant_ids:
            return False
        return self._on_input(identity, participant, action)

    @abstractmethod
    def _begin(self) -> bool:
        """Set up round state."""

    @abstractmethod
    def _step(self) -> bool:
        """Advance round timers by one tick."""

    @abstractmethod
    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        """Handle one routed action. Unknown action types are ignored."""

    @abstractmethod
    def get_state(self) -> dict[str, Any]:
        """Public round state for the display."""

    def _finish(self) -> bool:
        if self.finished:
            return False
        self.finished = True
        logger.info("%s finished (%d alive)", self.name, self.roster.alive_count())
        return True

    # -- helpers -----------------------------------------------------------

    def alive_participants(self) -> list[Participant]:
        """Round participants who are still alive, in round order."""
        alive = []
        for identity in self.participant_ids:
            participant = self.roster.get(identity)
            if participant is not None and participant.alive:
                alive.append(participant)
        return alive

    def alive_count(self) -> int:
        return len(self.alive_participants())

    def name_of(self, identity: Optional[str]) -> Optional[str]:
        participant = self.roster.get(identity) if identity else None
        return participant.name if participant else None

    def coin_flip(self) -> bool:
        return self.rng.random() < 0.5

    def random_pairs(self) -> list[tuple[str, str]]:
        """Shuffle the alive round participants into pairs. An odd one out sits this cycle out."""
        shuffled = [p.id for p in self.alive_participants()]
        self.rng.shuffle(shuffled)
        return [(shuffled[i], shuffled[i + 1]) for i in range(0, len(shuffled) - 1, 2)]
