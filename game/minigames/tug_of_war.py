"""Tug of War: two random teams tap to pull the rope; the losing team is eliminated together."""

import logging
import math
from typing import Any

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, TICK_RATE, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

GAME_SECONDS = 20
TAP_FORCE = 1
WIN_THRESHOLD = 100
FRICTION = 0.2  # fraction of the rope value lost per second
FRICTION_DEADZONE = 0.5


class TugOfWar(Minigame):
    kind = MinigameKind.TUG_OF_WAR

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        # Negative: team A is winning. Positive: team B is winning.
        self.rope = 0.0
        self.team_a: list[str] = []
        self.team_b: list[str] = []
        self.game_timer = 0
        self.max_game_ticks = seconds_to_ticks(GAME_SECONDS)

    def _begin(self) -> bool:
        shuffled = [p.id for p in self.alive_participants()]
        self.rng.shuffle(shuffled)
        half = math.ceil(len(shuffled) / 2)
        self.team_a = shuffled[:half]
        self.team_b = shuffled[half:]

        for identity in self.team_a:
            self._place(identity, 200)
            self.outbox.send_to(identity, EventKind.TEAM_ASSIGNED, {"team": "A", "side": "left"})
        for identity in self.team_b:
            self._place(identity, 650)
            self.outbox.send_to(identity, EventKind.TEAM_ASSIGNED, {"team": "B", "side": "right"})

        self.rope = 0.0
        self.game_timer = 0
        logger.info("Team A: %d | Team B: %d", len(self.team_a), len(self.team_b))
        return False

    def _place(self, identity: str, left: float) -> None:
        participant = self.roster.get(identity)
        if participant is not None:
            participant.position.x = left + self.rng.random() * 150
            participant.position.y = 250 + self.rng.random() * 300

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if action.get("type") != "tap":
            return False
        if identity in self.team_a:
            self.rope -= TAP_FORCE
        elif identity in self.team_b:
            self.rope += TAP_FORCE
        return False

    def _step(self) -> bool:
        self.game_timer += 1

        if abs(self.rope) > FRICTION_DEADZONE:
            self.rope *= 1 - FRICTION / TICK_RATE

        if abs(self.rope) >= WIN_THRESHOLD:
            return self._eliminate_team(self.team_b if self.rope < 0 else self.team_a)

        if self.game_timer >= self.max_game_ticks:
            # Team A keeps the rope on a dead-centre tie
            return self._eliminate_team(self.team_b if self.rope <= 0 else self.team_a)
        return False

    def _eliminate_team(self, team: list[str]) -> bool:
        logger.info("Team %s loses the rope", "A" if team is self.team_a else "B")
        for identity in team:
            self.roster.eliminate(identity)
        return self._finish()

    def get_state(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "rope_position": self.rope,
            "threshold": WIN_THRESHOLD,
            "team_a": len(self.team_a),
            "team_b": len(self.team_b),
            "time_remaining": ticks_to_seconds_ceil(self.max_game_ticks - self.game_timer),
        }
