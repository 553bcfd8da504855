"""Red Light, Green Light: move on green, freeze on red, reach the line before time runs out."""

import logging
from typing import Any

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

FINISH_LINE = 950
START_LINE = 50
MOVE_STEP = 8
GREEN_SECONDS = (3, 7)
RED_SECONDS = (2, 5)
GRACE_SECONDS = 0.5
GAME_SECONDS = 60
FINISH_BONUS = 100

GREEN = "GREEN"
RED = "RED"

MOVE_ACTIONS = ("tap", "move")


class ReactionGate(Minigame):
    kind = MinigameKind.REACTION_GATE

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.light = GREEN
        self.light_timer = 0
        self.grace_timer = 0
        self.game_timer = 0
        self.max_game_ticks = seconds_to_ticks(GAME_SECONDS)
        self.finished_ids: list[str] = []

    def _begin(self) -> bool:
        for participant in self.alive_participants():
            participant.position.x = START_LINE
            participant.position.y = 300 + self.rng.random() * 200
        self.light = GREEN
        self.light_timer = self._random_duration(GREEN_SECONDS)
        self.grace_timer = 0
        self.game_timer = 0
        self.finished_ids = []
        return False

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if action.get("type") not in MOVE_ACTIONS:
            return False
        # Clients get a moment to react to a light change
        if self.grace_timer > 0:
            return False
        if self.light == RED:
            logger.info("%s moved on red", participant.name)
            self.roster.eliminate(identity)
            return False

        # Crossing the line only protects against the time limit
        if identity in self.finished_ids:
            return False

        participant.position.x += MOVE_STEP
        if participant.position.x >= FINISH_LINE:
            participant.position.x = FINISH_LINE
            self.finished_ids.append(identity)
            participant.score += FINISH_BONUS
            logger.info("%s crossed the line (+%d)", participant.name, FINISH_BONUS)
            self.outbox.send_to(identity, EventKind.YOU_FINISHED, {"message": "You crossed the line! You are safe."})
        return False

    def _step(self) -> bool:
        self.game_timer += 1
        if self.grace_timer > 0:
            self.grace_timer -= 1

        self.light_timer -= 1
        if self.light_timer <= 0:
            self._toggle_light()

        alive = self.alive_participants()
        if alive and all(p.id in self.finished_ids for p in alive):
            return self._finish()

        if self.game_timer >= self.max_game_ticks:
            return self._time_up()

        if len(alive) <= 1:
            return self._finish()
        return False

    def _toggle_light(self) -> None:
        if self.light == GREEN:
            self.light = RED
            self.light_timer = self._random_duration(RED_SECONDS)
        else:
            self.light = GREEN
            self.light_timer = self._random_duration(GREEN_SECONDS)
        self.grace_timer = seconds_to_ticks(GRACE_SECONDS)
        logger.debug("Light is now %s", self.light)
        self.outbox.broadcast(EventKind.LIGHT_CHANGED, {"light": self.light})

    def _time_up(self) -> bool:
        for participant in self.alive_participants():
            if participant.id not in self.finished_ids:
                self.roster.eliminate(participant.id)
        return self._finish()

    def _random_duration(self, bounds: tuple[float, float]) -> int:
        low, high = bounds
        return seconds_to_ticks(low + self.rng.random() * (high - low))

    def get_state(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "light": self.light,
            "time_remaining": ticks_to_seconds_ceil(self.max_game_ticks - self.game_timer),
            "finish_line": FINISH_LINE,
            "start_line": START_LINE,
            "finished_count": len(self.finished_ids),
        }
